import pytest

from dwin_gauge.colors import TRANSPARENT, parse_color, to_css, to_hex, with_opacity


class TestParseColor:
    def test_hex(self):
        assert parse_color("#FF0000") == (1.0, 0.0, 0.0, 1.0)
        assert parse_color("#0f0") == (0.0, 1.0, 0.0, 1.0)

    def test_css_rgba(self):
        r, g, b, a = parse_color("rgba(255, 0, 51, 0.5)")
        assert (r, g, b) == (1.0, 0.0, 0.2)
        assert a == 0.5

    def test_css_rgb_without_alpha_is_opaque(self):
        assert parse_color("rgb(0,0,0)") == (0.0, 0.0, 0.0, 1.0)

    def test_transparent(self):
        assert parse_color("transparent") == TRANSPARENT
        assert parse_color("Transparent") == TRANSPARENT

    def test_named(self):
        assert parse_color("white") == (1.0, 1.0, 1.0, 1.0)

    def test_tuple_is_clamped(self):
        assert parse_color((2.0, -1.0, 0.5)) == (1.0, 0.0, 0.5, 1.0)

    @pytest.mark.parametrize("bad", ["", "not-a-color", "rgba(1,2)", "rgb(a,b,c)", 12])
    def test_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            parse_color(bad)


class TestHelpers:
    def test_with_opacity_multiplies_alpha(self):
        assert with_opacity("rgba(0,0,0,0.5)", 0.5)[3] == 0.25

    def test_with_opacity_clamps(self):
        assert with_opacity("#000000", 3)[3] == 1.0
        assert with_opacity("#000000", -1)[3] == 0.0

    def test_to_hex_drops_alpha(self):
        assert to_hex("rgba(50,50,50,0.2)") == "#323232"

    def test_to_hex_falls_back_to_white(self):
        assert to_hex("nope") == "#ffffff"

    def test_to_css(self):
        assert to_css((1.0, 0.0, 0.0, 0.5)) == "rgba(255,0,0,0.5)"

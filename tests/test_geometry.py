"""Tests for arc/bar geometry, segment layout and content bounds."""

import math

import pytest

from conftest import small_preset
from dwin_gauge.geometry import (
    OPENING_DEGREES,
    SWEEP_DEGREES,
    Rect,
    arc_angles,
    bar_fill_rect,
    bar_span_rect,
    clamp01,
    content_bounds,
    resolve_arc,
    resolve_bar,
    segment_gap,
    segment_spans,
    wipe_fraction,
)
from dwin_gauge.preset import MainStroke


class TestArc:
    @pytest.mark.parametrize("direction", ["top", "right", "bottom", "left"])
    def test_sweep_is_always_270(self, direction):
        start, sweep = arc_angles(direction)
        assert sweep == pytest.approx(math.radians(270))
        assert start == pytest.approx(math.radians(OPENING_DEGREES[direction] + 45))

    def test_gap_centered_on_opening(self):
        start, sweep = arc_angles("bottom")
        gap_middle = math.degrees(start + sweep + (2 * math.pi - sweep) / 2) % 360
        assert gap_middle == pytest.approx(90.0)

    def test_sweep_constant(self):
        assert SWEEP_DEGREES == 270

    def test_resolve_arc(self):
        arc = resolve_arc(small_preset(opening_direction="top"))
        assert arc.radius == 40 and arc.thickness == 10
        assert not arc.round_caps
        assert arc.bounds == Rect(-40, -40, 80, 80)
        assert arc.angular(40) == pytest.approx(1.0)


class TestBar:
    def test_forward_horizontal(self):
        bar = resolve_bar(small_preset(mode="bar"))
        assert bar.horizontal and not bar.reversed
        assert bar.rect == Rect(-50, -10, 100, 20)
        assert bar_fill_rect(bar, 0.5) == Rect(-50, -10, 50, 20)

    def test_rtl_fills_from_the_right(self):
        bar = resolve_bar(small_preset(mode="bar", bar={"direction": "rtl"}))
        assert bar.reversed
        assert bar_fill_rect(bar, 0.3) == Rect(20, -10, pytest.approx(30), 20)
        assert bar_span_rect(bar, 0, 30).x == 20

    def test_vertical_btt(self):
        bar = resolve_bar(small_preset(mode="bar", bar={"orientation": "vertical", "direction": "btt"}))
        assert not bar.horizontal and bar.reversed
        assert bar_fill_rect(bar, 0.25) == Rect(-10, 25, 20, 25)

    def test_mismatched_direction_fills_forward(self):
        bar = resolve_bar(small_preset(mode="bar", bar={"orientation": "horizontal", "direction": "btt"}))
        assert not bar.reversed

    def test_corner_radius(self):
        rounded = resolve_bar(small_preset(mode="bar", bar={"square_ends": False, "corner_radius": 50}))
        assert rounded.corner_radius == 10
        square = resolve_bar(small_preset(mode="bar", bar={"square_ends": True, "corner_radius": 5}))
        assert square.corner_radius == 0

    def test_track_keeps_length(self):
        bar = resolve_bar(small_preset(mode="bar"))
        assert bar.track(40) == Rect(-50, -20, 100, 40)


class TestSegments:
    @pytest.mark.parametrize("count", range(1, 101))
    def test_segments_and_gaps_fill_extent(self, count):
        extent = math.radians(270)
        gap = 0.01
        spans = segment_spans(extent, count, gap)
        assert len(spans) == count
        used_gap = gap if count > 1 else 0.0
        total = sum(s.length for s in spans) + used_gap * (count - 1)
        assert total == pytest.approx(extent, abs=1e-12)
        assert spans[-1].end == pytest.approx(extent, abs=1e-12)

    def test_oversized_gap_shrinks(self):
        spans = segment_spans(100.0, 5, 1000.0)
        assert all(s.length == pytest.approx(0.0) for s in spans)
        assert spans[-1].end == pytest.approx(100.0)

    def test_gap_limited_by_thickness(self):
        assert segment_gap(MainStroke(segment_gap=50), 10) == pytest.approx(8.0)
        assert segment_gap(MainStroke(segment_gap=2), 10) == 2

    def test_wipe(self):
        fractions = [wipe_fraction(i, 0.25, 10) for i in range(10)]
        assert fractions[:2] == [1.0, 1.0]
        assert fractions[2] == pytest.approx(0.5)
        assert fractions[3:] == [0.0] * 7

    def test_wipe_full_and_empty(self):
        assert all(wipe_fraction(i, 1.0, 4) == 1.0 for i in range(4))
        assert all(wipe_fraction(i, 0.0, 4) == 0.0 for i in range(4))

    def test_clamp01(self):
        assert clamp01(-1) == 0.0
        assert clamp01(2) == 1.0
        assert clamp01(float("nan")) == 0.0


class TestContentBounds:
    def test_arc_without_glow(self):
        p = small_preset(arc={"radius": 200, "thickness": 24, "round_caps": False})
        assert content_bounds(p) == (pytest.approx(464), pytest.approx(464))

    def test_round_caps_add_room(self):
        butt = content_bounds(small_preset())
        round_ = content_bounds(small_preset(arc={"round_caps": True}))
        assert round_[0] == pytest.approx(butt[0] + 10)

    def test_glow_adds_room(self):
        plain = content_bounds(small_preset())
        glowing = content_bounds(small_preset(glow={"enabled": True}))
        assert glowing[0] > plain[0]

    def test_bar(self):
        w, h = content_bounds(small_preset(mode="bar"))
        assert (w, h) == (pytest.approx(120), pytest.approx(40))

"""
Tests for single-state rendering and batch export: determinism, scratch
surface reuse, archive layout, cancellation and encode failures.
"""

import io
import zipfile

import numpy as np
import pytest
from matplotlib import image as mpimg

from conftest import small_preset
from dwin_gauge.errors import ExportCancelled, FrameEncodeError, PresetError
from dwin_gauge.export import (
    ZIP_EPOCH,
    draw_state,
    export_archive,
    render_state_image,
    render_states,
    safe_prefix,
    write_archive,
)
from dwin_gauge.preset import default_preset, load_preset
from dwin_gauge.surface import Surface
from dwin_gauge.updates import set_field


def decode(data):
    return mpimg.imread(io.BytesIO(data), format="png")


def glowing_preset(**overrides):
    return small_preset(glow={"enabled": True, "strength": 40}, base={"enabled": True}, **overrides)


class TestRenderStateImage:
    def test_idempotent(self):
        p = glowing_preset()
        assert render_state_image(p, 5, 16) == render_state_image(p, 5, 16)

    def test_png_of_canvas_size(self):
        img = decode(render_state_image(small_preset(), 15, 16))
        assert img.shape == (128, 128, 4)

    def test_first_and_last_state(self):
        p = small_preset(states=16)
        assert not decode(render_state_image(p, 0, 16)).any()
        assert decode(render_state_image(p, 15, 16))[24, 64, 3] == 1.0

    def test_override_size(self):
        p = small_preset()
        img = decode(render_state_image(p, 15, 16, out_width=64, out_height=32))
        assert img.shape == (32, 64, 4)
        # Scaled by 0.25 and centered: the arc top sits near (32, 6).
        assert img[6, 32, 3] > 0.9
        assert img[:, :10, 3].max() == 0.0

    def test_override_size_matches_scaled_canvas(self):
        p = small_preset()
        half = decode(render_state_image(p, 15, 16, out_width=64, out_height=64))
        assert half.shape == (64, 64, 4)
        assert half[12, 32, 3] > 0.9

    def test_scratch_surface_is_reset(self):
        p = glowing_preset(canvas={"background": "transparent"})
        scratch = Surface(128, 128)
        render_state_image(p, 15, 16, surface=scratch)
        reused = render_state_image(p, 0, 16, surface=scratch)
        assert reused == render_state_image(p, 0, 16)

    def test_wrong_sized_scratch_is_not_used(self):
        p = small_preset()
        img = decode(render_state_image(p, 0, 16, surface=Surface(10, 10)))
        assert img.shape == (128, 128, 4)

    def test_background(self):
        p = small_preset(canvas={"background": "#102030"})
        surface = Surface(128, 128)
        draw_state(surface, p, 0, 16)
        assert (surface.to_rgba8() == [16, 32, 48, 255]).all()

    def test_fit_content_shrinks_gauge(self):
        big = {"radius": 60, "thickness": 10, "round_caps": False}
        clipped = small_preset(arc=big)
        fitted = small_preset(arc=big, canvas={"fit_content": True})
        a = decode(render_state_image(clipped, 15, 16))
        b = decode(render_state_image(fitted, 15, 16))
        # Radius 60 + 5 reaches past the 64 px half canvas; fitted, it does not.
        assert a[0:2, :, 3].max() > 0
        assert b[0:2, :, 3].max() == 0
        assert b[:, :, 3].max() == 1.0

    def test_fit_content_leaves_small_gauges_alone(self):
        p = small_preset(arc={"radius": 30})
        fitted = small_preset(arc={"radius": 30}, canvas={"fit_content": True})
        assert render_state_image(p, 9, 16) == render_state_image(fitted, 9, 16)

    def test_default_preset_is_fitted_to_its_canvas(self):
        p = default_preset()
        assert p.canvas.fit_content
        unfitted = set_field(p, ("canvas", "fit_content"), False)
        assert render_state_image(p, 15, 16) != render_state_image(unfitted, 15, 16)

    def test_accepts_mapping(self):
        data = {"canvas": {"width": 32, "height": 32}, "glow": {"enabled": False}}
        assert render_state_image(data, 3, 10) == render_state_image(load_preset(data), 3, 10)

    def test_rejects_bad_mapping(self):
        with pytest.raises(PresetError):
            render_state_image({"mode": "dial"}, 0, 10)

    def test_encode_failure(self, monkeypatch):
        monkeypatch.setattr(Surface, "encode_png", lambda self: b"")
        with pytest.raises(FrameEncodeError) as info:
            render_state_image(small_preset(), 3, 16)
        assert info.value.index == 3

    def test_encoder_exception_is_wrapped(self, monkeypatch):
        def boom(self):
            raise OSError("disk on fire")

        monkeypatch.setattr(Surface, "encode_png", boom)
        with pytest.raises(FrameEncodeError) as info:
            render_state_image(small_preset(), 1, 16)
        assert info.value.index == 1
        assert "disk on fire" in info.value.reason


class TestRenderStates:
    def test_yields_every_state_in_order(self):
        p = small_preset(states=12)
        indices = [i for i, _data in render_states(p)]
        assert indices == list(range(12))

    def test_parallel_matches_sequential(self):
        p = glowing_preset(states=10)
        assert list(render_states(p, workers=3)) == list(render_states(p, workers=1))

    def test_accepts_mapping(self):
        indices = [i for i, _d in render_states({"canvas": {"width": 32, "height": 32}, "states": 10})]
        assert indices == list(range(10))

    def test_workers_from_settings(self, monkeypatch):
        from dwin_gauge.config import get_settings

        monkeypatch.setenv("DWIN_GAUGE_EXPORT_WORKERS", "2")
        get_settings.cache_clear()
        p = small_preset(states=10)
        assert [i for i, _d in render_states(p)] == list(range(10))


class TestExportArchive:
    def test_entries(self):
        p = small_preset(states=16, name_prefix="speed")
        with zipfile.ZipFile(io.BytesIO(export_archive(p))) as zf:
            names = zf.namelist()
            assert names == [f"speed_{i:02d}.png" for i in range(16)]
            assert all(info.date_time == ZIP_EPOCH for info in zf.infolist())
            assert zf.read("speed_15.png") == render_state_image(p, 15, 16)

    def test_three_digit_names(self):
        p = small_preset(states=101, canvas={"width": 32, "height": 32})
        with zipfile.ZipFile(io.BytesIO(export_archive(p))) as zf:
            names = zf.namelist()
        assert len(names) == 101
        assert names[0] == "gauge_000.png" and names[-1] == "gauge_100.png"

    def test_segmented_archive(self):
        p = small_preset(main={"segmented": True, "segments": 10}, base={"enabled": True})
        with zipfile.ZipFile(io.BytesIO(export_archive(p))) as zf:
            assert len(zf.namelist()) == 11

    def test_deterministic(self):
        p = glowing_preset()
        assert export_archive(p) == export_archive(p)

    def test_parallel_archive_is_identical(self):
        p = glowing_preset()
        assert export_archive(p, workers=4) == export_archive(p, workers=1)

    def test_prefix_override_is_sanitized(self):
        with zipfile.ZipFile(io.BytesIO(export_archive(small_preset(), "my gauge/1"))) as zf:
            assert zf.namelist()[0] == "my_gauge_1_00.png"

    def test_accepts_mapping(self):
        data = export_archive({"canvas": {"width": 32, "height": 32}, "states": 10})
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert len(zf.namelist()) == 10

    def test_rejects_bad_preset(self):
        with pytest.raises(PresetError):
            export_archive({"mode": "dial"})

    def test_progress_callback(self):
        seen = []
        export_archive(small_preset(states=10), on_progress=lambda done, total: seen.append((done, total)))
        assert seen == [(i, 10) for i in range(1, 11)]

    def test_cancel(self):
        done = []
        with pytest.raises(ExportCancelled) as info:
            export_archive(
                small_preset(states=10),
                on_progress=lambda d, t: done.append(d),
                should_cancel=lambda: len(done) >= 3,
            )
        assert info.value.completed == 3
        assert info.value.total == 10

    def test_cancel_parallel(self):
        done = []
        with pytest.raises(ExportCancelled):
            export_archive(
                small_preset(states=10),
                workers=2,
                on_progress=lambda d, t: done.append(d),
                should_cancel=lambda: len(done) >= 2,
            )

    def test_encode_failure_aborts(self, monkeypatch):
        monkeypatch.setattr(Surface, "encode_png", lambda self: b"")
        with pytest.raises(FrameEncodeError) as info:
            export_archive(small_preset())
        assert info.value.index == 0


class TestWriteArchive:
    def test_writes_zip(self, tmp_path):
        path = write_archive(small_preset(states=10), tmp_path / "out.zip")
        assert path == tmp_path / "out.zip"
        with zipfile.ZipFile(path) as zf:
            assert len(zf.namelist()) == 10
        assert [p.name for p in tmp_path.iterdir()] == ["out.zip"]

    def test_failure_leaves_nothing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Surface, "encode_png", lambda self: b"")
        with pytest.raises(FrameEncodeError):
            write_archive(small_preset(), tmp_path / "out.zip")
        assert list(tmp_path.iterdir()) == []

    def test_cancel_keeps_existing_file(self, tmp_path):
        target = tmp_path / "out.zip"
        target.write_bytes(b"old")
        with pytest.raises(ExportCancelled):
            write_archive(small_preset(), target, should_cancel=lambda: True)
        assert target.read_bytes() == b"old"


@pytest.mark.parametrize("given, expected", [("gauge", "gauge"), ("  a b ", "a_b"), ("", "gauge"), ("../x", "x"), (None, "gauge")])
def test_safe_prefix(given, expected):
    assert safe_prefix(given) == expected


def test_state_zero_of_segmented_shows_only_base():
    p = small_preset(main={"segmented": True, "segments": 4}, base={"enabled": True, "color": "#ffffff", "opacity": 1})
    img = decode(render_state_image(p, 0, 5))
    assert np.allclose(img[24, 64], [1.0, 1.0, 1.0, 1.0])

"""
Frame export.

Renders the states of a preset to PNG and packs them into a ZIP archive.
Everything here is deterministic: the same preset always gives the same
bytes, down to the archive's entry timestamps.
"""

from __future__ import annotations

import io
import logging
import os
import re
import tempfile
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple, Union

from .colors import parse_color
from .compose import draw_gauge
from .config import get_settings
from .errors import ExportCancelled, FrameEncodeError
from .geometry import content_bounds
from .preset import Preset, load_preset
from .states import effective_export_states, frame_name, state_progress
from .surface import Surface

log = logging.getLogger(__name__)

# Earliest timestamp a ZIP entry can carry.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")

ProgressCallback = Callable[[int, int], None]
CancelCheck = Callable[[], bool]


def safe_prefix(prefix: Optional[str], fallback: str = "gauge") -> str:
    """File-name-safe version of an export prefix."""
    cleaned = _UNSAFE_NAME.sub("_", (prefix or "").strip()).strip("._")
    return cleaned or fallback


def _place_canvas(surface: Surface, preset: Preset) -> None:
    """Map canvas space onto the surface, shrinking the gauge if asked to."""
    cw, ch = preset.canvas.width, preset.canvas.height
    ow, oh = surface.size

    if (ow, oh) != (cw, ch):
        s = min(ow / cw, oh / ch)
        surface.translate((ow - cw * s) / 2, (oh - ch * s) / 2)
        surface.scale(s)

    if preset.canvas.fit_content:
        bw, bh = content_bounds(preset)
        fit = min(1.0, cw / bw if bw > 0 else 1.0, ch / bh if bh > 0 else 1.0)
        if fit < 1.0:
            surface.translate(cw / 2, ch / 2)
            surface.scale(fit)
            surface.translate(-cw / 2, -ch / 2)


def draw_state(surface: Surface, preset: Preset, index: int, total: int) -> float:
    """
    Clear ``surface`` and draw state ``index`` of ``total`` on it.

    Returns:
        float: The progress the state shows.
    """
    surface.reset()
    if parse_color(preset.canvas.background)[3] > 0:
        surface.fill(preset.canvas.background)

    progress = state_progress(preset, index, total)
    with surface.saved():
        _place_canvas(surface, preset)
        draw_gauge(surface, preset, progress)
    return progress


def render_state_image(
    preset: Union[Preset, dict],
    index: int,
    total: int,
    out_width: Optional[int] = None,
    out_height: Optional[int] = None,
    surface: Optional[Surface] = None,
) -> bytes:
    """
    Render one state to PNG bytes.

    Args:
        preset: The gauge design, or anything :func:`load_preset` accepts.
        index: State index, ``0 <= index < total``.
        total: Number of states in the run.
        out_width: Output width in pixels; the canvas width when omitted.
        out_height: Output height in pixels; the canvas height when omitted.
        surface: Scratch surface to draw on. Used only if it has the output
            size; it is cleared first either way.

    Raises:
        PresetError: If ``preset`` is not a valid preset.
        FrameEncodeError: If the frame could not be encoded.
    """
    preset = load_preset(preset)
    width = int(out_width or preset.canvas.width)
    height = int(out_height or preset.canvas.height)
    if surface is None or surface.size != (max(1, width), max(1, height)):
        surface = Surface(width, height)

    progress = draw_state(surface, preset, index, total)
    try:
        data = surface.encode_png()
    except (OSError, ValueError, RuntimeError) as exc:
        log.error("encoding state %d failed: %s", index, exc)
        raise FrameEncodeError(index, str(exc)) from exc
    if not data:
        log.error("encoding state %d produced no data", index)
        raise FrameEncodeError(index)

    log.debug("state %d/%d progress=%.4f %d bytes", index, total, progress, len(data))
    return data


def render_states(
    preset: Union[Preset, dict],
    *,
    workers: Optional[int] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> Iterator[Tuple[int, bytes]]:
    """
    Yield ``(index, png)`` for every export state, in index order.

    With one worker a single scratch surface is reused and cleared before
    every frame. With more, frames render in a thread pool, each on its own
    surface.

    Raises:
        ExportCancelled: When ``should_cancel()`` returns True between frames.
        PresetError: When ``preset`` is not a valid preset.
        FrameEncodeError: When a frame cannot be encoded.
    """
    preset = load_preset(preset)
    total = effective_export_states(preset)
    if workers is None:
        workers = get_settings().export_workers
    workers = max(1, min(int(workers), total))

    def check(done: int) -> None:
        if should_cancel is not None and should_cancel():
            log.info("export cancelled after %d/%d states", done, total)
            raise ExportCancelled(done, total)

    if workers == 1:
        scratch = Surface(preset.canvas.width, preset.canvas.height)
        for i in range(total):
            check(i)
            yield i, render_state_image(preset, i, total, surface=scratch)
        return

    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dwin-gauge")
    try:
        futures = [pool.submit(render_state_image, preset, i, total) for i in range(total)]
        for i, future in enumerate(futures):
            check(i)
            yield i, future.result()
    finally:
        pool.shutdown(wait=True, cancel_futures=True)


def export_archive(
    preset: Union[Preset, dict],
    name_prefix: Optional[str] = None,
    *,
    workers: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> bytes:
    """
    Render every state of ``preset`` and return them as ZIP bytes.

    Entries are named ``<prefix>_<index>.png`` with the index zero padded
    and appear in index order. Nothing is returned unless every state
    rendered: a failed or cancelled frame discards the archive.

    Args:
        preset: The gauge design, or a mapping to validate into one.
        name_prefix: Entry name prefix; the preset's ``name_prefix`` when
            omitted.
        workers: Render threads; see :func:`render_states`.
        on_progress: Called with ``(done, total)`` after each state.
        should_cancel: Polled before each state; returning True aborts.

    Raises:
        PresetError: If ``preset`` is not a valid preset.
        FrameEncodeError: If a state could not be encoded.
        ExportCancelled: If ``should_cancel`` asked to stop.
    """
    preset = load_preset(preset)
    prefix = safe_prefix(name_prefix if name_prefix is not None else preset.name_prefix)
    total = effective_export_states(preset)
    settings = get_settings()
    log.info("exporting %d states as %s_*.png (%s)", total, prefix, preset.mode)

    buf = io.BytesIO()
    try:
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED, compresslevel=settings.zip_level) as zf:
            for i, data in render_states(preset, workers=workers, should_cancel=should_cancel):
                info = zipfile.ZipInfo(frame_name(prefix, i, total), date_time=ZIP_EPOCH)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                zf.writestr(info, data, compresslevel=settings.zip_level)
                if on_progress is not None:
                    on_progress(i + 1, total)
    except FrameEncodeError as exc:
        log.error("export aborted at state %d: %s", exc.index, exc.reason)
        raise

    data = buf.getvalue()
    log.info("export finished: %d states, %d bytes", total, len(data))
    return data


def write_archive(
    preset: Union[Preset, dict],
    path: Union[str, Path],
    name_prefix: Optional[str] = None,
    **kwargs,
) -> Path:
    """
    Export ``preset`` to a ZIP file at ``path``.

    The archive is written to a temporary file next to ``path`` and renamed
    into place, so ``path`` either holds a complete archive or is untouched.
    Keyword arguments go to :func:`export_archive`.
    """
    path = Path(path)
    data = export_archive(preset, name_prefix, **kwargs)

    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    log.info("wrote %s", path)
    return path

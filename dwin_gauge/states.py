"""
Frame states.

A gauge is exported as a numbered run of still images. This module decides
how many there are, which progress each one shows and what the files are
called.
"""

from .geometry import clamp01
from .preset import Preset

MIN_CONTINUOUS_STATES = 10
MAX_CONTINUOUS_STATES = 101


def effective_export_states(preset: Preset) -> int:
    """
    Number of frames an export of ``preset`` produces.

    Continuous gauges use the preset's ``states`` clamped to [10, 101].
    Segmented gauges get one frame per lit segment count, plus an all-dark
    frame when the base track is shown.
    """
    if preset.main.segmented:
        return max(1, preset.main.segments + (1 if preset.base.enabled else 0))
    return max(MIN_CONTINUOUS_STATES, min(MAX_CONTINUOUS_STATES, int(preset.states)))


def state_progress(preset: Preset, index: int, total: int) -> float:
    """Progress (0..1) shown by frame ``index`` of ``total``."""
    if preset.main.segmented:
        return clamp01(index / max(1, preset.main.segments))
    if total <= 1:
        return 1.0
    return clamp01(index / (total - 1))


def pad_width(total: int) -> int:
    return 3 if total >= 100 else 2


def frame_name(prefix: str, index: int, total: int, ext: str = "png") -> str:
    """``gauge_07.png`` style file name for frame ``index``."""
    return f"{prefix}_{index:0{pad_width(total)}d}.{ext}"

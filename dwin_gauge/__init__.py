"""Deterministic arc and bar gauge frame generator for DWIN HMI displays."""

from .compose import draw_arc_gauge, draw_bar_gauge, draw_gauge
from .errors import ExportCancelled, FrameEncodeError, GaugeError, PresetError
from .export import export_archive, render_state_image, render_states, write_archive
from .log import setup_logging
from .preset import Preset, default_preset, dump_preset, load_preset
from .states import effective_export_states, frame_name, pad_width, state_progress
from .surface import Surface
from .updates import merge_preset, set_field

__version__ = "0.2.0"

__all__ = [
    "ExportCancelled",
    "FrameEncodeError",
    "GaugeError",
    "Preset",
    "PresetError",
    "Surface",
    "default_preset",
    "draw_arc_gauge",
    "draw_bar_gauge",
    "draw_gauge",
    "dump_preset",
    "effective_export_states",
    "export_archive",
    "frame_name",
    "load_preset",
    "merge_preset",
    "pad_width",
    "render_state_image",
    "render_states",
    "set_field",
    "setup_logging",
    "state_progress",
    "write_archive",
]

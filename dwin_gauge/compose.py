"""
Gauge painters.

``draw_arc_gauge`` and ``draw_bar_gauge`` paint one frame of a gauge,
centered on the surface, in a fixed order:

1. base track
2. warning zones (switched off unless ``render_warning_zones`` is set)
3. main fill, continuous or segmented
4. border overlay
5. glow, additive

Both are pure functions of ``(preset, progress)``: nothing is remembered
between calls and the preset is never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .colors import with_opacity
from .config import get_settings
from .geometry import (
    ArcGeometry,
    BarGeometry,
    Rect,
    Span,
    arc_segment_spans,
    bar_fill_rect,
    bar_segment_spans,
    bar_span_rect,
    clamp01,
    resolve_arc,
    resolve_bar,
    wipe_fraction,
)
from .glow import GlowConfig, draw_glow, read_glow, use_per_segment_glow
from .paint import Paint, main_paint, main_stops, sample_gradient, warning_paint
from .preset import Preset
from .surface import LIGHTER, Surface

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ArcPiece:
    start: float
    end: float
    paint: Paint


@dataclass(frozen=True)
class _BarPiece:
    rect: Rect
    paint: Paint


def _segment_paint(stops, index: int, count: int) -> Paint:
    # Segments show discrete bands: one color per segment, taken at its middle.
    return Paint.solid(sample_gradient(stops, (index + 0.5) / count))


def _border_mask(outer: np.ndarray, inner: np.ndarray) -> np.ndarray:
    return np.clip(outer - inner, 0.0, 1.0)


def _warning_spans(extent: float, preset: Preset):
    for side_name in ("start", "end"):
        side = getattr(preset.warnings, side_name)
        if not side.enabled or side.length_pct <= 0:
            continue
        length = extent * side.length_pct
        start = 0.0 if side_name == "start" else extent - length
        yield side, Span(start, length)


# ----------------------------------------------------------------------------
# ARC


def _arc_warning_zones(surface: Surface, preset: Preset, arc: ArcGeometry) -> None:
    for side, span in _warning_spans(arc.sweep, preset):
        surface.stroke_arc(
            0.0,
            0.0,
            arc.radius,
            arc.start + span.start,
            arc.start + span.end,
            arc.thickness,
            warning_paint(side, arc.bounds),
            round_caps=arc.round_caps,
        )


def _arc_glow(surface: Surface, arc: ArcGeometry, piece: _ArcPiece, glow: GlowConfig) -> None:
    def stroke(width: float, alpha: float) -> None:
        surface.stroke_arc(
            0.0, 0.0, arc.radius, piece.start, piece.end, width, piece.paint,
            round_caps=arc.round_caps, alpha=alpha, op=LIGHTER,
        )

    draw_glow(stroke, arc.thickness, glow)


def draw_arc_gauge(surface: Surface, preset: Preset, progress: float) -> None:
    """Paint a 270 degree arc gauge at ``progress`` (0..1) onto ``surface``."""
    arc = resolve_arc(preset)
    glow = read_glow(preset)
    main = preset.main
    base = preset.base
    progress = clamp01(progress)
    paint = main_paint(main, arc.bounds)

    cx, cy = surface.center()
    with surface.saved():
        surface.translate(cx, cy)

        if base.enabled:
            width = arc.thickness if base.same_geometry_as_main else arc.thickness * base.thickness_scale
            surface.stroke_arc(
                0.0, 0.0, arc.radius, arc.start, arc.start + arc.sweep, width,
                Paint.solid(with_opacity(base.color, base.opacity)),
                round_caps=arc.round_caps,
            )

        draw_warning_zones(surface, preset)

        pieces: List[_ArcPiece] = []
        if not main.segmented:
            end = arc.start + arc.sweep * progress
            if end > arc.start:
                pieces.append(_ArcPiece(arc.start, end, paint))
        else:
            stops = main_stops(main)
            count = main.segments
            for i, span in enumerate(arc_segment_spans(arc, main)):
                frac = wipe_fraction(i, progress, count)
                if frac <= 0 or span.length <= 0:
                    continue
                seg_start = arc.start + span.start
                pieces.append(_ArcPiece(seg_start, seg_start + span.length * frac, _segment_paint(stops, i, count)))

        for piece in pieces:
            surface.stroke_arc(0.0, 0.0, arc.radius, piece.start, piece.end, arc.thickness, piece.paint,
                               round_caps=arc.round_caps)

        border = main.border
        if border.enabled and border.thickness > 1 and pieces:
            border_paint = Paint.solid(border.color)
            for piece in pieces:
                outer = surface.arc_coverage(0.0, 0.0, arc.radius, piece.start, piece.end,
                                             arc.thickness * border.thickness, arc.round_caps)
                inner = surface.arc_coverage(0.0, 0.0, arc.radius, piece.start, piece.end,
                                             arc.thickness, arc.round_caps)
                surface.composite(_border_mask(outer, inner), border_paint)

        if glow.enabled and pieces:
            if use_per_segment_glow(glow, main.segmented, arc.round_caps):
                # Segment outlines, lit with the continuous main paint.
                for piece in pieces:
                    _arc_glow(surface, arc, _ArcPiece(piece.start, piece.end, paint), glow)
            else:
                # One glow over the whole filled stretch, gaps included.
                end = arc.start + arc.sweep * progress
                _arc_glow(surface, arc, _ArcPiece(arc.start, end, paint), glow)

    log.debug("arc frame: progress=%.4f pieces=%d", progress, len(pieces))


# ----------------------------------------------------------------------------
# BAR


def _bar_warning_zones(surface: Surface, preset: Preset, bar: BarGeometry) -> None:
    for side, span in _warning_spans(bar.length, preset):
        rect = bar_span_rect(bar, span.start, span.length)
        surface.fill_round_rect(rect.x, rect.y, rect.w, rect.h, bar.corner_radius, warning_paint(side, bar.rect))


def _bar_glow(surface: Surface, bar: BarGeometry, piece: _BarPiece, glow: GlowConfig) -> None:
    rect = piece.rect

    def stroke(width: float, alpha: float) -> None:
        surface.stroke_round_rect(
            rect.x, rect.y, rect.w, rect.h, bar.corner_radius, width, piece.paint, alpha=alpha, op=LIGHTER
        )

    draw_glow(stroke, bar.thickness, glow)


def draw_bar_gauge(surface: Surface, preset: Preset, progress: float) -> None:
    """Paint a linear bar gauge at ``progress`` (0..1) onto ``surface``."""
    bar = resolve_bar(preset)
    glow = read_glow(preset)
    main = preset.main
    base = preset.base
    progress = clamp01(progress)
    paint = main_paint(main, bar.rect)

    cx, cy = surface.center()
    with surface.saved():
        surface.translate(cx, cy)

        if base.enabled:
            track = bar.rect if base.same_geometry_as_main else bar.track(bar.thickness * base.thickness_scale)
            surface.fill_round_rect(
                track.x, track.y, track.w, track.h, bar.corner_radius,
                Paint.solid(with_opacity(base.color, base.opacity)),
            )

        draw_warning_zones(surface, preset)

        pieces: List[_BarPiece] = []
        if not main.segmented:
            rect = bar_fill_rect(bar, progress)
            if rect.w > 0 and rect.h > 0:
                pieces.append(_BarPiece(rect, paint))
        else:
            stops = main_stops(main)
            count = main.segments
            for i, span in enumerate(bar_segment_spans(bar, main)):
                frac = wipe_fraction(i, progress, count)
                if frac <= 0 or span.length <= 0:
                    continue
                rect = bar_span_rect(bar, span.start, span.length * frac)
                pieces.append(_BarPiece(rect, _segment_paint(stops, i, count)))

        for piece in pieces:
            r = piece.rect
            surface.fill_round_rect(r.x, r.y, r.w, r.h, bar.corner_radius, piece.paint)

        border = main.border
        if border.enabled and border.thickness > 1 and pieces:
            border_paint = Paint.solid(border.color)
            grow = bar.thickness * (border.thickness - 1) / 2
            for piece in pieces:
                r = piece.rect
                g = r.grown(grow)
                outer = surface.round_rect_coverage(g.x, g.y, g.w, g.h, bar.corner_radius + grow)
                inner = surface.round_rect_coverage(r.x, r.y, r.w, r.h, bar.corner_radius)
                surface.composite(_border_mask(outer, inner), border_paint)

        if glow.enabled and pieces:
            if use_per_segment_glow(glow, main.segmented, round_caps=False):
                for piece in pieces:
                    _bar_glow(surface, bar, _BarPiece(piece.rect, paint), glow)
            else:
                _bar_glow(surface, bar, _BarPiece(bar_fill_rect(bar, progress), paint), glow)

    log.debug("bar frame: progress=%.4f pieces=%d", progress, len(pieces))


def draw_warning_zones(surface: Surface, preset: Preset) -> bool:
    """
    Paint the enabled warning zones over the base track.

    Expects the surface origin at the gauge center. Zones are only painted
    when ``Settings.render_warning_zones`` is on; returns whether they were.
    """
    if not get_settings().render_warning_zones:
        return False
    if preset.mode == "bar":
        _bar_warning_zones(surface, preset, resolve_bar(preset))
    else:
        _arc_warning_zones(surface, preset, resolve_arc(preset))
    return True


def draw_gauge(surface: Surface, preset: Preset, progress: float) -> None:
    if preset.mode == "bar":
        draw_bar_gauge(surface, preset, progress)
    else:
        draw_arc_gauge(surface, preset, progress)

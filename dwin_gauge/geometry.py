"""
Draw geometry derived from a preset.

All coordinates are in canvas pixels relative to the gauge center, with y
growing downwards. Angles are radians measured clockwise on screen from the
positive x axis, the same convention as an HTML canvas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from .glow import glow_outer_width, read_glow
from .preset import MainStroke, Preset

SWEEP_DEGREES = 270.0

# Center of the 90 degree gap for each opening direction.
OPENING_DEGREES = {"top": 270.0, "right": 0.0, "bottom": 90.0, "left": 180.0}

# Segment gaps are limited to this fraction of the stroke thickness.
MAX_GAP_RATIO = 0.8

CONTENT_PADDING = 20.0


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    def grown(self, d: float) -> "Rect":
        return Rect(self.x - d, self.y - d, self.w + 2 * d, self.h + 2 * d)


@dataclass(frozen=True)
class Span:
    """A stretch along a gauge's extent (radians for arcs, pixels for bars)."""

    start: float
    length: float

    @property
    def end(self) -> float:
        return self.start + self.length


@dataclass(frozen=True)
class ArcGeometry:
    radius: float
    thickness: float
    start: float
    sweep: float
    round_caps: bool

    @property
    def bounds(self) -> Rect:
        return Rect(-self.radius, -self.radius, 2 * self.radius, 2 * self.radius)

    def angular(self, pixels: float) -> float:
        """Angle subtended by an arc length of ``pixels`` on the centerline."""
        return pixels / self.radius if self.radius > 0 else 0.0


@dataclass(frozen=True)
class BarGeometry:
    horizontal: bool
    reversed: bool
    length: float
    thickness: float
    corner_radius: float

    @property
    def rect(self) -> Rect:
        return self.track(self.thickness)

    def track(self, thickness: float) -> Rect:
        """Full-length rectangle with the given cross-axis thickness, centered."""
        if self.horizontal:
            return Rect(-self.length / 2, -thickness / 2, self.length, thickness)
        return Rect(-thickness / 2, -self.length / 2, thickness, self.length)


def _finite(v: float) -> float:
    return v if math.isfinite(v) and v > 0 else 0.0


def arc_angles(direction: str) -> Tuple[float, float]:
    """
    Start angle and sweep (radians) for an opening direction.

    The sweep is always 270 degrees; only where it starts changes.
    """
    center = OPENING_DEGREES.get(direction, OPENING_DEGREES["bottom"])
    start = center + 45.0
    return math.radians(start), math.radians(SWEEP_DEGREES)


def resolve_arc(preset: Preset) -> ArcGeometry:
    start, sweep = arc_angles(preset.opening_direction)
    return ArcGeometry(
        radius=_finite(preset.arc.radius),
        thickness=_finite(preset.arc.thickness),
        start=start,
        sweep=sweep,
        round_caps=preset.arc.round_caps,
    )


def resolve_bar(preset: Preset) -> BarGeometry:
    bar = preset.bar
    horizontal = bar.orientation == "horizontal"
    thickness = _finite(bar.thickness)
    radius = 0.0 if bar.square_ends else max(0.0, min(_finite(bar.corner_radius), thickness / 2))
    # A direction that belongs to the other orientation fills forwards.
    reversed_ = bar.direction == ("rtl" if horizontal else "btt")
    return BarGeometry(
        horizontal=horizontal,
        reversed=reversed_,
        length=_finite(bar.length),
        thickness=thickness,
        corner_radius=radius,
    )


def bar_span_rect(bar: BarGeometry, offset: float, length: float) -> Rect:
    """
    Rectangle covering ``[offset, offset + length]`` measured from the bar's
    zero end.
    """
    full = bar.rect
    if bar.reversed:
        along = bar.length - (offset + length)
    else:
        along = offset
    if bar.horizontal:
        return Rect(full.x + along, full.y, length, full.h)
    return Rect(full.x, full.y + along, full.w, length)


def bar_fill_rect(bar: BarGeometry, progress: float) -> Rect:
    return bar_span_rect(bar, 0.0, bar.length * clamp01(progress))


def clamp01(v: float) -> float:
    if not math.isfinite(v):
        return 0.0
    return max(0.0, min(1.0, v))


def segment_gap(main: MainStroke, thickness: float) -> float:
    """Pixel gap between segments, limited to ``0.8 x thickness``."""
    return max(0.0, min(main.segment_gap, thickness * MAX_GAP_RATIO))


def segment_spans(extent: float, count: int, gap: float) -> List[Span]:
    """
    Lay ``count`` equal segments separated by ``gap`` over ``extent``.

    The segments plus the gaps between them always add up to ``extent``; a
    gap too wide to leave room for the segments is shrunk until they are
    zero length.
    """
    count = max(1, int(count))
    extent = max(0.0, extent)
    gap = max(0.0, gap)
    if count > 1:
        gap = min(gap, extent / (count - 1))
    else:
        gap = 0.0
    seg = (extent - (count - 1) * gap) / count
    return [Span(i * (seg + gap), seg) for i in range(count)]


def arc_segment_spans(arc: ArcGeometry, main: MainStroke) -> List[Span]:
    gap = arc.angular(segment_gap(main, arc.thickness))
    return segment_spans(arc.sweep, main.segments, gap)


def bar_segment_spans(bar: BarGeometry, main: MainStroke) -> List[Span]:
    return segment_spans(bar.length, main.segments, segment_gap(main, bar.thickness))


def wipe_fraction(index: int, progress: float, count: int) -> float:
    """
    How much of segment ``index`` is drawn at ``progress``.

    Segments before the boundary are full, the boundary segment is partial
    and everything after it is empty.
    """
    filled = clamp01(progress) * max(1, count)
    whole = math.floor(filled)
    if index < whole:
        return 1.0
    if index == whole:
        return filled - whole
    return 0.0


def content_bounds(preset: Preset) -> Tuple[float, float]:
    """
    Width and height the gauge needs, glow and padding included.

    Used to shrink a gauge that would not fit its canvas.
    """
    glow = read_glow(preset)
    base = preset.base

    if preset.mode == "arc":
        arc = resolve_arc(preset)
        base_thick = arc.thickness * base.thickness_scale if base.enabled else 0.0
        effective = max(arc.thickness, base_thick, glow_outer_width(glow, arc.thickness))
        half = effective / 2
        cap = half if arc.round_caps else 0.0
        total = (arc.radius + half + cap) * 2 + CONTENT_PADDING * 2
        return total, total

    bar = resolve_bar(preset)
    base_thick = bar.thickness * base.thickness_scale if base.enabled else 0.0
    glow_width = glow_outer_width(glow, bar.thickness)
    across = max(bar.thickness, base_thick, glow_width)
    along = bar.length + glow_width
    if bar.horizontal:
        return along + CONTENT_PADDING, across + CONTENT_PADDING
    return across + CONTENT_PADDING, along + CONTENT_PADDING

"""
Paints: solid colors and two-point linear gradients.

A solid color is just a gradient whose stops all share one color, so every
fill goes through the same code. Gradients run along the diagonal of the
shape's bounding rectangle, from ``(x, y)`` to ``(x + w, y + h)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from .colors import RGBA, parse_color, with_opacity
from .geometry import Rect
from .preset import GradientStop, MainStroke, WarningSide

EPSILON = 1e-6

Stop = Tuple[float, RGBA]
StopLike = Union[GradientStop, Tuple[float, object]]


def _as_stop(stop: StopLike) -> Stop:
    if isinstance(stop, GradientStop):
        return float(stop.pos), parse_color(stop.color)
    pos, color = stop
    return float(pos), parse_color(color)


def sort_stops(stops: Iterable[StopLike]) -> Tuple[Stop, ...]:
    """Normalize stops and sort them by position (stable for equal positions)."""
    return tuple(sorted((_as_stop(s) for s in stops), key=lambda s: s[0]))


def sample_gradient(stops: Sequence[StopLike], t: float) -> RGBA:
    """
    Color of a gradient at ``t``.

    ``t`` is clamped to [0, 1]. Outside the range covered by the stops the
    nearest end stop's color is returned; inside it the RGBA channels of the
    two bracketing stops are interpolated independently.
    """
    ordered = sort_stops(stops)
    if not ordered:
        raise ValueError("gradient has no stops")
    t = max(0.0, min(1.0, float(t)))

    if t <= ordered[0][0]:
        return ordered[0][1]
    if t >= ordered[-1][0]:
        return ordered[-1][1]

    for (a_pos, a_col), (b_pos, b_col) in zip(ordered, ordered[1:]):
        if a_pos <= t <= b_pos:
            tt = (t - a_pos) / max(b_pos - a_pos, EPSILON)
            return tuple(a + (b - a) * tt for a, b in zip(a_col, b_col))  # type: ignore[return-value]
    return ordered[-1][1]


@dataclass(frozen=True)
class Paint:
    """A linear gradient bound to a rectangle in canvas space."""

    stops: Tuple[Stop, ...]
    rect: Rect

    @classmethod
    def solid(cls, color, rect: Rect = Rect(0.0, 0.0, 1.0, 1.0)) -> "Paint":
        rgba = parse_color(color)
        return cls(stops=((0.0, rgba), (1.0, rgba)), rect=rect)

    @classmethod
    def gradient(cls, stops: Iterable[StopLike], rect: Rect) -> "Paint":
        return cls(stops=sort_stops(stops), rect=rect)

    @property
    def is_solid(self) -> bool:
        first = self.stops[0][1]
        return all(color == first for _pos, color in self.stops)

    def color_at(self, t: float) -> RGBA:
        return sample_gradient(self.stops, t)

    def field(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Evaluate the paint at canvas-space points.

        Args:
            xs: Array of x coordinates, broadcastable against ``ys``.
            ys: Array of y coordinates.

        Returns:
            Array of shape ``broadcast(xs, ys).shape + (4,)`` with straight
            (not premultiplied) RGBA in [0, 1].
        """
        shape = np.broadcast(xs, ys).shape
        if self.is_solid:
            return np.broadcast_to(np.asarray(self.stops[0][1], dtype=np.float64), shape + (4,))

        r = self.rect
        dx, dy = r.w, r.h
        length_sq = dx * dx + dy * dy
        if length_sq <= EPSILON:
            t = np.zeros(shape)
        else:
            t = ((xs - r.x) * dx + (ys - r.y) * dy) / length_sq
            t = np.clip(np.broadcast_to(t, shape), 0.0, 1.0)

        positions = np.array([pos for pos, _c in self.stops], dtype=np.float64)
        colors = np.array([c for _p, c in self.stops], dtype=np.float64)
        out = np.empty(shape + (4,), dtype=np.float64)
        for channel in range(4):
            out[..., channel] = np.interp(t, positions, colors[:, channel])
        return out


def main_stops(main: MainStroke) -> Tuple[Stop, ...]:
    if main.fill_mode == "solid":
        rgba = parse_color(main.color_solid)
        return ((0.0, rgba), (1.0, rgba))
    return sort_stops(main.gradient.stops)


def main_paint(main: MainStroke, rect: Rect) -> Paint:
    return Paint(stops=main_stops(main), rect=rect)


def warning_paint(side: WarningSide, rect: Rect) -> Paint:
    if side.mode == "solid":
        return Paint.solid(side.color_solid, rect)
    return Paint.gradient(side.gradient.stops, rect)


def solid_paint(color, opacity: float = 1.0) -> Paint:
    return Paint.solid(with_opacity(color, opacity))

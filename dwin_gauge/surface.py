"""
Offscreen raster surface.

Shapes are rasterized by matplotlib's Agg renderer into a coverage mask
(white on transparent, antialiased), then painted and composited with numpy
into a premultiplied float RGBA buffer. Keeping paint and compositing on our
side gives us what matplotlib lacks: gradients bound to an arbitrary rectangle
and additive ("lighter") blending.

Each surface owns a private Figure and Agg canvas and never touches pyplot's
global state, so separate surfaces can be used from separate threads.
"""

from __future__ import annotations

import io
import math
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

import numpy as np
from matplotlib import image as mpimg
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import FancyBboxPatch, Patch, PathPatch, Rectangle
from matplotlib.path import Path

from .colors import parse_color
from .paint import Paint

# One figure inch per pixel keeps the Agg buffer exactly width x height.
_DPI = 1.0
_POINTS_PER_PIXEL = 72.0 / _DPI

SOURCE_OVER = "source-over"
LIGHTER = "lighter"


class Surface:
    """
    A width x height RGBA raster with a canvas-like drawing API.

    Coordinates passed to drawing methods are in user space; the current
    transform (uniform scale plus translation, see :meth:`translate` and
    :meth:`scale`) maps them to pixels.
    """

    def __init__(self, width: int, height: int):
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self._pixels = np.zeros((self.height, self.width, 4), dtype=np.float64)

        self._figure = Figure(figsize=(self.width / _DPI, self.height / _DPI), dpi=_DPI)
        self._figure.patch.set_visible(False)
        self._canvas = FigureCanvasAgg(self._figure)
        ax = self._figure.add_axes((0.0, 0.0, 1.0, 1.0))
        ax.set_axis_off()
        ax.patch.set_visible(False)
        # Data coordinates are pixel coordinates, y down like the buffer rows.
        ax.set_xlim(0, self.width)
        ax.set_ylim(self.height, 0)
        ax.set_autoscale_on(False)
        self._axes = ax

        self._scale = 1.0
        self._offset = (0.0, 0.0)
        self._saved: List[Tuple[float, Tuple[float, float]]] = []
        self._fields: Dict[Tuple[Paint, float, Tuple[float, float]], np.ndarray] = {}

    # ------------------------------------------------------------------
    # state

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def reset(self) -> None:
        """Clear every pixel and drop the transform and cached paint fields."""
        self._pixels.fill(0.0)
        self._scale = 1.0
        self._offset = (0.0, 0.0)
        self._saved.clear()
        self._fields.clear()

    def translate(self, dx: float, dy: float) -> None:
        ox, oy = self._offset
        self._offset = (ox + dx * self._scale, oy + dy * self._scale)

    def scale(self, s: float) -> None:
        if not math.isfinite(s) or s <= 0:
            s = 0.0
        self._scale *= s

    @contextmanager
    def saved(self) -> Iterator["Surface"]:
        """Restore the current transform when the block exits."""
        self._saved.append((self._scale, self._offset))
        try:
            yield self
        finally:
            self._scale, self._offset = self._saved.pop()

    def to_pixels(self, x: float, y: float) -> Tuple[float, float]:
        return x * self._scale + self._offset[0], y * self._scale + self._offset[1]

    def center(self) -> Tuple[float, float]:
        """User-space coordinates of the middle of the raster."""
        if self._scale <= 0:
            return 0.0, 0.0
        return (
            (self.width / 2 - self._offset[0]) / self._scale,
            (self.height / 2 - self._offset[1]) / self._scale,
        )

    # ------------------------------------------------------------------
    # coverage masks

    def _rasterize(self, patch: Patch) -> np.ndarray:
        patch.set_antialiased(True)
        patch.set_snap(False)
        self._axes.add_patch(patch)
        try:
            self._canvas.draw()
            rgba = np.asarray(self._canvas.buffer_rgba())
            coverage = rgba[: self.height, : self.width, 3].astype(np.float64) / 255.0
        finally:
            patch.remove()
        return coverage

    def _empty(self) -> np.ndarray:
        return np.zeros((self.height, self.width), dtype=np.float64)

    def arc_coverage(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float,
        end: float,
        width: float,
        round_caps: bool = False,
    ) -> np.ndarray:
        """Mask of an arc stroked clockwise from ``start`` to ``end`` (radians)."""
        line = width * self._scale
        r = radius * self._scale
        if line <= 0 or r <= 0 or end <= start:
            return self._empty()

        unit = Path.arc(math.degrees(start), math.degrees(end))
        px, py = self.to_pixels(cx, cy)
        path = Path(unit.vertices * r + (px, py), unit.codes)
        patch = PathPatch(
            path,
            fill=False,
            edgecolor="white",
            linewidth=line * _POINTS_PER_PIXEL,
            capstyle="round" if round_caps else "butt",
            joinstyle="round",
        )
        return self._rasterize(patch)

    def _rect_patch(self, x: float, y: float, w: float, h: float, radius: float, **kwargs) -> Patch:
        px, py = self.to_pixels(x, y)
        pw, ph = w * self._scale, h * self._scale
        pr = max(0.0, min(radius * self._scale, pw / 2, ph / 2))
        if pr <= 0:
            return Rectangle((px, py), pw, ph, **kwargs)
        return FancyBboxPatch((px, py), pw, ph, boxstyle=f"round,pad=0,rounding_size={pr}", **kwargs)

    def round_rect_coverage(self, x: float, y: float, w: float, h: float, radius: float) -> np.ndarray:
        """Mask of a filled rectangle with rounded corners."""
        if w <= 0 or h <= 0 or self._scale <= 0:
            return self._empty()
        patch = self._rect_patch(x, y, w, h, radius, facecolor="white", edgecolor="none", linewidth=0)
        return self._rasterize(patch)

    def round_rect_outline_coverage(
        self, x: float, y: float, w: float, h: float, radius: float, width: float
    ) -> np.ndarray:
        """Mask of a rounded rectangle's outline stroked ``width`` wide."""
        line = width * self._scale
        if w <= 0 or h <= 0 or line <= 0:
            return self._empty()
        patch = self._rect_patch(
            x,
            y,
            w,
            h,
            radius,
            fill=False,
            edgecolor="white",
            linewidth=line * _POINTS_PER_PIXEL,
            joinstyle="miter",
        )
        return self._rasterize(patch)

    # ------------------------------------------------------------------
    # painting

    def _paint_field(self, paint: Paint) -> np.ndarray:
        key = (paint, self._scale, self._offset)
        field = self._fields.get(key)
        if field is None:
            s = self._scale if self._scale > 0 else 1.0
            xs = (np.arange(self.width, dtype=np.float64) + 0.5 - self._offset[0]) / s
            ys = (np.arange(self.height, dtype=np.float64) + 0.5 - self._offset[1]) / s
            field = paint.field(xs[np.newaxis, :], ys[:, np.newaxis])
            self._fields[key] = field
        return field

    def composite(self, coverage: np.ndarray, paint: Paint, alpha: float = 1.0, op: str = SOURCE_OVER) -> None:
        """
        Paint ``coverage`` with ``paint`` at ``alpha`` onto the raster.

        ``source-over`` is normal alpha blending; ``lighter`` adds the source
        to what is already there, saturating at 1.
        """
        if op not in (SOURCE_OVER, LIGHTER):
            raise ValueError(f"unknown composite operation {op!r}")
        alpha = max(0.0, min(1.0, alpha))
        if alpha <= 0 or not coverage.any():
            return

        color = self._paint_field(paint)
        a = coverage * color[..., 3] * alpha
        src = color[..., :3] * a[..., np.newaxis]
        dst = self._pixels

        if op == LIGHTER:
            np.minimum(dst[..., :3] + src, 1.0, out=dst[..., :3])
            np.minimum(dst[..., 3] + a, 1.0, out=dst[..., 3])
        else:
            keep = 1.0 - a
            dst[..., :3] = src + dst[..., :3] * keep[..., np.newaxis]
            dst[..., 3] = a + dst[..., 3] * keep

    def fill(self, color) -> None:
        """Cover the whole raster with ``color``, ignoring the transform."""
        rgba = parse_color(color)
        if rgba[3] <= 0:
            return
        self.composite(np.ones((self.height, self.width)), Paint.solid(rgba))

    def stroke_arc(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float,
        end: float,
        width: float,
        paint: Paint,
        round_caps: bool = False,
        alpha: float = 1.0,
        op: str = SOURCE_OVER,
    ) -> None:
        self.composite(self.arc_coverage(cx, cy, radius, start, end, width, round_caps), paint, alpha, op)

    def fill_round_rect(
        self, x: float, y: float, w: float, h: float, radius: float, paint: Paint, alpha: float = 1.0, op: str = SOURCE_OVER
    ) -> None:
        self.composite(self.round_rect_coverage(x, y, w, h, radius), paint, alpha, op)

    def stroke_round_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        radius: float,
        width: float,
        paint: Paint,
        alpha: float = 1.0,
        op: str = SOURCE_OVER,
    ) -> None:
        self.composite(self.round_rect_outline_coverage(x, y, w, h, radius, width), paint, alpha, op)

    # ------------------------------------------------------------------
    # output

    def to_rgba8(self) -> np.ndarray:
        """Straight-alpha 8-bit RGBA copy of the raster, rows top to bottom."""
        px = self._pixels
        alpha = px[..., 3:4]
        rgb = np.zeros_like(px[..., :3])
        np.divide(px[..., :3], alpha, out=rgb, where=alpha > 0)
        out = np.empty((self.height, self.width, 4), dtype=np.uint8)
        out[..., :3] = np.clip(np.rint(rgb * 255.0), 0, 255)
        out[..., 3] = np.clip(np.rint(px[..., 3] * 255.0), 0, 255)
        return out

    def encode_png(self) -> bytes:
        """
        PNG bytes of the raster.

        No software/time metadata is written, so equal pixels give equal bytes.
        """
        buf = io.BytesIO()
        mpimg.imsave(buf, self.to_rgba8(), format="png", metadata={"Software": None})
        return buf.getvalue()

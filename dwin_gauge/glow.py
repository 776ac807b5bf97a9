"""
Glow synthesis.

There is no blur here. A glow is a handful of extra strokes of the main path,
each a little wider and fainter than the last, composited additively so the
overlap brightens. Three styles exist:

* ``soft``   - a halo that fades outwards and/or inwards over many passes
* ``ring``   - a few strictly outward rings
* ``legacy`` - the two-pass "double" glow older presets were tuned for

:func:`read_glow` normalizes the preset's glow block once per frame; drawing
code only ever sees the resulting :class:`GlowConfig`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List

from .preset import Preset

GLOW_THICKNESS_LIMIT = 20.0
LEGACY_THICKNESS_LIMIT = 40.0
MAX_RING_PASSES = 12


def _clamp(v: float, low: float, high: float) -> float:
    return max(low, min(high, v))


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def _thickness_factor(raw: float, limit: float) -> float:
    # Perceptual curve: small slider values stay subtle, the top end spreads wide.
    if raw <= 0:
        return 0.0
    return 0.2 + math.pow(_clamp(raw, 0.0, limit) / limit, 0.9) * 8.8


@dataclass(frozen=True)
class GlowConfig:
    enabled: bool
    mode: str
    per_segment: bool
    halo_inner: bool
    halo_outer: bool
    thickness: float
    ring_passes: int
    legacy_thickness: float
    strength: float


@dataclass(frozen=True)
class GlowPass:
    width: float
    alpha: float


def read_glow(preset: Preset) -> GlowConfig:
    g = preset.glow
    return GlowConfig(
        enabled=g.enabled,
        mode=g.mode,
        per_segment=g.per_segment,
        halo_inner=g.halo_inner,
        halo_outer=g.halo_outer,
        thickness=_thickness_factor(g.thickness, GLOW_THICKNESS_LIMIT),
        ring_passes=int(_clamp(g.ring_passes, 0, MAX_RING_PASSES)),
        legacy_thickness=_thickness_factor(g.legacy_outer_thickness, LEGACY_THICKNESS_LIMIT),
        strength=_clamp(g.strength, 0.0, 100.0),
    )


def soft_halo_passes(base_width: float, glow: GlowConfig) -> List[GlowPass]:
    if (not glow.halo_inner and not glow.halo_outer) or glow.thickness <= 0 or glow.strength <= 0 or base_width <= 0:
        return []
    base_alpha = _clamp(math.pow(glow.strength / 50.0, 1.2), 0.02, 0.65)
    count = max(4, _round_half_up(8 + glow.thickness * 2.5))
    spread = base_width * (0.1 + glow.thickness * 0.45)

    passes = []
    for i in range(count):
        t = i / (count - 1)
        alpha = base_alpha * (1 - t * 0.9)
        if glow.halo_outer:
            passes.append(GlowPass(base_width + spread * t, alpha))
        if glow.halo_inner:
            passes.append(GlowPass(base_width * max(0.15, 1 - t * 0.9), alpha))
    return passes


def ring_passes(base_width: float, glow: GlowConfig) -> List[GlowPass]:
    count = glow.ring_passes
    if count <= 0 or glow.thickness <= 0 or glow.strength <= 0 or base_width <= 0:
        return []
    base_alpha = _clamp(math.pow(glow.strength / 55.0, 1.1), 0.05, 0.7)
    spread = base_width * (0.05 + glow.thickness * 0.15)

    passes = []
    for i in range(count):
        t = i / max(1, count - 1)
        passes.append(GlowPass(base_width + spread * t, base_alpha * (1 - t * 0.5)))
    return passes


def legacy_passes(base_width: float, glow: GlowConfig) -> List[GlowPass]:
    if glow.legacy_thickness <= 0 or glow.strength <= 0 or base_width <= 0:
        return []
    base_alpha = _clamp(math.pow(glow.strength / 60.0, 1.2), 0.08, 0.85)
    spread = base_width * (0.05 + glow.legacy_thickness * 0.25)
    return [
        GlowPass(base_width + spread, base_alpha * 0.6),
        GlowPass(base_width * 0.75, base_alpha * 0.3),
    ]


_PASS_BUILDERS = {
    "soft": soft_halo_passes,
    "ring": ring_passes,
    "legacy": legacy_passes,
}


def glow_passes(base_width: float, glow: GlowConfig) -> List[GlowPass]:
    """Every stroke a glow needs, in drawing order. Empty when glow is off."""
    if not glow.enabled:
        return []
    return _PASS_BUILDERS.get(glow.mode, soft_halo_passes)(base_width, glow)


def draw_glow(stroke: Callable[[float, float], None], base_width: float, glow: GlowConfig) -> int:
    """
    Run ``stroke(width, alpha)`` for every glow pass.

    The callback strokes the glowing path additively; this module does not
    know whether that path is an arc, a bar outline or a single segment.

    Returns:
        int: Number of passes drawn.
    """
    passes = glow_passes(base_width, glow)
    for p in passes:
        stroke(p.width, p.alpha)
    return len(passes)


def use_per_segment_glow(glow: GlowConfig, segmented: bool, round_caps: bool) -> bool:
    """
    Whether glow is drawn around each visible segment or once over the filled
    path. Round caps always fall back to the single unified glow.
    """
    return segmented and glow.per_segment and not round_caps


def glow_outer_width(glow: GlowConfig, base_width: float) -> float:
    """Widest stroke the glow will draw, 0 when it draws nothing outward."""
    if not glow.enabled or base_width <= 0:
        return 0.0
    if glow.mode == "soft":
        if not glow.halo_outer:
            return 0.0
        return base_width + base_width * (0.1 + glow.thickness * 0.45)
    if glow.mode == "ring":
        if glow.ring_passes <= 0:
            return 0.0
        return base_width + base_width * (0.05 + glow.thickness * 0.15)
    return base_width + base_width * (0.05 + glow.legacy_thickness * 0.25)

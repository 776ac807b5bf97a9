"""
Color helpers.

Presets carry colors the way the web editor wrote them: ``#RGB``,
``#RRGGBB``, ``#RRGGBBAA``, ``rgb(r, g, b)``, ``rgba(r, g, b, a)``, named
colors, or ``"transparent"``. Everything is normalized to an RGBA tuple of
floats in [0, 1].
"""

import re
from typing import Tuple

from matplotlib.colors import to_hex as mpl_to_hex
from matplotlib.colors import to_rgba

RGBA = Tuple[float, float, float, float]

TRANSPARENT: RGBA = (0.0, 0.0, 0.0, 0.0)

_CSS_FUNC = re.compile(r"^rgba?\(([^)]*)\)$", re.IGNORECASE)


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def parse_color(color) -> RGBA:
    """
    Convert a preset color into an RGBA tuple.

    Raises:
        ValueError: If the value is not a color matplotlib or the CSS
            ``rgb()``/``rgba()`` syntax understands.
    """
    if isinstance(color, tuple) and len(color) in (3, 4):
        parts = [float(c) for c in color]
        if len(parts) == 3:
            parts.append(1.0)
        return tuple(_clamp01(p) for p in parts)  # type: ignore[return-value]
    if not isinstance(color, str):
        raise ValueError(f"not a color: {color!r}")

    text = color.strip()
    if text.lower() == "transparent":
        return TRANSPARENT

    match = _CSS_FUNC.match(text)
    if match:
        fields = [p.strip() for p in match.group(1).split(",")]
        if len(fields) not in (3, 4):
            raise ValueError(f"not a color: {color!r}")
        try:
            r, g, b = (float(f) for f in fields[:3])
            a = float(fields[3]) if len(fields) == 4 else 1.0
        except ValueError:
            raise ValueError(f"not a color: {color!r}") from None
        return (_clamp01(r / 255.0), _clamp01(g / 255.0), _clamp01(b / 255.0), _clamp01(a))

    # Short hex (#abc) is expanded by matplotlib as well, but not #abcd.
    try:
        return tuple(float(c) for c in to_rgba(text))  # type: ignore[return-value]
    except ValueError:
        raise ValueError(f"not a color: {color!r}") from None


def with_opacity(color, opacity: float) -> RGBA:
    """Multiply a color's alpha by ``opacity`` (clamped to [0, 1])."""
    r, g, b, a = parse_color(color)
    return (r, g, b, _clamp01(a * _clamp01(opacity)))


def to_hex(color) -> str:
    """
    Best ``#rrggbb`` guess for a color, alpha dropped.

    Used to seed color pickers, which only speak opaque hex.
    """
    try:
        rgba = parse_color(color)
    except ValueError:
        return "#ffffff"
    return mpl_to_hex(rgba[:3])


def to_css(rgba: RGBA) -> str:
    r, g, b, a = rgba
    return f"rgba({round(r * 255)},{round(g * 255)},{round(b * 255)},{round(a, 4):g})"

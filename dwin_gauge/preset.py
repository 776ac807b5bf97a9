"""
Preset model.

A preset is the full declarative description of one gauge design. It is
validated once, when it enters the engine, and is immutable afterwards:
editors produce a new preset through :mod:`dwin_gauge.updates` instead of
mutating one in place.

Field names are snake_case. The camelCase keys written by the browser
editor (``openingDirection``, ``sameGeometryAsMain``, ``frame`` ...) are
accepted on input so saved presets keep loading.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .colors import parse_color
from .errors import PresetError

log = logging.getLogger(__name__)

FillMode = Literal["solid", "gradient2", "gradient3"]
OpeningDirection = Literal["top", "right", "bottom", "left"]
BarOrientation = Literal["horizontal", "vertical"]
BarDirection = Literal["ltr", "rtl", "ttb", "btt"]
GlowMode = Literal["soft", "ring", "legacy"]

MAX_SEGMENTS = 100

# Keys the web editor stores next to the design that mean nothing to the engine.
_EDITOR_ONLY_KEYS = ("theme", "usability")


def _finite_non_negative(v: float) -> float:
    if v is None or not math.isfinite(v) or v < 0:
        return 0.0
    return float(v)


def _clamp(v: float, low: float, high: float) -> float:
    if v is None or not math.isfinite(v):
        return low
    return max(low, min(high, float(v)))


def _check_color(v: str) -> str:
    parse_color(v)
    return v


class _Model(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GradientStop(_Model):
    """A color anchored at a normalized position along a paint axis."""

    pos: float
    color: str

    @field_validator("pos")
    @classmethod
    def _clamp_pos(cls, v: float) -> float:
        return _clamp(v, 0.0, 1.0)

    @field_validator("color")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        return _check_color(v)


def default_gradient() -> List[GradientStop]:
    return [GradientStop(pos=0.0, color="#00E0FF"), GradientStop(pos=1.0, color="#FFD400")]


def default_stops(mode: FillMode) -> List[GradientStop]:
    """Stops an editor seeds when the user switches fill mode."""
    if mode == "gradient2":
        return [GradientStop(pos=0.0, color="#00ff00"), GradientStop(pos=1.0, color="#ff0000")]
    if mode == "gradient3":
        return [
            GradientStop(pos=0.0, color="#00ff00"),
            GradientStop(pos=0.5, color="#ffff00"),
            GradientStop(pos=1.0, color="#ff0000"),
        ]
    return [GradientStop(pos=0.0, color="#ffffff")]


class Gradient(_Model):
    stops: List[GradientStop] = Field(default_factory=default_gradient)


class CanvasOptions(_Model):
    width: int = 512
    height: int = 512
    background: str = "transparent"
    # Shrink the drawing when the gauge envelope is larger than the canvas.
    fit_content: bool = True

    @field_validator("width", "height")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return max(1, v)

    @field_validator("background")
    @classmethod
    def _valid_background(cls, v: str) -> str:
        return _check_color(v)


class ArcOptions(_Model):
    radius: float = 200.0
    thickness: float = 24.0
    round_caps: bool = True

    @field_validator("radius", "thickness")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)


class BarOptions(_Model):
    orientation: BarOrientation = "horizontal"
    direction: BarDirection = "ltr"
    length: float = 420.0
    thickness: float = 24.0
    corner_radius: float = 12.0
    square_ends: bool = False

    @field_validator("length", "thickness", "corner_radius")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)


class BaseStroke(_Model):
    """The background track drawn under the progress stroke."""

    enabled: bool = True
    color: str = "rgba(50,50,50,1)"
    opacity: float = 0.6
    same_geometry_as_main: bool = True
    thickness_scale: float = 1.0

    @model_validator(mode="before")
    @classmethod
    def _drop_theme_preset(cls, data: Any) -> Any:
        # The web editor remembers which light/dark swatch seeded the color.
        if isinstance(data, dict) and "preset" in data:
            data = {k: v for k, v in data.items() if k != "preset"}
        return data

    @field_validator("opacity")
    @classmethod
    def _clamp_opacity(cls, v: float) -> float:
        return _clamp(v, 0.0, 1.0)

    @field_validator("thickness_scale")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)

    @field_validator("color")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        return _check_color(v)


class BorderOptions(_Model):
    enabled: bool = False
    color: str = "rgba(255,255,255,0.9)"
    thickness: float = 1.35  # x main thickness

    @field_validator("thickness")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)

    @field_validator("color")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        return _check_color(v)


def _main_gradient() -> Gradient:
    return Gradient(
        stops=[
            GradientStop(pos=0.0, color="#00E0FF"),
            GradientStop(pos=0.5, color="#00FF88"),
            GradientStop(pos=1.0, color="#FFD400"),
        ]
    )


class MainStroke(_Model):
    """The progress stroke."""

    fill_mode: FillMode = "gradient3"
    color_solid: str = "#00C2FF"
    gradient: Gradient = Field(default_factory=_main_gradient)
    segmented: bool = False
    segments: int = 16
    segment_gap: float = 2.0
    border: BorderOptions = Field(
        default_factory=BorderOptions,
        validation_alias=AliasChoices("border", "frame"),
    )

    @field_validator("segments")
    @classmethod
    def _segment_range(cls, v: int) -> int:
        return max(1, min(MAX_SEGMENTS, v))

    @field_validator("segment_gap")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)

    @field_validator("color_solid")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        return _check_color(v)

    @model_validator(mode="after")
    def _gradient_has_two_stops(self) -> "MainStroke":
        if self.fill_mode != "solid" and len(self.gradient.stops) < 2:
            log.warning(
                "main gradient has %d stop(s) for fill mode %s; using default gradient",
                len(self.gradient.stops),
                self.fill_mode,
            )
            object.__setattr__(self, "gradient", Gradient())
        return self


class WarningSide(_Model):
    enabled: bool = False
    length_pct: float = 0.15
    mode: Literal["solid", "gradient2"] = "solid"
    color_solid: str = "#00E0FF"
    gradient: Gradient = Field(default_factory=Gradient)

    @field_validator("length_pct")
    @classmethod
    def _clamp_length(cls, v: float) -> float:
        return _clamp(v, 0.0, 0.5)

    @field_validator("color_solid")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        return _check_color(v)

    @model_validator(mode="after")
    def _gradient_has_two_stops(self) -> "WarningSide":
        if self.mode != "solid" and len(self.gradient.stops) < 2:
            object.__setattr__(self, "gradient", Gradient())
        return self


def _start_warning() -> WarningSide:
    return WarningSide(
        enabled=False,
        length_pct=0.15,
        color_solid="#00E0FF",
        gradient=Gradient(stops=[GradientStop(pos=0, color="#00E0FF"), GradientStop(pos=1, color="#00B2FF")]),
    )


def _end_warning() -> WarningSide:
    return WarningSide(
        enabled=True,
        length_pct=0.20,
        color_solid="#FF3B30",
        gradient=Gradient(stops=[GradientStop(pos=0, color="#FFA500"), GradientStop(pos=1, color="#FF3B30")]),
    )


class Warnings(_Model):
    start: WarningSide = Field(default_factory=_start_warning)
    end: WarningSide = Field(default_factory=_end_warning)


class GlowOptions(_Model):
    enabled: bool = True
    mode: GlowMode = "soft"
    per_segment: bool = False
    strength: float = 18.0
    thickness: float = 1.25
    halo_inner: bool = False
    halo_outer: bool = True
    ring_passes: int = 3
    legacy_outer_thickness: float = 8.0

    @field_validator("strength")
    @classmethod
    def _clamp_strength(cls, v: float) -> float:
        return _clamp(v, 0.0, 100.0)

    @field_validator("thickness", "legacy_outer_thickness")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return _finite_non_negative(v)

    @field_validator("ring_passes")
    @classmethod
    def _non_negative_passes(cls, v: int) -> int:
        return max(0, v)


class Preset(_Model):
    """Full configuration for one gauge design."""

    mode: Literal["arc", "bar"] = "arc"
    opening_direction: OpeningDirection = "bottom"
    states: int = 16
    canvas: CanvasOptions = Field(default_factory=CanvasOptions)
    arc: ArcOptions = Field(default_factory=ArcOptions)
    bar: BarOptions = Field(default_factory=BarOptions)
    base: BaseStroke = Field(default_factory=BaseStroke)
    main: MainStroke = Field(default_factory=MainStroke)
    warnings: Warnings = Field(default_factory=Warnings)
    glow: GlowOptions = Field(default_factory=GlowOptions)
    name_prefix: str = "gauge"
    preset_name: str = "Default 270°"

    @model_validator(mode="before")
    @classmethod
    def _drop_editor_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if k not in _EDITOR_ONLY_KEYS}
        return data


def default_preset() -> Preset:
    return Preset()


def _is_file(text: str) -> bool:
    if text.lstrip().startswith("{"):
        return False
    try:
        return Path(text).is_file()
    except (OSError, ValueError):
        # Too long or not representable as a path: treat it as JSON text.
        return False


def load_preset(source: Union[Preset, Dict[str, Any], str, Path]) -> Preset:
    """
    Validate a preset coming from outside the engine.

    Args:
        source: An existing preset, a plain mapping, JSON text, or the path
            of a JSON file given as a :class:`~pathlib.Path` or a string.

    Raises:
        PresetError: If the file cannot be read or the data is not a valid
            preset.
    """
    if isinstance(source, Preset):
        return source
    if isinstance(source, str) and _is_file(source):
        source = Path(source)
    try:
        if isinstance(source, Path):
            return Preset.model_validate_json(source.read_text(encoding="utf-8"))
        if isinstance(source, str):
            return Preset.model_validate_json(source)
        return Preset.model_validate(source)
    except OSError as exc:
        raise PresetError(f"cannot read preset: {exc}") from exc
    except ValidationError as exc:
        raise PresetError(f"invalid preset: {exc}") from exc


def dump_preset(preset: Preset, camel_case: bool = False) -> str:
    """Serialize a preset to JSON, optionally with the web editor's key names."""
    return json.dumps(preset.model_dump(by_alias=camel_case), indent=2)

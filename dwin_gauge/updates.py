"""
Typed partial updates of a preset.

Editors never poke at a preset with dotted strings. They hand over a nested
mapping shaped like the preset (``{"main": {"segments": 10}}``) or a tuple
path, every key is checked against the model, and the result is validated as
a whole before it replaces the old preset.
"""

from typing import Any, Dict, Mapping, Sequence, Type

from pydantic import AliasChoices, BaseModel, ValidationError

from .errors import PresetError
from .preset import Preset


def _field_name(model_cls: Type[BaseModel], key: str) -> str:
    fields = model_cls.model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if info.alias == key:
            return name
        choices = info.validation_alias
        if isinstance(choices, AliasChoices) and key in choices.choices:
            return name
    raise PresetError(f"{model_cls.__name__} has no field {key!r}")


def _merge(model: BaseModel, patch: Mapping[str, Any]) -> Dict[str, Any]:
    data = model.model_dump()
    for key, value in patch.items():
        name = _field_name(type(model), key)
        current = getattr(model, name)
        if isinstance(current, BaseModel) and isinstance(value, Mapping):
            data[name] = _merge(current, value)
        elif isinstance(value, BaseModel):
            data[name] = value.model_dump()
        elif isinstance(value, (list, tuple)):
            data[name] = [v.model_dump() if isinstance(v, BaseModel) else v for v in value]
        else:
            data[name] = value
    return data


def merge_preset(preset: Preset, patch: Mapping[str, Any]) -> Preset:
    """
    Return a new preset with ``patch`` deep-merged into ``preset``.

    Raises:
        PresetError: On unknown keys or if the merged preset does not validate.
            The original preset is left untouched either way.
    """
    data = _merge(preset, patch)
    try:
        return Preset.model_validate(data)
    except ValidationError as exc:
        raise PresetError(f"invalid preset update: {exc}") from exc


def set_field(preset: Preset, path: Sequence[str], value: Any) -> Preset:
    """Set a single nested field, e.g. ``set_field(p, ("glow", "mode"), "ring")``."""
    if not path:
        raise PresetError("empty field path")
    patch: Dict[str, Any] = {path[-1]: value}
    for key in reversed(path[:-1]):
        patch = {key: patch}
    return merge_preset(preset, patch)

"""
Mapping between a preset and the flat session state the Streamlit sidebar
edits.

The sidebar only knows opaque hex colors and three fixed gradient slots, so a
preset cannot be rebuilt from widget values alone without losing alpha and
custom stop positions. :func:`patch_from_state` therefore diffs the widgets
against the preset they were seeded from and returns only what the user
actually changed.
"""

from typing import Any, Dict, List, Mapping

from .colors import parse_color, to_hex
from .preset import GradientStop, Preset, default_stops

# Session state key -> preset field path. Every sidebar widget edits one of these.
FIELDS = {
    'preset_name': ("preset_name",),
    'name_prefix': ("name_prefix",),
    'mode': ("mode",),
    'states': ("states",),
    'canvas_width': ("canvas", "width"),
    'canvas_height': ("canvas", "height"),
    'fit_content': ("canvas", "fit_content"),
    'opening_direction': ("opening_direction",),
    'arc_radius': ("arc", "radius"),
    'arc_thickness': ("arc", "thickness"),
    'round_caps': ("arc", "round_caps"),
    'bar_orientation': ("bar", "orientation"),
    'bar_direction': ("bar", "direction"),
    'bar_length': ("bar", "length"),
    'bar_thickness': ("bar", "thickness"),
    'corner_radius': ("bar", "corner_radius"),
    'square_ends': ("bar", "square_ends"),
    'base_enabled': ("base", "enabled"),
    'base_color': ("base", "color"),
    'base_opacity': ("base", "opacity"),
    'base_same_geometry': ("base", "same_geometry_as_main"),
    'base_thickness_scale': ("base", "thickness_scale"),
    'fill_mode': ("main", "fill_mode"),
    'color_solid': ("main", "color_solid"),
    'segmented': ("main", "segmented"),
    'segments': ("main", "segments"),
    'segment_gap': ("main", "segment_gap"),
    'border_enabled': ("main", "border", "enabled"),
    'border_color': ("main", "border", "color"),
    'border_thickness': ("main", "border", "thickness"),
    'glow_enabled': ("glow", "enabled"),
    'glow_mode': ("glow", "mode"),
    'glow_per_segment': ("glow", "per_segment"),
    'glow_strength': ("glow", "strength"),
    'glow_thickness': ("glow", "thickness"),
    'halo_inner': ("glow", "halo_inner"),
    'halo_outer': ("glow", "halo_outer"),
    'ring_passes': ("glow", "ring_passes"),
    'legacy_outer_thickness': ("glow", "legacy_outer_thickness"),
}

# Color pickers only speak opaque hex.
COLOR_KEYS = {'base_color', 'color_solid', 'border_color'}

STOP_KEYS = ('stop_0', 'stop_1', 'stop_2')


def lookup(preset, path):
    value = preset
    for name in path:
        value = getattr(value, name)
    return value


def _stop_index(key: str, count: int) -> int:
    # First, middle and last stop of however many the preset carries.
    return {'stop_0': 0, 'stop_1': count // 2, 'stop_2': count - 1}[key]


def stop_keys(fill_mode: str) -> List[str]:
    """Gradient slots the sidebar shows for ``fill_mode``."""
    if fill_mode == "gradient2":
        return ['stop_0', 'stop_2']
    if fill_mode == "gradient3":
        return list(STOP_KEYS)
    return []


def state_from_preset(preset: Preset) -> Dict[str, Any]:
    """Flatten a preset into the session state values the sidebar edits."""
    values = {}
    for key, path in FIELDS.items():
        value = lookup(preset, path)
        values[key] = to_hex(value) if key in COLOR_KEYS else value
    values['transparent_background'] = parse_color(preset.canvas.background)[3] == 0
    values['canvas_background'] = "#000000" if values['transparent_background'] else to_hex(preset.canvas.background)
    stops = preset.main.gradient.stops
    for key in STOP_KEYS:
        values[key] = to_hex(stops[_stop_index(key, len(stops))].color)
    values['preview_state'] = 0
    return values


def _set(patch: Dict[str, Any], path, value) -> None:
    node = patch
    for name in path[:-1]:
        node = node.setdefault(name, {})
    node[path[-1]] = value


def _gradient_patch(state: Mapping[str, Any], preset: Preset, seeded: Mapping[str, Any]):
    mode = state['fill_mode']
    keys = stop_keys(mode)
    if not keys:
        return None
    changed = [k for k in keys if state[k] != seeded[k]]
    if mode == seeded['fill_mode'] and not changed:
        return None

    current = list(preset.main.gradient.stops)
    if len(current) == len(keys):
        stops = current
    else:
        stops = default_stops(mode)
        # Unchanged slots keep the preset's own color, alpha included.
        for key in keys:
            if key not in changed:
                changed.append(key)
    for i, key in enumerate(keys):
        if key in changed:
            value = state[key] if state[key] != seeded[key] else current[_stop_index(key, len(current))].color
            stops[i] = GradientStop(pos=stops[i].pos, color=value)
    return {'stops': stops}


def patch_from_state(state: Mapping[str, Any], preset: Preset) -> Dict[str, Any]:
    """
    Nested update for ``merge_preset`` holding only what the widgets changed.

    Args:
        state: Current widget values, keyed like :func:`state_from_preset`.
        preset: The preset the widgets were seeded from.

    Returns:
        dict: Possibly empty patch. Fields whose widget still shows the seeded
        value are left out, so colors with alpha and custom gradient stops
        survive the round trip untouched.
    """
    seeded = state_from_preset(preset)
    patch: Dict[str, Any] = {}
    for key, path in FIELDS.items():
        if state[key] != seeded[key]:
            _set(patch, path, state[key])

    transparent = state['transparent_background']
    if transparent != seeded['transparent_background'] or (
        not transparent and state['canvas_background'] != seeded['canvas_background']
    ):
        _set(patch, ("canvas", "background"), "transparent" if transparent else state['canvas_background'])

    gradient = _gradient_patch(state, preset, seeded)
    if gradient is not None:
        _set(patch, ("main", "gradient"), gradient)
    return patch

import pytest

from dwin_gauge.config import get_settings
from dwin_gauge.preset import load_preset

_ENV_VARS = (
    "DWIN_GAUGE_LOG_LEVEL",
    "DWIN_GAUGE_RENDER_WARNINGS",
    "DWIN_GAUGE_EXPORT_WORKERS",
    "DWIN_GAUGE_ZIP_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings, whatever the shell exports."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def small_preset(**overrides):
    """
    A 128x128 gauge with nothing but the main stroke switched on.

    Keeps pixel assertions simple: no fit-to-canvas scaling, center (64, 64),
    arc radius 40 and thickness 10 with butt ends, bar 100 x 20 with square
    ends.
    """
    data = {
        "canvas": {"width": 128, "height": 128, "fit_content": False},
        "arc": {"radius": 40, "thickness": 10, "round_caps": False},
        "bar": {"length": 100, "thickness": 20, "square_ends": True},
        "base": {"enabled": False},
        "glow": {"enabled": False},
        "main": {"fill_mode": "solid", "color_solid": "#FF0000"},
        "states": 16,
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return load_preset(data)


@pytest.fixture
def preset():
    return small_preset()

import logging

from dwin_gauge.config import Settings, get_settings
from dwin_gauge.log import LOGGER_NAME, setup_logging


class TestSettings:
    def test_defaults(self):
        s = get_settings()
        assert s == Settings()
        assert s.to_dict() == {
            "log_level": "INFO",
            "render_warning_zones": False,
            "export_workers": 1,
            "zip_level": 6,
        }

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DWIN_GAUGE_LOG_LEVEL", "debug")
        monkeypatch.setenv("DWIN_GAUGE_RENDER_WARNINGS", "yes")
        monkeypatch.setenv("DWIN_GAUGE_EXPORT_WORKERS", "4")
        monkeypatch.setenv("DWIN_GAUGE_ZIP_LEVEL", "42")
        s = Settings.from_env()
        assert s.log_level == "DEBUG"
        assert s.render_warning_zones
        assert s.export_workers == 4
        assert s.zip_level == 9

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("DWIN_GAUGE_EXPORT_WORKERS", "many")
        assert Settings.from_env().export_workers == 1

    def test_cached_until_cleared(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DWIN_GAUGE_ZIP_LEVEL", "1")
        assert get_settings() is first
        get_settings.cache_clear()
        assert get_settings().zip_level == 1


class TestLogging:
    def test_setup_is_idempotent(self):
        logger = setup_logging("WARNING")
        count = len(logger.handlers)
        again = setup_logging("DEBUG")
        assert again is logger
        assert len(again.handlers) == count
        assert logger.level == logging.DEBUG
        assert logger.name == LOGGER_NAME

    def test_format(self):
        logger = setup_logging()
        handler = next(h for h in logger.handlers if getattr(h, "_dwin_gauge", False))
        record = logging.LogRecord("dwin_gauge.export", logging.INFO, __file__, 1, "hello", None, None)
        assert handler.format(record).endswith("| INFO     | dwin_gauge.export | hello")

import logging

from loancalc import __version__
from loancalc.config import Settings, get_settings


def test_defaults(monkeypatch):
    for key in ("LOG_LEVEL", "COMPARISON_MONTHS", "STATE_FILE", "FHA_LIMIT"):
        monkeypatch.delenv(f"LOANCALC_{key}", raising=False)
    s = Settings()
    assert s.log_level_int == logging.INFO
    assert s.comparison_months == 60
    assert s.state_file == "loancalc_state.json"
    assert s.fha_limit == 1209750


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LOANCALC_LOG_LEVEL", "debug")
    monkeypatch.setenv("LOANCALC_COMPARISON_MONTHS", "84")
    s = Settings()
    assert s.log_level_int == logging.DEBUG
    assert s.comparison_months == 84


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("LOANCALC_COMPARISON_MONTHS", "five years")
    monkeypatch.setenv("LOANCALC_LOG_LEVEL", "chatty")
    s = Settings()
    assert s.comparison_months == 60
    assert s.log_level_int == logging.INFO


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()


def test_version():
    assert __version__ == "0.1.0"


def test_configure_logging_quiets_reportlab(monkeypatch):
    monkeypatch.setenv("LOANCALC_LOG_LEVEL", "DEBUG")
    Settings().configure_logging()
    assert logging.getLogger("reportlab").level == logging.WARNING

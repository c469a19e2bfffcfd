"""Runtime settings read from ``LOANCALC_`` environment variables.

Policy tables (PMI grid, VA funding fees, HECM constants) live in
:mod:`loancalc.presets`; this module only covers knobs that differ between
deployments.

Environment Variables
---------------------
LOANCALC_LOG_LEVEL : str
    Logging level (default ``INFO``).
LOANCALC_LOG_FORMAT : str
    ``logging`` format string.
LOANCALC_COMPARISON_MONTHS : int
    Default horizon for net-cost comparisons (default 60).
LOANCALC_STATE_FILE : str
    Path of the saved-scenarios document.
LOANCALC_FHA_LIMIT : float
    Default HECM lending limit used by the form layer.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any

from loancalc.presets import HECM_FHA_LIMIT


def _get_env(key: str, default: Any, value_type: type = str) -> Any:
    """Read ``LOANCALC_<KEY>`` and convert it, falling back to ``default``."""
    env_value = os.environ.get(f"LOANCALC_{key.upper()}")
    if env_value is None:
        return default
    try:
        if value_type == bool:
            return env_value.lower() in ("true", "1", "yes", "on")
        if value_type == int:
            return int(env_value)
        if value_type == float:
            return float(env_value)
        return env_value
    except (ValueError, TypeError):
        return default


class Settings:
    """Settings loaded once from the environment."""

    def __init__(self) -> None:
        self.log_level: str = _get_env("LOG_LEVEL", "INFO", str)
        self.log_format: str = _get_env(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s", str
        )
        self.comparison_months: int = _get_env("COMPARISON_MONTHS", 60, int)
        self.state_file: str = _get_env("STATE_FILE", "loancalc_state.json", str)
        self.fha_limit: float = _get_env("FHA_LIMIT", HECM_FHA_LIMIT, float)

    @property
    def log_level_int(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def configure_logging(self) -> None:
        logging.basicConfig(level=self.log_level_int, format=self.log_format)
        # reportlab is chatty at DEBUG
        logging.getLogger("reportlab").setLevel(logging.WARNING)


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()

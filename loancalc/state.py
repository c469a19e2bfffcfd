import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel

from loancalc.config import get_settings

STATE_TYPE = "loancalc-scenarios"
STATE_VERSION = 1

# Only these envelope keys are read back; anything else in the file is ignored.
PERSISTED_KEYS = {"type", "version", "scenarios", "results"}

logger = logging.getLogger("loancalc.state")


def _serializable(value: Any) -> bool:
    return isinstance(value, (int, float, str, bool, list, dict, type(None)))


def empty_envelope() -> Dict[str, Any]:
    return {"type": STATE_TYPE, "version": STATE_VERSION, "scenarios": {}, "results": {}}


def build_envelope(
    scenarios: Mapping[str, Mapping[str, Any]],
    results: Optional[Mapping[str, BaseModel]] = None,
) -> Dict[str, Any]:
    """Wrap raw form fields (and optionally computed results) in the versioned envelope.

    Raw fields are stored as entered so a later release can re-coerce them;
    non-JSON values are dropped. Results are dumped in JSON mode.
    """

    envelope = empty_envelope()
    envelope["scenarios"] = {
        str(sid): {k: v for k, v in fields.items() if _serializable(v)} for sid, fields in scenarios.items()
    }
    envelope["results"] = {str(sid): r.model_dump(mode="json") for sid, r in (results or {}).items()}
    return envelope


def save_state(path, scenarios, results=None) -> bool:
    """Write the envelope to ``path``; returns ``False`` when the file cannot be written."""
    path = path or get_settings().state_file
    envelope = build_envelope(scenarios, results)
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2)
    except OSError as exc:
        logger.warning("Could not save state to %s: %s", path, exc)
        return False
    logger.debug("Saved %d scenarios to %s", len(envelope["scenarios"]), path)
    return True


def load_state(path=None) -> Dict[str, Any]:
    """Read a saved envelope; an unreadable or mismatched file yields an empty envelope."""
    path = path or get_settings().state_file
    if not os.path.exists(path):
        return empty_envelope()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read state from %s: %s", path, exc)
        return empty_envelope()

    if not isinstance(data, dict) or data.get("type") != STATE_TYPE or data.get("version") != STATE_VERSION:
        logger.warning("Ignoring state file %s with unexpected type/version", path)
        return empty_envelope()
    envelope = empty_envelope()
    for key in PERSISTED_KEYS - {"type", "version"}:
        if isinstance(data.get(key), dict):
            envelope[key] = data[key]
    return envelope

import json
import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; defaults to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def capability_overrides_from_env() -> dict:
    """CAPABILITY_OVERRIDES as JSON, e.g. '{"TEACHER": ["VIEW_CALENDAR"]}'."""
    raw = os.getenv("CAPABILITY_OVERRIDES", "").strip()
    if not raw:
        return {}
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError("CAPABILITY_OVERRIDES must be a JSON object of role -> [actions]")
    return value

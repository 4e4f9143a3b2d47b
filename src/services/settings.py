"""Settings service - persisted plugin settings with load/merge/save."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

import config

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {"excludeString": ""}


class Settings(BaseModel):
    """Plugin settings. Immutable: changes produce a new instance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Attachments whose path or name contains this (case-insensitive) stay put
    exclude_string: str = Field(default="", alias="excludeString")


def _settings_path(path: Path | None) -> Path:
    return path if path is not None else config.SETTINGS_FILE


def load_settings(path: Path | None = None) -> Settings:
    """Load persisted settings, shallow-merged over the defaults.

    Persisted keys win; missing keys fall back to DEFAULT_SETTINGS. A missing,
    unreadable, or invalid file yields the defaults.

    Args:
        path: Settings file. Defaults to config.SETTINGS_FILE.
    """
    settings_file = _settings_path(path)
    if not settings_file.exists():
        return Settings.model_validate(DEFAULT_SETTINGS)

    try:
        data = json.loads(settings_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read settings from %s: %s", settings_file, e)
        return Settings.model_validate(DEFAULT_SETTINGS)

    if not isinstance(data, dict):
        logger.warning("Ignoring non-object settings in %s", settings_file)
        return Settings.model_validate(DEFAULT_SETTINGS)

    try:
        return Settings.model_validate({**DEFAULT_SETTINGS, **data})
    except ValidationError as e:
        logger.warning("Invalid settings in %s: %s", settings_file, e)
        return Settings.model_validate(DEFAULT_SETTINGS)


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """Persist the full settings object as JSON."""
    settings_file = _settings_path(path)
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(
        json.dumps(settings.model_dump(by_alias=True), indent=2) + "\n",
        encoding="utf-8",
    )


# Process-wide settings, loaded on first use
_current: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _current
    if _current is None:
        _current = load_settings()
    return _current


def update_settings(**changes) -> Settings:
    """Replace the process-wide settings and persist them immediately.

    Args:
        **changes: Field values by Python name (e.g. exclude_string="assets").

    Returns:
        The new Settings instance.
    """
    global _current
    updated = Settings.model_validate({**get_settings().model_dump(), **changes})
    save_settings(updated)
    _current = updated
    logger.info("Settings updated: %s", updated.model_dump(by_alias=True))
    return updated


def reset_settings_cache() -> None:
    """Forget the process-wide settings. For testing only."""
    global _current
    _current = None

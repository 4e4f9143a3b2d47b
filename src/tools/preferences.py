"""Preference tools - view and change the plugin settings."""

from services.settings import get_settings, update_settings
from services.vault import ok

EXCLUDE_SETTING_NAME = "Exclude attachments containing"
EXCLUDE_SETTING_DESC = (
    "Any attachment whose file name or path contains this text "
    "(case-insensitive) will NOT be moved."
)
EXCLUDE_SETTING_PLACEHOLDER = "e.g. keep-here, assets, shared"


def read_settings() -> str:
    """Show the current settings."""
    settings = get_settings()
    return ok(
        settings.model_dump(by_alias=True),
        fields=[
            {
                "key": "excludeString",
                "name": EXCLUDE_SETTING_NAME,
                "description": EXCLUDE_SETTING_DESC,
                "placeholder": EXCLUDE_SETTING_PLACEHOLDER,
            }
        ],
    )


def set_exclude_string(exclude_string: str = "") -> str:
    """Set the text that keeps matching attachments in place.

    Any attachment whose file name or path contains this text
    (case-insensitive) will not be moved. An empty string disables the
    exclusion. The setting is saved immediately.

    Args:
        exclude_string: Text to match, e.g. "keep-here", "assets", "shared".
    """
    settings = update_settings(exclude_string=exclude_string)
    if settings.exclude_string.strip():
        message = f"Excluding attachments containing '{settings.exclude_string.strip()}'"
    else:
        message = "Exclusion cleared: all embedded attachments will be moved"
    return ok(message, settings=settings.model_dump(by_alias=True))

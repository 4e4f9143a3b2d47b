"""MCP tool implementations organized by category."""

from tools.attachments import (
    move_embedded_files,
)
from tools.preferences import (
    read_settings,
    set_exclude_string,
)

__all__ = [
    # attachments
    "move_embedded_files",
    # preferences
    "read_settings",
    "set_exclude_string",
]

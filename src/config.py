"""Shared configuration for move-attachment-files."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Vault path - where your Obsidian notes live
VAULT_PATH = Path(os.getenv("VAULT_PATH", "~/Documents/obsidian-vault")).expanduser()

# Directories to exclude when scanning vault
EXCLUDED_DIRS = {'.venv', '.trash', '.obsidian', '.git'}

# Plugin data file (same place Obsidian keeps a plugin's data.json)
SETTINGS_FILE = Path(
    os.getenv(
        "SETTINGS_FILE",
        str(VAULT_PATH / ".obsidian" / "plugins" / "move-attachment-files" / "data.json"),
    )
).expanduser()

# Command surface
COMMAND_NAME = "Move embedded files to note folder"

# Logging configuration
LOG_DIR = Path(os.getenv("LOG_DIR", str(VAULT_PATH / "logs"))).expanduser()
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))  # 5 MB
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))


def setup_logging(name: str) -> None:
    """Configure logging with both stderr and rotating file output.

    Args:
        name: Log file name without extension (e.g. "mcp", "move_attachments").
    """
    fmt = "%(asctime)s %(name)s %(levelname)s %(message)s"
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    stderr_handler = logging.StreamHandler()
    stderr_handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(stderr_handler)

    # Rotating file handler (best-effort, stderr-only if the dir is unwritable)
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_DIR / f"{name}.log",
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(file_handler)
    except OSError as e:
        root.warning("Could not set up file logging: %s (using stderr only)", e)

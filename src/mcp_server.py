#!/usr/bin/env python3
"""MCP server exposing the move-embedded-files command and its settings."""

import sys
from pathlib import Path

# Ensure src/ is on the import path when run from project root
sys.path.insert(0, str(Path(__file__).parent))

from mcp.server.fastmcp import FastMCP

from config import setup_logging
from tools import move_embedded_files, read_settings, set_exclude_string

mcp = FastMCP("move-attachment-files")

mcp.tool()(move_embedded_files)
mcp.tool(name="get_settings")(read_settings)
mcp.tool(name="update_settings")(set_exclude_string)


def main() -> None:
    setup_logging("mcp")
    mcp.run()


if __name__ == "__main__":
    main()

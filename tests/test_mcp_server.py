"""Tests for mcp_server.py - tool registration."""

import asyncio
import json

import mcp_server


def test_tools_registered():
    names = {tool.name for tool in asyncio.run(mcp_server.mcp.list_tools())}
    assert names == {"move_embedded_files", "get_settings", "update_settings"}


def test_move_tool_described_by_command_name():
    tools = {tool.name: tool for tool in asyncio.run(mcp_server.mcp.list_tools())}
    assert tools["move_embedded_files"].description.startswith("Move embedded files to note folder")


def test_update_settings_tool_runs(settings_file):
    result = json.loads(mcp_server.set_exclude_string("shared"))
    assert result["success"] is True
    assert json.loads(settings_file.read_text()) == {"excludeString": "shared"}

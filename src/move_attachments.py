#!/usr/bin/env python3
"""Move the files embedded in a note into a folder named after the note."""

import argparse
import json
import sys

from config import COMMAND_NAME, VAULT_PATH, setup_logging
from tools.attachments import move_embedded_files
from tools.preferences import set_exclude_string


def main(argv: list[str] | None = None) -> int:
    """Run the command for one note and print its notices.

    Returns:
        0 when the command ran, 1 when there was no note to run it on or the
        destination folder could not be created.
    """
    parser = argparse.ArgumentParser(prog="move-attachments", description=COMMAND_NAME)
    parser.add_argument("note", help="Path to the note (relative to the vault or absolute)")
    parser.add_argument(
        "--exclude",
        metavar="TEXT",
        help="Save a new exclusion string before running (empty string clears it)",
    )
    args = parser.parse_args(argv)

    setup_logging("move_attachments")

    if args.exclude is not None:
        print(json.loads(set_exclude_string(args.exclude))["message"])

    result = json.loads(move_embedded_files(args.note))
    for notice in result.get("notices", []):
        print(notice)
    if not result["success"]:
        if not result.get("notices"):
            print(result["error"], file=sys.stderr)
        print(f"Vault: {VAULT_PATH}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Embed scanner - find ![[...]] embeds in note text."""

import re

from pydantic import BaseModel

# ![[target]] or ![[target|alias]]
_EMBED_RE = re.compile(r"!\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")


class EmbedReference(BaseModel):
    """A single ![[...]] occurrence in note text."""

    target: str
    alias: str | None = None
    start: int
    end: int


def scan_embeds(text: str) -> list[EmbedReference]:
    """Return every embed in text, left to right.

    The alias part of ![[target|alias]] is kept on the reference but never
    used for resolution. Targets are not checked against the vault.
    """
    return [
        EmbedReference(
            target=match.group(1).strip(),
            alias=match.group(2),
            start=match.start(),
            end=match.end(),
        )
        for match in _EMBED_RE.finditer(text)
    ]

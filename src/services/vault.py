"""Vault service - path resolution, file index, link resolution, and moves."""

import json
import logging
import posixpath
import re
import shutil
import unicodedata
from pathlib import Path, PurePosixPath
from urllib.parse import quote, unquote

from config import EXCLUDED_DIRS, VAULT_PATH

logger = logging.getLogger(__name__)


# =============================================================================
# Response Envelope Helpers
# =============================================================================


def ok(data: str | dict | list | None = None, **kwargs) -> str:
    """Return a success JSON response.

    Args:
        data: Primary response data (string message, dict, or list).
        **kwargs: Additional fields to include in the response.

    Returns:
        JSON string with {"success": true, ...}.
    """
    response = {"success": True}
    if data is not None:
        if isinstance(data, str):
            response["message"] = data
        elif isinstance(data, (dict, list)):
            response["data"] = data
    response.update(kwargs)
    return json.dumps(response)


def err(message: str, **kwargs) -> str:
    """Return an error JSON response.

    Args:
        message: Error description.
        **kwargs: Additional fields to include in the response.

    Returns:
        JSON string with {"success": false, "error": ...}.
    """
    response = {"success": False, "error": message}
    response.update(kwargs)
    return json.dumps(response)


# =============================================================================
# Path Resolution
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a vault path the way Obsidian does.

    Backslashes become forward slashes, non-breaking spaces become spaces,
    repeated separators collapse, and leading/trailing separators are dropped.
    The vault root normalizes to "/".
    """
    path = path.replace("\\", "/").replace("\u00a0", " ").replace("\u202f", " ")
    path = re.sub(r"/+", "/", path).strip("/")
    path = unicodedata.normalize("NFC", path)
    return path or "/"


def parent_path(path: str) -> str:
    """Return the vault-relative parent folder of a path ("" for the root)."""
    parent = posixpath.dirname(normalize_path(path))
    return "" if parent in ("", "/") else parent


def resolve_vault_path(path: str, base_path: Path | None = None) -> Path:
    """Resolve a path ensuring it stays within an allowed directory.

    Args:
        path: Relative path (from base root) or absolute path.
        base_path: Base directory to resolve against and constrain to.
            Defaults to VAULT_PATH.

    Returns:
        Resolved absolute Path within the base directory.

    Raises:
        ValueError: If path escapes base directory or is in excluded directory.
    """
    base = base_path if base_path is not None else VAULT_PATH

    if Path(path).is_absolute():
        resolved = Path(path).resolve()
    else:
        resolved = (base / path).resolve()

    # Security: ensure path is within base directory
    try:
        relative = resolved.relative_to(base.resolve())
    except ValueError:
        raise ValueError(f"Path must be within vault: {base}")

    if any(excluded in relative.parts for excluded in EXCLUDED_DIRS):
        raise ValueError("Cannot access excluded directory")

    return resolved


def resolve_file(path: str, base_path: Path | None = None) -> tuple[Path | None, str | None]:
    """Resolve and validate a file path within the vault.

    Args:
        path: Relative path (from base root) or absolute path.
        base_path: Base directory to resolve against. Defaults to VAULT_PATH.

    Returns:
        Tuple of (resolved_path, None) on success, or (None, error_message) on failure.
    """
    try:
        file_path = resolve_vault_path(path, base_path=base_path)
    except ValueError as e:
        return None, str(e)

    if not file_path.exists():
        return None, f"File not found: {path}"

    if not file_path.is_file():
        return None, f"Not a file: {path}"

    return file_path, None


def get_relative_path(absolute_path: Path) -> str:
    """Get a forward-slash path relative to the vault root.

    Args:
        absolute_path: Absolute path to a file or folder within the vault.

    Returns:
        String path relative to VAULT_PATH.
    """
    try:
        relative = absolute_path.relative_to(VAULT_PATH)
    except ValueError:
        relative = absolute_path.resolve().relative_to(VAULT_PATH.resolve())
    return relative.as_posix()


# =============================================================================
# File Index
# =============================================================================


def _iter_vault(vault: Path, pattern: str) -> list[Path]:
    files = []
    for path in vault.rglob(pattern):
        if any(excluded in path.relative_to(vault).parts for excluded in EXCLUDED_DIRS):
            continue
        if path.is_file():
            files.append(path)
    return files


def get_vault_files(vault_path: Path | None = None) -> list[Path]:
    """Get all markdown files in vault, excluding tooling directories.

    Args:
        vault_path: Optional path to vault. Defaults to VAULT_PATH from config.

    Returns:
        List of Path objects for all markdown files in the vault.
    """
    vault = vault_path if vault_path is not None else VAULT_PATH
    return _iter_vault(vault, "*.md")


def get_all_vault_files(vault_path: Path | None = None) -> list[Path]:
    """Get every file in the vault (notes and attachments), excluding tooling directories."""
    vault = vault_path if vault_path is not None else VAULT_PATH
    return _iter_vault(vault, "*")


def get_by_path(path: str) -> Path | None:
    """Look up a file or folder by its exact vault-relative path.

    Returns:
        The absolute Path, or None when nothing exists there, the path is
        outside the vault, or the OS rejects it (e.g. a name too long).
    """
    normalized = normalize_path(path)
    if normalized == "/":
        return None
    try:
        resolved = resolve_vault_path(normalized)
        return resolved if resolved.exists() else None
    except (ValueError, OSError) as e:
        logger.debug("No file at %s: %s", normalized, e)
        return None


def create_folder(path: str) -> Path:
    """Create a folder (and any missing parents) inside the vault.

    Raises:
        FileExistsError: If a file or folder already exists at the path.
        ValueError: If the path escapes the vault.
    """
    normalized = normalize_path(path)
    folder = resolve_vault_path(normalized)
    if folder.exists():
        raise FileExistsError(f"Folder already exists: {normalized}")
    folder.mkdir(parents=True)
    logger.info("Created folder %s", normalized)
    return folder


# =============================================================================
# Link Resolution
# =============================================================================

# Wikilinks and embeds: groups are (embed marker, target, #subpath, |alias)
_LINK_RE = re.compile(r"(!?)\[\[([^\]|#]*)(#[^\]|]*)?(\|[^\]]*)?\]\]")

# Markdown links and embeds: groups are (embed marker, text, destination)
_MD_LINK_RE = re.compile(r"(!?)\[([^\]]*)\]\(([^)\s]+)\)")
_URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def _link_candidates(target: str) -> list[str]:
    """Paths a link target may refer to: as written, then as a note."""
    if target.lower().endswith(".md"):
        return [target]
    return [target, f"{target}.md"]


def resolve_link(
    linkpath: str,
    source_path: str,
    files: list[str] | None = None,
) -> Path | None:
    """Resolve a raw link target to a vault file, using the linking note as context.

    Resolution order:
    1. Targets starting with ./ or ../ are relative to the source note's folder.
    2. Exact vault path.
    3. Any file whose vault path ends with the target (case-insensitive),
       preferring the source note's folder, then the shortest path.

    A target without ".md" also tries the same target as a note.

    Args:
        linkpath: Raw link target (may include a #subpath).
        source_path: Vault-relative path of the note containing the link.
        files: Pre-built list of vault-relative file paths, to avoid
            rescanning the vault for many lookups.

    Returns:
        Absolute Path of the resolved file, or None.
    """
    target = linkpath.split("#", 1)[0].strip()
    if not target:
        return None

    source_folder = parent_path(source_path)
    candidates = _link_candidates(target)

    if target.startswith(("./", "../")):
        for candidate in candidates:
            joined = posixpath.normpath(posixpath.join(source_folder, candidate))
            if joined.startswith(".."):
                continue
            found = get_by_path(joined)
            if found is not None and found.is_file():
                return found
        return None

    for candidate in candidates:
        found = get_by_path(candidate)
        if found is not None and found.is_file():
            return found

    if files is None:
        files = [get_relative_path(f) for f in get_all_vault_files()]

    for candidate in candidates:
        needle = normalize_path(candidate).lower()
        matches = [
            rel for rel in files
            if rel.lower() == needle or rel.lower().endswith("/" + needle)
        ]
        ranked = sorted(matches, key=lambda rel: (parent_path(rel) != source_folder, len(rel), rel))
        for rel in ranked:
            try:
                return resolve_vault_path(rel)
            except ValueError as e:
                # Symlinks pointing outside the vault are not link destinations
                logger.debug("Skipping %s: %s", rel, e)

    return None


# =============================================================================
# Rename With Backlink Repair
# =============================================================================


def _could_point_to(target: str, file_path: Path) -> bool:
    """Cheap pre-filter: the last segment of the link must name the file."""
    last = PurePosixPath(target.split("#", 1)[0].strip().replace("\\", "/")).name.lower()
    name = file_path.name.lower()
    if last == name:
        return True
    return file_path.suffix.lower() == ".md" and last == file_path.stem.lower()


def _resolve_markdown_link(
    destination: str,
    source_path: str,
    files: list[str] | None = None,
) -> Path | None:
    """Resolve the destination of a markdown link, [text](destination).

    Destinations are URL-encoded. A leading / names a vault path; anything
    else is tried relative to the linking note first, then the way a
    wikilink target is resolved. External URLs resolve to None.
    """
    if _URL_SCHEME_RE.match(destination):
        return None
    target = unquote(destination.split("#", 1)[0]).strip()
    if not target:
        return None

    if target.startswith("/"):
        found = get_by_path(target)
        return found if found is not None and found.is_file() else None

    joined = posixpath.normpath(posixpath.join(parent_path(source_path), target))
    if not joined.startswith(".."):
        found = get_by_path(joined)
        if found is not None and found.is_file():
            return found
    return resolve_link(target, source_path, files)


def _collect_backlinks(source_path: Path, files: list[str]) -> dict[str, set[tuple[str, str]]]:
    """Map each note to the (kind, raw target) links in it that resolve to source_path.

    Kind is "wikilink" for [[...]] links and "markdown" for [...](...) links.
    """
    backlinks: dict[str, set[tuple[str, str]]] = {}
    for md_file in get_vault_files():
        try:
            content = md_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping %s during backlink scan: %s", md_file, e)
            continue
        note_rel = get_relative_path(md_file)
        found: set[tuple[str, str]] = set()

        for match in _LINK_RE.finditer(content):
            target = match.group(2)
            if not target.strip() or not _could_point_to(target, source_path):
                continue
            if resolve_link(target, note_rel, files) == source_path:
                found.add(("wikilink", target))

        for match in _MD_LINK_RE.finditer(content):
            destination = match.group(3)
            if not _could_point_to(unquote(destination), source_path):
                continue
            if _resolve_markdown_link(destination, note_rel, files) == source_path:
                found.add(("markdown", destination))

        if found:
            backlinks[note_rel] = found
    return backlinks


def _link_text(dest_rel: str, files: list[str]) -> str:
    """Shortest link text that unambiguously names dest_rel."""
    name = posixpath.basename(dest_rel)
    same_name = [rel for rel in files if posixpath.basename(rel).lower() == name.lower()]
    text = name if len(same_name) <= 1 else dest_rel
    if text.lower().endswith(".md"):
        text = text[:-3]
    return text


def _markdown_destination(dest_rel: str, note_rel: str, vault_absolute: bool) -> str:
    """URL-encoded markdown link destination for dest_rel, as seen from note_rel."""
    if vault_absolute:
        path = "/" + dest_rel
    else:
        path = posixpath.relpath(dest_rel, parent_path(note_rel) or ".")
    return quote(path, safe="/")


def _repair_backlinks(
    backlinks: dict[str, set[tuple[str, str]]],
    source_rel: str,
    dest_path: Path,
) -> None:
    """Rewrite recorded links that no longer resolve to the moved file.

    A note that cannot be read or written is logged and skipped; the move
    itself has already happened.
    """
    dest_rel = get_relative_path(dest_path)
    files = [get_relative_path(f) for f in get_all_vault_files()]
    new_text = _link_text(dest_rel, files)

    for note_rel, links in backlinks.items():
        # The moved file may itself be one of the linking notes
        current_rel = dest_rel if note_rel == source_rel else note_rel
        wikilinks = {target for kind, target in links if kind == "wikilink"}
        md_links = {target for kind, target in links if kind == "markdown"}

        def _rewrite_wikilink(match: re.Match) -> str:
            target = match.group(2)
            if target not in wikilinks:
                return match.group(0)
            if resolve_link(target, current_rel, files) == dest_path:
                return match.group(0)
            embed, subpath, alias = match.group(1), match.group(3) or "", match.group(4) or ""
            return f"{embed}[[{new_text}{subpath}{alias}]]"

        def _rewrite_markdown(match: re.Match) -> str:
            destination = match.group(3)
            if destination not in md_links:
                return match.group(0)
            if _resolve_markdown_link(destination, current_rel, files) == dest_path:
                return match.group(0)
            path_part, hash_mark, subpath = destination.partition("#")
            new_destination = _markdown_destination(dest_rel, current_rel, path_part.startswith("/"))
            return f"{match.group(1)}[{match.group(2)}]({new_destination}{hash_mark}{subpath})"

        try:
            note_path = resolve_vault_path(current_rel)
            content = note_path.read_text(encoding="utf-8")
            updated = _LINK_RE.sub(_rewrite_wikilink, content)
            updated = _MD_LINK_RE.sub(_rewrite_markdown, updated)
            if updated != content:
                note_path.write_text(updated, encoding="utf-8")
                logger.info("Updated links to %s in %s", dest_rel, current_rel)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Could not update links to %s in %s: %s", dest_rel, current_rel, e)


def rename_file(source: str | Path, destination: str) -> Path:
    """Move a vault file and repair links to it elsewhere in the vault.

    Both [[wikilinks]] and [markdown](links) are repaired. Links that still
    resolve to the file after the move (e.g. bare file names) are left
    alone. Wikilinks that would break get the shortest unambiguous link
    text; markdown links get the new path relative to their note, URL-encoded.
    A note whose links cannot be rewritten is logged and skipped.

    Args:
        source: Current path (vault-relative string or absolute Path).
        destination: New vault-relative path.

    Returns:
        Absolute Path of the moved file.

    Raises:
        FileNotFoundError: If the source does not exist.
        FileExistsError: If something already exists at the destination.
        ValueError: If either path escapes the vault.
    """
    source_path = resolve_vault_path(str(source))
    if not source_path.is_file():
        raise FileNotFoundError(f"Source file not found: {source}")

    dest_rel = normalize_path(destination)
    dest_path = resolve_vault_path(dest_rel)
    if dest_path == source_path:
        return dest_path
    if dest_path.exists():
        raise FileExistsError(f"Destination already exists: {dest_rel}")

    source_rel = get_relative_path(source_path)
    files = [get_relative_path(f) for f in get_all_vault_files()]
    backlinks = _collect_backlinks(source_path, files)

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source_path), str(dest_path))
    logger.info("Moved %s to %s", source_rel, dest_rel)

    _repair_backlinks(backlinks, source_rel, dest_path)
    return dest_path

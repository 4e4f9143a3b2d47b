"""Attachment tools - move embedded files into a folder named after the note."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from services.settings import Settings, get_settings
from services.vault import (
    create_folder,
    err,
    get_by_path,
    get_relative_path,
    normalize_path,
    ok,
    parent_path,
    rename_file,
    resolve_file,
    resolve_link,
)
from tools.embeds import EmbedReference, scan_embeds

logger = logging.getLogger(__name__)


class FolderCreationError(OSError):
    """The note's destination folder could not be created."""


class RelocationResult(BaseModel):
    """Outcome of one move-embedded-files run."""

    moved: int = 0
    folder: str | None = None
    folder_created: bool = False
    notices: list[str] = Field(default_factory=list)
    moves: list[dict[str, str]] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    def notify(self, message: str) -> None:
        """Record a user-facing notice."""
        logger.info(message)
        self.notices.append(message)


def _active_note(path: str | None) -> Path | None:
    """Resolve the note the command runs against, or None if there isn't one."""
    if not path or not path.strip():
        return None
    # Normalize non-breaking spaces that LLMs sometimes generate in paths
    note_file, error = resolve_file(path.replace("\xa0", " "))
    if error:
        logger.debug("No active note: %s", error)
        return None
    if note_file.suffix.lower() != ".md":
        logger.debug("No active note: %s is not a markdown file", path)
        return None
    return note_file


def _is_excluded(file_rel: str, file_name: str, exclude: str) -> bool:
    """Case-insensitive substring match against the file's path or name."""
    needle = exclude.strip().lower()
    if not needle:
        return False
    return needle in file_rel.lower() or needle in file_name.lower()


def relocate(
    note_path: str | None,
    references: list[EmbedReference],
    settings: Settings,
) -> RelocationResult:
    """Move the files embedded in a note into a folder named after the note.

    The folder is created next to the note when missing. Markdown files,
    unresolvable embeds, and excluded attachments are skipped silently; a
    failed move is reported and the remaining embeds are still processed.
    Note text is never rewritten here; rename_file repairs links that would
    otherwise break.

    Args:
        note_path: Vault-relative path of the active note, or None.
        references: Embeds scanned from the note, in document order.
        settings: Current settings (exclusion string).

    Returns:
        RelocationResult with the moved count and every notice emitted.

    Raises:
        FolderCreationError: If the destination folder cannot be created.
    """
    result = RelocationResult()

    if not note_path:
        result.notify("No active file")
        return result

    if not references:
        result.notify("No embedded files found")
        return result

    note_rel = normalize_path(note_path)
    note_name = Path(note_rel).stem
    target_folder = normalize_path(f"{parent_path(note_rel)}/{note_name}")
    result.folder = target_folder

    if get_by_path(target_folder) is None:
        try:
            create_folder(target_folder)
        except (OSError, ValueError) as e:
            raise FolderCreationError(f"Could not create folder: {e}") from e
        result.folder_created = True
        result.notify(f"Created folder: {note_name}")

    for ref in references:
        try:
            file_path = resolve_link(ref.target, note_rel)
        except (OSError, ValueError) as e:
            logger.debug("Skipping %s: %s", ref.target, e)
            continue
        if file_path is None or not file_path.is_file():
            logger.debug("Skipping %s: not resolved to a file", ref.target)
            continue

        extension = file_path.suffix[1:]
        if not extension or extension.lower() == "md":
            continue

        file_rel = get_relative_path(file_path)
        if _is_excluded(file_rel, file_path.name, settings.exclude_string):
            logger.debug("Skipping %s: excluded", file_rel)
            continue

        try:
            new_path = normalize_path(f"{target_folder}/{file_path.name}")
            if normalize_path(file_rel) == new_path:
                continue
            rename_file(file_path, new_path)
        except Exception:
            logger.exception("Failed to move %s", ref.target)
            result.failed.append(ref.target)
            result.notify(f"Failed to move {ref.target}")
            continue

        result.moved += 1
        result.moves.append({"source": file_rel, "destination": new_path})

    if result.moved > 0:
        result.notify(f"Moved {result.moved} file(s) to {note_name}/")
    else:
        result.notify("No attachment files to move")

    return result


def move_embedded_files(path: str | None = None) -> str:
    """Move embedded files to note folder.

    Every attachment embedded in the note with ![[...]] is moved into a
    folder named after the note, created next to it. Embedded markdown notes
    and attachments matching the exclusion setting stay where they are.
    Links elsewhere in the vault are repaired after each move.

    Args:
        path: Path to the note (relative to vault or absolute).

    Returns:
        JSON with the summary message, moved count, destination folder,
        and every notice emitted during the run.
    """
    note_file = _active_note(path)
    note_rel = None
    references: list[EmbedReference] = []
    if note_file is not None:
        try:
            content = note_file.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            return err(f"Error reading file: {e}")
        note_rel = get_relative_path(note_file)
        references = scan_embeds(content)

    try:
        result = relocate(note_rel, references, get_settings())
    except FolderCreationError as e:
        logger.exception("Could not prepare destination folder for %s", note_rel)
        return err(str(e))

    if note_rel is None:
        return err(result.notices[-1], **result.model_dump())
    return ok(result.notices[-1], **result.model_dump())

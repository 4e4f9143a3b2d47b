"""Pytest configuration and fixtures for move-attachment-files tests."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def temp_vault(tmp_path):
    """Create a temporary vault directory with notes and attachments.

    Returns:
        Path to the temporary vault root.
    """
    vault = tmp_path / "vault"
    vault.mkdir()

    (vault / "note1.md").write_text(
        """# Note 1

A photo from the trip:

![[photo.png]]

The diagram, with an alias:

![[assets/diagram.pdf|Diagram]]

A transcluded note and a broken embed:

![[note3]]
![[missing.png]]
"""
    )

    (vault / "note2.md").write_text(
        """# Note 2

This note references [[note1]] and [[assets/diagram.pdf#page=2|the diagram]].

It also shows ![[photo.png]] by bare name.
"""
    )

    (vault / "note3.md").write_text(
        """# Note 3

A simple note without embeds, linking to [[note1]].
"""
    )

    (vault / "photo.png").write_bytes(b"fake png data")

    assets = vault / "assets"
    assets.mkdir()
    (assets / "diagram.pdf").write_bytes(b"%PDF-1.4 fake")
    shared = assets / "shared"
    shared.mkdir()
    (shared / "logo.png").write_bytes(b"fake logo")

    projects = vault / "projects"
    projects.mkdir()
    (projects / "project1.md").write_text(
        """# Project 1

![[spec.pdf]]
"""
    )
    (projects / "spec.pdf").write_bytes(b"%PDF-1.4 spec")

    return vault


@pytest.fixture
def vault_config(temp_vault, monkeypatch):
    """Patch config module to use temporary vault.

    Patches VAULT_PATH, EXCLUDED_DIRS, and SETTINGS_FILE in the config module
    and in modules that import them, so tests use the temporary vault.
    """
    import config
    import services.vault

    settings_file = temp_vault / ".obsidian" / "plugins" / "move-attachment-files" / "data.json"

    monkeypatch.setattr(config, "VAULT_PATH", temp_vault)
    monkeypatch.setattr(config, "EXCLUDED_DIRS", {".git", ".obsidian"})
    monkeypatch.setattr(config, "SETTINGS_FILE", settings_file)

    # services.vault imports from config at load time
    monkeypatch.setattr(services.vault, "VAULT_PATH", temp_vault)
    monkeypatch.setattr(services.vault, "EXCLUDED_DIRS", {".git", ".obsidian"})

    return temp_vault


@pytest.fixture
def settings_file(vault_config):
    """Path of the plugin data file inside the temporary vault."""
    import config

    return config.SETTINGS_FILE


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop process-wide settings between tests."""
    from services.settings import reset_settings_cache

    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def note_with_three_attachments(vault_config):
    """Create a note embedding three movable attachments.

    Returns:
        Vault-relative path of the note.
    """
    media = vault_config / "media"
    media.mkdir()
    for name in ("a.png", "b.png", "c.png"):
        (media / name).write_bytes(name.encode())

    (vault_config / "gallery.md").write_text(
        """# Gallery

![[a.png]]
![[b.png]]
![[c.png]]
"""
    )
    return "gallery.md"

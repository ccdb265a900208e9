"""Vault file scanner with hash-based change detection"""

import hashlib
import logging
from pathlib import Path
from typing import Iterator

from ..models import ChangeSet

logger = logging.getLogger(__name__)

HASH_PREFIX = "sha256:"
_READ_BLOCK = 8192


def compute_file_hash(file_path: Path) -> str:
    """Compute SHA-256 of file content as "sha256:<hex>"."""
    digest = hashlib.sha256()
    with file_path.open("rb") as fh:
        for block in iter(lambda: fh.read(_READ_BLOCK), b""):
            digest.update(block)
    return HASH_PREFIX + digest.hexdigest()


def to_relative(vault: Path, file_path: Path) -> str:
    """Vault-relative path with forward slashes"""
    return file_path.relative_to(vault).as_posix()


def scan_vault(vault_path: Path | str, pattern: str = "**/*.md") -> Iterator[str]:
    """
    Scan a vault for markdown files.

    Hidden directories (".obsidian", ".trash", ...) are skipped. A missing
    vault yields nothing.

    Yields:
        Vault-relative POSIX paths, sorted
    """
    vault = Path(vault_path)
    if not vault.is_dir():
        return

    found = []
    for file_path in vault.glob(pattern):
        if not file_path.is_file():
            continue
        relative = file_path.relative_to(vault)
        if any(part.startswith(".") for part in relative.parts):
            continue
        found.append(relative.as_posix())

    yield from sorted(found)


def current_vault_hashes(vault_path: Path | str) -> dict[str, str]:
    """Hash every markdown file currently in the vault"""
    vault = Path(vault_path)
    hashes: dict[str, str] = {}
    for relative in scan_vault(vault):
        try:
            hashes[relative] = compute_file_hash(vault / relative)
        except OSError as e:
            logger.warning("Failed to hash %s: %s", relative, e)
    return hashes


def diff_hashes(current: dict[str, str], indexed: dict[str, str]) -> ChangeSet:
    """
    Compare the vault's current hashes with the indexed ones.

    Args:
        current: path -> hash for files on disk
        indexed: path -> hash from the metadata store

    Returns:
        ChangeSet of new, modified and deleted paths
    """
    new_files = {p for p in current if p not in indexed}
    deleted_files = {p for p in indexed if p not in current}
    modified_files = {
        p for p, h in current.items()
        if p in indexed and indexed[p] != h
    }
    return ChangeSet(
        new_files=new_files,
        modified_files=modified_files,
        deleted_files=deleted_files,
    )

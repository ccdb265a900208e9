"""Vault module - file scanning, hashing, parsing, and chunking"""

from .scanner import (
    scan_vault,
    compute_file_hash,
    current_vault_hashes,
    diff_hashes,
)
from .parser import parse_markdown
from .chunker import chunk_document, make_chunk_id, split_sections

__all__ = [
    "scan_vault",
    "compute_file_hash",
    "current_vault_hashes",
    "diff_hashes",
    "parse_markdown",
    "chunk_document",
    "make_chunk_id",
    "split_sections",
]

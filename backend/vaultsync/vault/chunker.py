"""Heading-aware markdown chunker"""

import re
import hashlib

from ..models import Document, Chunk

_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")


def make_chunk_id(vault_path: str, file_path: str, position: int) -> str:
    """Generate globally unique chunk_id from vault, file and position"""
    combined = f"{vault_path}^{file_path}^{position}"
    return hashlib.sha256(combined.encode()).hexdigest()[:16]


def split_sections(content: str) -> list[tuple[list[str], str]]:
    """
    Split markdown into (title_path, body) sections at headings.

    The title path keeps the enclosing heading hierarchy, so a "###" section
    under "# A" / "## B" gets ["A", "B", "<its own title>"].
    """
    sections: list[tuple[list[str], str]] = []
    stack: list[tuple[int, str]] = []
    lines: list[str] = []

    def flush():
        body = "\n".join(lines).strip()
        if body:
            sections.append(([title for _, title in stack], body))
        lines.clear()

    in_fence = False
    for line in content.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        match = None if in_fence else _HEADING.match(line)
        if match:
            flush()
            level = len(match.group(1))
            while stack and stack[-1][0] >= level:
                stack.pop()
            stack.append((level, match.group(2)))
            continue
        lines.append(line)
    flush()

    return sections


def _window(text: str, size: int, overlap: int) -> list[str]:
    if len(text) <= size:
        return [text]
    step = max(1, size - overlap)
    pieces = []
    for start in range(0, len(text), step):
        piece = text[start:start + size].strip()
        if piece:
            pieces.append(piece)
        if start + size >= len(text):
            break
    return pieces


def chunk_document(
    document: Document,
    vault_path: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 100,
) -> list[Chunk]:
    """
    Chunk a document into heading-scoped, size-bounded pieces.

    Args:
        document: Parsed document
        vault_path: Vault the document belongs to
        chunk_size: Maximum characters per chunk
        chunk_overlap: Characters shared by consecutive windows of one section

    Returns:
        Chunks in document order; empty for documents without text
    """
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")

    chunks = []
    position = 0
    for title_path, body in split_sections(document.content):
        for piece in _window(body, chunk_size, chunk_overlap):
            chunks.append(Chunk(
                chunk_id=make_chunk_id(vault_path, document.relative_path, position),
                content=piece,
                vault_path=vault_path,
                file_path=document.relative_path,
                file_hash=document.hash,
                title_path=title_path or [document.title],
                position=position,
            ))
            position += 1

    return chunks

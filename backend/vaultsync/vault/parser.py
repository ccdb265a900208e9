"""Markdown parser with frontmatter extraction"""

import frontmatter
from pathlib import Path

from ..models import Document
from .scanner import compute_file_hash


def parse_markdown(vault: Path, relative_path: str) -> Document:
    """
    Parse a markdown file with frontmatter.

    Args:
        vault: Vault root
        relative_path: File path relative to the vault

    Returns:
        Document object with parsed content and metadata
    """
    file_path = vault / relative_path
    content = file_path.read_text(encoding="utf-8")
    post = frontmatter.loads(content)

    metadata = dict(post.metadata)

    # Title: frontmatter, then first H1, then filename
    title = metadata.get("title")
    if not title:
        for line in post.content.splitlines():
            if line.startswith("# "):
                title = line[2:].strip()
                break
    title = str(title or file_path.stem)

    return Document(
        path=file_path,
        relative_path=relative_path,
        title=title,
        content=post.content,
        hash=compute_file_hash(file_path),
        metadata=metadata,
    )

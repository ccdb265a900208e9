"""Data models for VaultSync"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class SyncStatus(str, Enum):
    """Derived state of a vault relative to the vector index. Never stored."""

    SYNCED = "synced"
    OUT_OF_SYNC = "out_of_sync"
    NOT_INDEXED = "not_indexed"  # vector data may exist but metadata is missing
    UNAVAILABLE = "unavailable"


class ActivationResult(str, Enum):
    ENABLED = "enabled"
    CANCELLED = "cancelled"
    ERROR = "error"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class Document:
    """Represents a parsed markdown file"""
    path: Path
    relative_path: str
    title: str
    content: str
    hash: str
    metadata: dict = field(default_factory=dict)


@dataclass
class Chunk:
    """Represents a text chunk for indexing"""
    chunk_id: str           # sha256(vault_path + "^" + file_path + "^" + index)[:16]
    content: str
    vault_path: str
    file_path: str          # Relative to the vault root
    file_hash: str
    title_path: list[str]   # Heading hierarchy
    position: int

    def to_metadata(self) -> dict:
        """Convert to ChromaDB metadata format"""
        return {
            "vault_path": self.vault_path,
            "file_path": self.file_path,
            "file_hash": self.file_hash,
            "title_path": "|".join(self.title_path),  # ChromaDB doesn't support list
            "position": self.position,
        }

    @classmethod
    def from_metadata(cls, chunk_id: str, content: str, metadata: dict) -> "Chunk":
        """Create from ChromaDB metadata"""
        title_path = metadata.get("title_path", "")
        return cls(
            chunk_id=chunk_id,
            content=content,
            vault_path=metadata.get("vault_path", ""),
            file_path=metadata.get("file_path", ""),
            file_hash=metadata.get("file_hash", ""),
            title_path=title_path.split("|") if title_path else [],
            position=int(metadata.get("position", 0)),
        )


@dataclass(frozen=True)
class FileRecord:
    """One tracked file: vault-relative path and its content hash"""
    path: str
    content_hash: str


@dataclass
class VaultMetadata:
    """Durable record of which files of a vault have been embedded"""
    vault_id: str
    indexed_file_hashes: dict[str, str] = field(default_factory=dict)
    last_indexed_at: datetime | None = None

    @property
    def records(self) -> list[FileRecord]:
        return [
            FileRecord(path=path, content_hash=content_hash)
            for path, content_hash in sorted(self.indexed_file_hashes.items())
        ]


@dataclass
class ChangeSet:
    """Output of change detection against the last persisted metadata"""
    new_files: set[str] = field(default_factory=set)
    modified_files: set[str] = field(default_factory=set)
    deleted_files: set[str] = field(default_factory=set)

    @property
    def files_to_index(self) -> list[str]:
        return sorted(self.new_files | self.modified_files)

    @property
    def is_empty(self) -> bool:
        return not (self.new_files or self.modified_files or self.deleted_files)

    def to_dict(self) -> dict:
        return {
            "new_files": sorted(self.new_files),
            "modified_files": sorted(self.modified_files),
            "deleted_files": sorted(self.deleted_files),
        }


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress report emitted by an ingestion pipeline"""
    stage: str
    fraction: float
    message: str = ""

    def to_dict(self) -> dict:
        return {"stage": self.stage, "fraction": self.fraction, "message": self.message}

"""Wire the real collaborators into an ActivationManager"""

from ..config import get_settings
from ..indexer import Indexer, MetadataStore, VectorStore
from .activation import ActivationManager
from .detector import ChangeDetector
from .health import ChromaHealthProbe
from .locks import VaultLocks

_locks: VaultLocks | None = None


def shared_locks() -> VaultLocks:
    """Process-wide lock registry so every manager instance agrees on busy vaults"""
    global _locks
    if _locks is None:
        _locks = VaultLocks(reject_concurrent=get_settings().reject_concurrent)
    return _locks


def build_activation_manager() -> ActivationManager:
    health_probe = ChromaHealthProbe()
    metadata_store = MetadataStore()
    vector_store = VectorStore()
    return ActivationManager(
        health_probe=health_probe,
        change_detector=ChangeDetector(metadata_store, health_probe),
        indexer=Indexer(vectorstore=vector_store),
        metadata_store=metadata_store,
        vector_store=vector_store,
        locks=shared_locks(),
    )

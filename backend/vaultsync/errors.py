"""Exceptions raised inside the sync pipelines"""


class VaultSyncError(Exception):
    """Base class for all VaultSync errors"""


class ProvisioningError(VaultSyncError):
    """Tenant or database could not be verified or created"""


class IndexingError(VaultSyncError):
    """A full reindex or a batch of file indexing failed"""


class MetadataStoreError(VaultSyncError):
    """The indexed-file record could not be written"""


class VaultBusyError(VaultSyncError):
    """Another activation already owns this vault"""

    def __init__(self, vault_path: str):
        super().__init__(f"Vault is busy: {vault_path}")
        self.vault_path = vault_path

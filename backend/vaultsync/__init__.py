"""VaultSync - keeps markdown vaults in sync with a vector index"""

__version__ = "0.1.0"

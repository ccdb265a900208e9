"""Sync module - health probe, change detection, and the activation protocol"""

from .activation import ActivationManager
from .detector import ChangeDetector
from .factory import build_activation_manager
from .health import ChromaHealthProbe
from .locks import VaultLocks
from .progress import ProgressChannel

__all__ = [
    "ActivationManager",
    "ChangeDetector",
    "build_activation_manager",
    "ChromaHealthProbe",
    "VaultLocks",
    "ProgressChannel",
]

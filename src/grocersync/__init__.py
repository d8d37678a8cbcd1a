"""
grocersync - client-side state reconciliation for the grocery platform

Keeps the locally cached cart, order history and profile consistent with
the platform's authoritative copy.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from grocersync.core.config.models import GrocerSyncConfig
from grocersync.core.sync.models import EntityKind, SyncAction, SyncSummary

__all__ = ["GrocerSyncConfig", "EntityKind", "SyncAction", "SyncSummary", "__version__"]

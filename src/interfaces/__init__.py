"""Public interface definitions for feedback storage backends.

Every backend is reached exclusively through :class:`IStorageConnector`.
Concrete connectors live in ``src/providers/storage/`` and are selected
at startup by ``src/storage/factory.py``:

    IStorageConnector  →  LinearConnector, SQLiteConnector, MockConnector
    IAnalyticsCapable  →  SQLiteConnector, MockConnector
"""

from src.interfaces.storage_connector import (
    IAnalyticsCapable,
    IStorageConnector,
    has_required_capabilities,
    supports_analytics,
)

__all__ = [
    "IAnalyticsCapable",
    "IStorageConnector",
    "has_required_capabilities",
    "supports_analytics",
]

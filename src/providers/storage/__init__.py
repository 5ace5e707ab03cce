"""Feedback storage connectors.

LinearConnector creates one Linear issue per submission.
SQLiteConnector writes one row per submission to a local database and
reports analytics.
MockConnector keeps submissions in memory; it is the fallback when no
real backend is configured.
"""

from src.providers.storage.linear_connector import LinearConnector
from src.providers.storage.mock_connector import MockConnector
from src.providers.storage.sqlite_connector import SQLiteConnector

__all__ = ["LinearConnector", "MockConnector", "SQLiteConnector"]

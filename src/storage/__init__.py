"""Connector registry, fan-out handler and the handler factory."""

from src.storage.factory import create_feedback_handler
from src.storage.handler import NO_CONNECTORS_ERROR, FeedbackHandler
from src.storage.registry import StorageRegistry

__all__ = [
    "NO_CONNECTORS_ERROR",
    "FeedbackHandler",
    "StorageRegistry",
    "create_feedback_handler",
]

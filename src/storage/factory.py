"""Assemble a :class:`FeedbackHandler` from whatever backends are configured.

Selection rules:

  - Linear      when ``LINEAR_API_KEY`` and ``LINEAR_TEAM_ID`` resolve
                (platform env map first, else process env / Settings)
  - SQLite      when a database path resolves, or a connector is injected,
                and it initializes and reports itself available
  - Mock        only when neither of the above was registered, so a
                fresh deployment accepts feedback instead of failing
"""

from __future__ import annotations

from typing import Any

import structlog

from src.config.env_adapter import EnvironmentAdapter, LinearConfig
from src.config.settings import Settings
from src.interfaces.storage_connector import IStorageConnector
from src.providers.storage.linear_connector import LinearConnector
from src.providers.storage.mock_connector import MockConnector
from src.providers.storage.sqlite_connector import SQLiteConnector
from src.storage.handler import FeedbackHandler
from src.storage.registry import StorageRegistry

logger = structlog.get_logger(logger_name=__name__)


def _resolve_linear_config(
    settings: Settings,
    adapter: EnvironmentAdapter,
    context: Any,
) -> LinearConfig | None:
    config = adapter.get_linear_config(context)
    if config is not None:
        return config
    # Fall back to Settings (which also reads .env) when not on the platform.
    if not adapter.is_platform_environment(context) and settings.linear_api_key and settings.linear_team_id:
        return LinearConfig(
            api_key=settings.linear_api_key,
            team_id=settings.linear_team_id,
            project_id=settings.linear_project_id or None,
        )
    return None


async def _build_database_connector(
    settings: Settings,
    adapter: EnvironmentAdapter,
    context: Any,
    database: IStorageConnector | None,
) -> IStorageConnector | None:
    if database is None:
        db_config = adapter.get_database_config(context)
        db_path = db_config.get("db_path") or settings.feedback_db_path
        if not db_path:
            return None
        database = SQLiteConnector(
            db_path=db_path,
            table=db_config.get("table") or settings.feedback_table,
        )

    initialize = getattr(database, "initialize", None)
    try:
        if callable(initialize):
            await initialize()
        available = await database.detect_availability()
    except Exception as exc:  # noqa: BLE001
        logger.warning("database_connector_unavailable", connector=database.name, error=str(exc))
        return None
    return database if available else None


async def create_feedback_handler(
    settings: Settings | None = None,
    *,
    context: Any = None,
    env_adapter: EnvironmentAdapter | None = None,
    database: IStorageConnector | None = None,
) -> FeedbackHandler:
    """Build a handler whose registry holds every configured connector.

    Parameters
    ----------
    settings:
        Application settings; a fresh ``Settings()`` when omitted.
    context:
        Optional platform context carrying an ``env`` mapping.
    env_adapter:
        Override for tests.
    database:
        A pre-built database connector to use instead of one built from
        ``FEEDBACK_DB_PATH``.
    """
    settings = settings or Settings()
    adapter = env_adapter or EnvironmentAdapter()
    timeout = settings.connector_timeout_seconds
    registry = StorageRegistry(check_timeout=timeout)

    linear_config = _resolve_linear_config(settings, adapter, context)
    if linear_config is not None:
        registry.register(
            LinearConnector(
                api_key=linear_config.api_key,
                team_id=linear_config.team_id,
                project_id=linear_config.project_id,
                api_url=settings.linear_api_url,
                timeout=timeout,
            )
        )

    db_connector = await _build_database_connector(settings, adapter, context, database)
    if db_connector is not None:
        registry.register(db_connector)

    if len(registry) == 0:
        logger.info("no_storage_connectors_configured", fallback="mock")
        registry.register(MockConnector())

    logger.info("feedback_handler_created", connectors=registry.names(), timeout=timeout)
    return FeedbackHandler(registry, connector_timeout=timeout)

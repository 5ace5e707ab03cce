"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. **Environment variables**: e.g. ``LINEAR_API_KEY=lin_api_abc``
  2. **.env file**: key=value lines in the project root ``.env`` file

Field ``linear_api_key`` maps to env var ``LINEAR_API_KEY``.  Defaults are
used when neither source sets a value.

Empty string means "not configured": the connector factory
(src/storage/factory.py) skips a backend whose credentials are empty and
falls back to the mock connector when nothing real is configured.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Feedback service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Issue tracker (Linear) ===
    linear_api_key: str = ""
    linear_team_id: str = ""
    linear_project_id: str = ""
    linear_api_url: str = "https://api.linear.app/graphql"

    # === Database connector (SQLite) ===
    # Empty path disables the database connector.
    feedback_db_path: str = ""
    feedback_table: str = "feedback"

    # === Fan-out ===
    # Ceiling for any single connector's store/health call.
    connector_timeout_seconds: float = Field(default=10.0, gt=0)

    # === App Config ===
    cors_allowed_origins: str = "*"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_allowed_origins(self) -> list[str]:
        """Split ``cors_allowed_origins`` into a list, ignoring blanks."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    def get_configured_connectors(self) -> list[str]:
        """Return the names of connectors whose settings are filled in."""
        connectors: list[str] = []
        if self.linear_api_key and self.linear_team_id:
            connectors.append("linear")
        if self.feedback_db_path:
            connectors.append("sqlite")
        return connectors

"""Resolve connector credentials from a platform env map or the process env.

Edge platforms (Cloudflare Pages / Workers) hand each request a
``context`` whose ``env`` attribute carries the bindings, instead of
populating ``os.environ``.  :class:`EnvironmentAdapter` hides that
difference: when a context with an ``env`` mapping is supplied, values
come from it; otherwise they come from the process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

# Variables the edge runtime sets on its workers.
_PLATFORM_MARKERS: tuple[str, ...] = ("CF_PAGES", "WORKER", "CF_WORKER")

LINEAR_ENV_SCHEMA: dict[str, str] = {
    "api_key": "LINEAR_API_KEY",
    "team_id": "LINEAR_TEAM_ID",
    "project_id": "LINEAR_PROJECT_ID",
}

DATABASE_ENV_SCHEMA: dict[str, str] = {
    "db_path": "FEEDBACK_DB_PATH",
    "table": "FEEDBACK_TABLE",
}


class EnvironmentValidation(BaseModel):
    """Outcome of checking a list of required variables."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    missing: list[str]
    present: list[str]


class LinearConfig(BaseModel):
    """Credentials for the Linear issue-tracker connector."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    team_id: str
    project_id: str | None = None


class EnvironmentAdapter:
    """Reads configuration from a platform context or ``os.environ``.

    ``context`` is either a mapping with an ``"env"`` key or an object with
    an ``env`` attribute, mirroring how edge runtimes pass bindings.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        # Injectable for tests; defaults to the live process environment.
        self._environ = environ

    def _process_env(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    @staticmethod
    def _platform_env(context: Any) -> Mapping[str, Any] | None:
        if context is None:
            return None
        env = context.get("env") if isinstance(context, Mapping) else getattr(context, "env", None)
        return env if isinstance(env, Mapping) else None

    def is_platform_environment(self, context: Any = None) -> bool:
        """Return ``True`` when *context* carries a platform env mapping."""
        return self._platform_env(context) is not None

    def is_running_on_platform(self) -> bool:
        """Return ``True`` when the process env shows an edge-platform runtime."""
        env = self._process_env()
        return any(env.get(marker) for marker in _PLATFORM_MARKERS)

    def get_environment_variables(self, context: Any = None) -> Mapping[str, Any]:
        """Return the platform env mapping if present, else the process env."""
        platform_env = self._platform_env(context)
        if platform_env is not None:
            return platform_env
        return self._process_env()

    def get_env(self, key: str, context: Any = None) -> str | None:
        value = self.get_environment_variables(context).get(key)
        return None if value is None else str(value)

    def validate_environment_variables(
        self,
        required: list[str],
        context: Any = None,
    ) -> EnvironmentValidation:
        """Split *required* into present and missing (empty counts as missing)."""
        env = self.get_environment_variables(context)
        missing: list[str] = []
        present: list[str] = []
        for key in required:
            if env.get(key):
                present.append(key)
            else:
                missing.append(key)
        return EnvironmentValidation(is_valid=not missing, missing=missing, present=present)

    def create_config(self, schema: Mapping[str, str], context: Any = None) -> dict[str, str]:
        """Build ``{config_key: value}`` from ``{config_key: ENV_KEY}``.

        Keys whose variable is unset or empty are left out.
        """
        env = self.get_environment_variables(context)
        config: dict[str, str] = {}
        for config_key, env_key in schema.items():
            value = env.get(env_key)
            if value:
                config[config_key] = str(value)
        return config

    def get_linear_config(self, context: Any = None) -> LinearConfig | None:
        """Return Linear credentials, or ``None`` unless both key and team id are set."""
        raw = self.create_config(LINEAR_ENV_SCHEMA, context)
        if not raw.get("api_key") or not raw.get("team_id"):
            return None
        return LinearConfig(**raw)

    def get_database_config(self, context: Any = None) -> dict[str, str]:
        """Return ``db_path`` / ``table`` entries that are set."""
        return self.create_config(DATABASE_ENV_SCHEMA, context)

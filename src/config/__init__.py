"""Configuration module -- exports Settings, the env adapter and load_config."""

from src.config.env_adapter import EnvironmentAdapter, EnvironmentValidation, LinearConfig
from src.config.loader import load_config
from src.config.settings import Settings

__all__ = [
    "EnvironmentAdapter",
    "EnvironmentValidation",
    "LinearConfig",
    "Settings",
    "load_config",
]

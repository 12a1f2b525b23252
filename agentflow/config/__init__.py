from __future__ import annotations

from .infrastructure import DatabaseConfig
from .sessions import SessionSettings
from .settings import AppConfig, RuntimeConfig, Settings, load_config
from .tools import ToolSettings

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "RuntimeConfig",
    "SessionSettings",
    "Settings",
    "ToolSettings",
    "load_config",
]

"""Configuration helpers for the Beacon ingestion service."""
from __future__ import annotations

from .settings import (
    AppConfig,
    CongressConfig,
    GeminiConfig,
    IngestionConfig,
    KafkaConfig,
    LockConfig,
    StorageConfig,
    estimate_current_congress,
    load_config,
    resolve_config_path,
    save_config,
)

__all__ = [
    "AppConfig",
    "CongressConfig",
    "GeminiConfig",
    "IngestionConfig",
    "KafkaConfig",
    "LockConfig",
    "StorageConfig",
    "estimate_current_congress",
    "load_config",
    "resolve_config_path",
    "save_config",
]

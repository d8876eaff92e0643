"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    AppConfig,
    ReconcileConfig,
    RetryConfig,
    ScanConfig,
    ScheduleConfig,
    ServerConfig,
    StagingConfig,
    StoreConfig,
)

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "ReconcileConfig",
    "RetryConfig",
    "ScanConfig",
    "ScheduleConfig",
    "ServerConfig",
    "StagingConfig",
    "StoreConfig",
]

"""Configuration and logging helpers shared across the service."""
from .config import (
    ENV_PREFIX,
    GlobalSettings,
    ServiceConfiguration,
    ensure_runtime_configuration,
    get_service_configuration,
    get_settings,
    load_runtime_secrets,
    missing_required_env,
)
from .logging import StructuredLoggerAdapter, log_file_result, setup_logger

__all__ = [
    "ENV_PREFIX",
    "GlobalSettings",
    "ServiceConfiguration",
    "StructuredLoggerAdapter",
    "ensure_runtime_configuration",
    "get_service_configuration",
    "get_settings",
    "load_runtime_secrets",
    "log_file_result",
    "missing_required_env",
    "setup_logger",
]

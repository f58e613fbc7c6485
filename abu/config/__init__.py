"""Configuration models for abu."""

from .models import (
    DEFAULT_USD_TO_EUR,
    AppConfig,
    AwsConfig,
    EnvSettings,
    RatesConfig,
    ReportConfig,
    load_app_config,
)

__all__ = [
    "DEFAULT_USD_TO_EUR",
    "AppConfig",
    "AwsConfig",
    "EnvSettings",
    "RatesConfig",
    "ReportConfig",
    "load_app_config",
]

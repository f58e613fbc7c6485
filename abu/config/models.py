"""Config models and loader.

This module defines Pydantic models for file- and environment-based
configuration. The JSON config file is optional: every field carries a
default matching the behavior of the command-line tool out of the box, and
environment settings (``ABU_*``) cover the values operators usually tweak per
shell session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# As of 2024-05-20, used when the live rate cannot be fetched
DEFAULT_USD_TO_EUR = 0.919606


class AwsConfig(BaseModel):
    """Connection settings for the AWS clients.

    Attributes
    ----------
    region: str
        Region used for the Cost Explorer, Organizations and EC2 clients.
    profile: Optional[str]
        Named profile from the shared AWS config; ``None`` uses the default
        credential chain.
    query_timeout_seconds: float
        Read timeout applied to every AWS API call.
    connect_timeout_seconds: float
        Connect timeout applied to every AWS API call.
    max_pool_connections: int
        Size of the botocore HTTP connection pool; should not be smaller than
        the fan-out concurrency.
    """

    region: str = Field("eu-west-1", description="AWS region for API clients")
    profile: Optional[str] = Field(None, description="Shared config profile name")
    query_timeout_seconds: float = Field(60.0, gt=0)
    connect_timeout_seconds: float = Field(10.0, gt=0)
    max_pool_connections: int = Field(50, ge=1)


class RatesConfig(BaseModel):
    """Currency conversion settings.

    Attributes
    ----------
    url: str
        Endpoint returning ``{"rates": {"EUR": 0.92, ...}}`` for the base
        currency.
    base_currency: str
        Currency reported by Cost Explorer.
    target_currency: str
        Reporting currency for the converted columns.
    timeout_seconds: float
        Upper bound for the one-time startup fetch.
    fallback_rate: float
        Rate used when the fetch fails or times out.
    """

    url: str = Field("https://open.er-api.com/v6/latest/USD")
    base_currency: str = Field("USD")
    target_currency: str = Field("EUR")
    timeout_seconds: float = Field(1.0, gt=0)
    fallback_rate: float = Field(DEFAULT_USD_TO_EUR, gt=0)


class ReportConfig(BaseModel):
    """Report sizing and fan-out settings."""

    max_concurrency: int = Field(
        5, ge=1, description="Concurrent queries for the cross-dimension report"
    )
    month_lookback: int = Field(
        3, ge=1, description="Months covered by the change report"
    )
    num_lines: int = Field(10, ge=1, description="Rows kept by ranked reports")
    bills_months: int = Field(6, ge=1, description="Months listed by bills")


class AppConfig(BaseModel):
    """Top-level application configuration."""

    aws: AwsConfig = Field(default_factory=AwsConfig)
    rates: RatesConfig = Field(default_factory=RatesConfig)
    reports: ReportConfig = Field(default_factory=ReportConfig)

    @staticmethod
    def load(path: Path) -> "AppConfig":
        """Load application config from a JSON file.

        Raises
        ------
        OSError
            If the file cannot be read.
        pydantic.ValidationError
            If the content is not valid JSON or fails validation.
        """
        return AppConfig.model_validate_json(path.read_bytes())


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "WARNING" so
        report output is not interleaved with progress logs.
    config: Optional[Path]
        Optional path to a JSON file validated as :class:`AppConfig`.
    switch_role_name: Optional[str]
        IAM role assumed by the console role-switch URL.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="ABU_", extra="ignore"
    )

    log_level: str = Field("WARNING")
    config: Optional[Path] = None
    switch_role_name: Optional[str] = None


def load_app_config(path: Optional[Path]) -> AppConfig:
    """Return the config stored at ``path``, or defaults when no path is set."""
    if path is None:
        return AppConfig()
    return AppConfig.load(path)

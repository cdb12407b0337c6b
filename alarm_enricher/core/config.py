"""Pydantic settings loaded from YAML configuration with environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# Environment variable → path inside the settings tree.
_ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "AWS_REGION": ("aws", "region"),
    "ALARM_DESTINATION": ("dispatch", "target"),
    "SNS_TOPIC_ARN": ("dispatch", "sns", "topic_arn"),
    "EVENT_BUS_ARN": ("dispatch", "eventbridge", "event_bus_arn"),
    "SLACK_WEBHOOK_URL": ("dispatch", "slack", "webhook_url"),
    "TEAMS_WEBHOOK_URL": ("dispatch", "teams", "webhook_url"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
}


class DispatchTarget(StrEnum):
    """Destination for enriched alarm notifications."""

    SNS = "sns"
    EVENTBRIDGE = "eventbridge"
    SLACK = "slack"
    TEAMS = "teams"


class AWSConfig(BaseModel):
    """AWS client configuration."""

    region: str = ""
    endpoint_url: str | None = None


class RateLimitConfig(BaseModel):
    """Client-side request rates per CloudWatch API (default account quotas)."""

    describe_alarms_per_sec: int = 9
    list_metrics_per_sec: int = 25
    get_metric_data_per_sec: int = 50


class EnrichmentConfig(BaseModel):
    """Violation analysis configuration."""

    max_queries_per_batch: int = Field(default=500, ge=1, le=500)
    recently_active_only: bool = False
    timeout_secs: float = 10.0


class SNSConfig(BaseModel):
    """SNS topic destination."""

    topic_arn: str = ""
    subject_prefix: str = "CloudWatch Alarm - "


class EventBridgeConfig(BaseModel):
    """EventBridge bus destination."""

    event_bus_arn: str = ""
    source: str = "cloudwatch.alarm.enricher"
    detail_type: str = "Alarm Enriched"


class SlackConfig(BaseModel):
    """Slack incoming-webhook destination."""

    webhook_url: SecretStr = SecretStr("")


class TeamsConfig(BaseModel):
    """Microsoft Teams incoming-webhook destination."""

    webhook_url: SecretStr = SecretStr("")


class DispatchConfig(BaseModel):
    """Container for dispatch destinations; ``target`` selects the active one."""

    target: DispatchTarget = DispatchTarget.SNS
    sns: SNSConfig = SNSConfig()
    eventbridge: EventBridgeConfig = EventBridgeConfig()
    slack: SlackConfig = SlackConfig()
    teams: TeamsConfig = TeamsConfig()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    aws: AWSConfig = AWSConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    enrichment: EnrichmentConfig = EnrichmentConfig()
    dispatch: DispatchConfig = DispatchConfig()
    logging: LoggingConfig = LoggingConfig()


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for var, path in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        node = data
        for key in path[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[path[-1]] = value
    return data


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file, overlay environment variables and cache globally.

    Args:
        path: Path to YAML config. Defaults to ``$ENRICHER_CONFIG`` or
            config/settings.yaml. A missing file yields defaults.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    env = os.environ if environ is None else environ
    if path:
        config_path = Path(path)
    elif env.get("ENRICHER_CONFIG"):
        config_path = Path(env["ENRICHER_CONFIG"])
    else:
        config_path = _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**_apply_env_overrides(data, env))
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None

"""
Config loader: YAML file -> schema check -> frozen dataclass tree.

API secrets resolved from environment variables (APCA_API_KEY_ID, APCA_API_SECRET_KEY).
Config file holds only non-secret values. The raw mapping is validated against
``app_config.schema.json`` (next to this module) before any value is read.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml

logger = logging.getLogger("trade.config")

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "app_config.schema.json"


class ConfigError(Exception):
    """Raised when the config file is unparseable or fails schema validation."""


@dataclass(frozen=True)
class BrokerConfig:
    api_key: str = ""
    api_secret: str = ""
    paper: bool = True
    page_limit: int = 500


@dataclass(frozen=True)
class DataConfig:
    order_store_path: str = "data/orders.db"


@dataclass(frozen=True)
class AnalyticsConfig:
    lookback_days: int = 180
    timezone: str = "UTC"
    leaderboard_size: int = 5

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    broker: BrokerConfig = field(default_factory=BrokerConfig)
    data: DataConfig = field(default_factory=DataConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)
    alerting: AlertingConfig = field(default_factory=AlertingConfig)


def _validate_schema(raw: dict[str, Any], schema_path: Path) -> None:
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=raw, schema=schema)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f"Config validation failed at {where}: {exc.message}") from exc


def load_config(path: str | Path = "config.yaml", schema_path: str | Path | None = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    API keys are resolved from environment variables:
      - APCA_API_KEY_ID
      - APCA_API_SECRET_KEY
    These follow Alpaca's standard env var names.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ConfigError
        If the file is not a YAML mapping, fails schema validation, or names
        an unknown timezone.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    _validate_schema(raw, Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH)

    b_raw = raw.get("broker", {})
    broker_cfg = BrokerConfig(
        api_key=os.environ.get("APCA_API_KEY_ID", ""),
        api_secret=os.environ.get("APCA_API_SECRET_KEY", ""),
        paper=bool(b_raw.get("paper", True)),
        page_limit=int(b_raw.get("page_limit", 500)),
    )

    d_raw = raw.get("data", {})
    data_cfg = DataConfig(
        order_store_path=d_raw.get("order_store_path", "data/orders.db"),
    )

    an_raw = raw.get("analytics", {})
    an_cfg = AnalyticsConfig(
        lookback_days=int(an_raw.get("lookback_days", 180)),
        timezone=str(an_raw.get("timezone", "UTC")),
        leaderboard_size=int(an_raw.get("leaderboard_size", 5)),
    )
    try:
        ZoneInfo(an_cfg.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {an_cfg.timezone!r}") from exc

    j_raw = raw.get("journal", {})
    j_cfg = JournalConfig(
        path=j_raw.get("path", "data/journal.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    logger.debug("Loaded config from %s (paper=%s)", config_path, broker_cfg.paper)
    return AppConfig(
        broker=broker_cfg,
        data=data_cfg,
        analytics=an_cfg,
        journal=j_cfg,
        alerting=a_cfg,
    )

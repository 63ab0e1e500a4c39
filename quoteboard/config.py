"""Typed configuration document and its loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)


class LongPortToken(BaseModel):
    """Credentials for the LongPort OpenAPI quote feed."""

    app_key: str
    app_secret: str
    access_token: str
    enable_overnight: bool = True


class MassiveToken(BaseModel):
    """Credentials for the Massive (Polygon.io) snapshot API."""

    api_key: str
    poll_interval: float = Field(default=15.0, gt=0)


class SimulatorOptions(BaseModel):
    update_interval: float = Field(default=0.5, gt=0)
    event_probability: float = Field(default=0.001, ge=0, le=1)


class StockConfig(BaseModel):
    """One watch-list entry: a symbol bound to exactly one source."""

    symbol: str
    name: str = ""
    source: str


class Setting(BaseModel):
    """The whole configuration document.

    Provider blocks are optional. A source takes its block out of the
    setting when it is built, so a block is never used twice.
    """

    long_port: LongPortToken | None = None
    massive: MassiveToken | None = None
    simulator: SimulatorOptions | None = None
    stock: list[StockConfig] = Field(default_factory=list)

    @field_validator("stock")
    @classmethod
    def _unique_symbols(cls, stocks: list[StockConfig]) -> list[StockConfig]:
        seen: set[str] = set()
        for entry in stocks:
            if entry.symbol in seen:
                raise ValueError(f"symbol {entry.symbol!r} appears more than once in the watch-list")
            seen.add(entry.symbol)
        return stocks


def _apply_env_overrides(raw: dict) -> dict:
    """Fill provider blocks from the environment when the variables are set."""
    app_key = os.environ.get("LONGPORT_APP_KEY", "").strip()
    app_secret = os.environ.get("LONGPORT_APP_SECRET", "").strip()
    access_token = os.environ.get("LONGPORT_ACCESS_TOKEN", "").strip()
    if app_key and app_secret and access_token:
        block = dict(raw.get("long_port") or {})
        block.update(app_key=app_key, app_secret=app_secret, access_token=access_token)
        raw["long_port"] = block
        logger.info("LongPort credentials taken from the environment")

    api_key = os.environ.get("MASSIVE_API_KEY", "").strip()
    if api_key:
        block = dict(raw.get("massive") or {})
        block["api_key"] = api_key
        raw["massive"] = block
        logger.info("Massive API key taken from the environment")

    return raw


def parse_setting(raw: dict | None) -> Setting:
    """Validate an already-decoded document (environment overrides applied)."""
    data = _apply_env_overrides(dict(raw or {}))
    try:
        return Setting.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def load_setting(path: str | Path) -> Setting:
    """Read and validate a YAML configuration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"configuration file not found: {path}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path} is not valid YAML: {exc}") from exc

    if raw is not None and not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    setting = parse_setting(raw)
    logger.info("Loaded %s: %d watch-list entries", path, len(setting.stock))
    return setting

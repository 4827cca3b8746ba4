"""Configuration loader for config.yaml with env interpolation and validation."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .views.query import SORT_KEYS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = "http://localhost:3000/api"
    token: str = ""
    timeout: int = 30


@dataclass(frozen=True)
class ImportConfig:
    default_commission_percent: float = 13.0
    currency: str = "USD"
    delimiter: str = ","


@dataclass(frozen=True)
class ViewConfig:
    page_size: int = 20
    default_sort: str = "value-desc"
    search_debounce_ms: int = 250


@dataclass(frozen=True)
class AppConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    importing: ImportConfig = field(default_factory=ImportConfig)
    views: ViewConfig = field(default_factory=ViewConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_api(raw: dict[str, Any]) -> ApiConfig:
    return ApiConfig(
        base_url=str(raw.get("base_url", ApiConfig.base_url)).rstrip("/"),
        token=raw.get("token", ""),
        timeout=int(raw.get("timeout", 30)),
    )


def _build_import(raw: dict[str, Any]) -> ImportConfig:
    return ImportConfig(
        default_commission_percent=float(raw.get("default_commission_percent", 13.0)),
        currency=str(raw.get("currency", "USD")).upper(),
        delimiter=str(raw.get("delimiter", ",")),
    )


def _build_views(raw: dict[str, Any]) -> ViewConfig:
    return ViewConfig(
        page_size=int(raw.get("page_size", 20)),
        default_sort=raw.get("default_sort", "value-desc"),
        search_debounce_ms=int(raw.get("search_debounce_ms", 250)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        api=_build_api(raw.get("api", {})),
        importing=_build_import(raw.get("import", {})),
        views=_build_views(raw.get("views", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.api.base_url:
        raise ValueError("api.base_url must be set")
    if cfg.api.timeout <= 0:
        raise ValueError("api.timeout must be positive")

    commission = cfg.importing.default_commission_percent
    if not 0 <= commission < 100:
        raise ValueError(
            f"import.default_commission_percent must be in [0, 100), got {commission}"
        )
    if len(cfg.importing.currency) < 3:
        raise ValueError(f"import.currency '{cfg.importing.currency}' is not a valid code")
    if len(cfg.importing.delimiter) != 1 or cfg.importing.delimiter == '"':
        raise ValueError("import.delimiter must be a single non-quote character")

    if cfg.views.page_size < 1:
        raise ValueError("views.page_size must be at least 1")
    if cfg.views.default_sort not in SORT_KEYS:
        raise ValueError(f"views.default_sort '{cfg.views.default_sort}' is not a known sort key")
    if cfg.views.search_debounce_ms < 0:
        raise ValueError("views.search_debounce_ms must not be negative")

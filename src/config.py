"""Configuration helpers for the dendrogram explorer."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"

# Load environment variables early so downstream modules can rely on them.
load_dotenv(ENV_PATH, override=False)

SERVICE_URL_ENV = "CLUSTER_SERVICE_URL"
SERVICE_TIMEOUT_ENV = "CLUSTER_SERVICE_TIMEOUT"
LOG_LEVEL_ENV = "EXPLORER_LOG_LEVEL"
BUFFER_MARGIN_ENV = "LAYOUT_BUFFER_MARGIN"
MIN_SEPARATION_ENV = "LAYOUT_MIN_SEPARATION"
SHRINK_FACTOR_ENV = "LAYOUT_SHRINK_FACTOR"
MIN_RADIUS_ENV = "LAYOUT_MIN_RADIUS"
POINT_HIT_RADIUS_ENV = "LAYOUT_POINT_HIT_RADIUS"

DEFAULT_SERVICE_URL = "http://localhost:5000"
DEFAULT_SERVICE_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class LayoutSettings:
    """Pixel constants shared by the cluster layout solver and the hit tester."""

    buffer_margin: float = 30.0
    singleton_bonus: float = 15.0
    pair_bonus: float = 10.0
    group_bonus: float = 5.0
    min_separation: float = 15.0
    shrink_factor: float = 0.88
    min_radius: float = 30.0
    point_hit_radius: float = 15.0

    def size_bonus(self, member_count: int) -> float:
        if member_count <= 1:
            return self.singleton_bonus
        if member_count == 2:
            return self.pair_bonus
        return self.group_bonus


@dataclass(frozen=True)
class ServiceConfig:
    """Where the external clustering service lives."""

    base_url: str
    timeout_seconds: int

    @property
    def cluster_endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/cluster"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number; received '{raw}'.") from exc


def get_layout_settings() -> LayoutSettings:
    """Resolve layout constants, applying any environment overrides."""

    defaults = LayoutSettings()
    shrink = _get_float(SHRINK_FACTOR_ENV, defaults.shrink_factor)
    if not 0.0 < shrink <= 1.0:
        raise RuntimeError(f"{SHRINK_FACTOR_ENV} must be in (0, 1]; received {shrink}.")
    return LayoutSettings(
        buffer_margin=_get_float(BUFFER_MARGIN_ENV, defaults.buffer_margin),
        singleton_bonus=defaults.singleton_bonus,
        pair_bonus=defaults.pair_bonus,
        group_bonus=defaults.group_bonus,
        min_separation=_get_float(MIN_SEPARATION_ENV, defaults.min_separation),
        shrink_factor=shrink,
        min_radius=_get_float(MIN_RADIUS_ENV, defaults.min_radius),
        point_hit_radius=_get_float(POINT_HIT_RADIUS_ENV, defaults.point_hit_radius),
    )


def get_service_config() -> ServiceConfig:
    """Return clustering service settings or raise a descriptive error."""

    url = _get_env(SERVICE_URL_ENV, DEFAULT_SERVICE_URL)
    raw_timeout = _get_env(SERVICE_TIMEOUT_ENV)
    try:
        timeout = int(raw_timeout) if raw_timeout is not None else DEFAULT_SERVICE_TIMEOUT
    except ValueError as exc:
        raise RuntimeError(
            f"CLUSTER_SERVICE_TIMEOUT must be an integer; received '{raw_timeout}'."
        ) from exc
    return ServiceConfig(base_url=url, timeout_seconds=timeout)


def get_log_level_name() -> str:
    return (_get_env(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()

"""Configuration for the SolariBoard display."""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# MBTA V3 API
MBTA_API_URL = "https://api-v3.mbta.com"

# North Station
DEFAULT_STOP_ID = "place-north"

# Route type filter for commuter rail
COMMUTER_RAIL_ROUTE_TYPE = 2

DEFAULT_REFRESH_SECS = 60.0
DEFAULT_TICK_SECS = 0.1
DEFAULT_TIMEOUT_SECS = 10.0


@dataclass
class BoardConfig:
    """Settings for one board instance."""
    stop_id: str = DEFAULT_STOP_ID
    refresh_interval: float = DEFAULT_REFRESH_SECS
    tick_interval: float = DEFAULT_TICK_SECS
    request_timeout: float = DEFAULT_TIMEOUT_SECS
    base_url: str = MBTA_API_URL
    api_key: Optional[str] = None
    route_type: int = COMMUTER_RAIL_ROUTE_TYPE


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def from_env(env: Optional[Mapping[str, str]] = None, stop_id: Optional[str] = None) -> BoardConfig:
    """
    Build a BoardConfig from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ.
        stop_id: Optional stop ID overriding SOLARI_STOP_ID.

    Returns:
        BoardConfig instance.

    Raises:
        ValueError: If a value is malformed.
    """
    if env is None:
        env = os.environ

    if stop_id is None:
        stop_id = env.get("SOLARI_STOP_ID", DEFAULT_STOP_ID)
    stop_id = stop_id.strip()
    if not stop_id:
        raise ValueError("Stop ID must not be empty")

    config = BoardConfig(
        stop_id=stop_id,
        refresh_interval=_positive_float(env, "SOLARI_REFRESH_SECS", DEFAULT_REFRESH_SECS),
        tick_interval=_positive_float(env, "SOLARI_TICK_SECS", DEFAULT_TICK_SECS),
        request_timeout=_positive_float(env, "SOLARI_TIMEOUT_SECS", DEFAULT_TIMEOUT_SECS),
        base_url=env.get("SOLARI_API_URL") or MBTA_API_URL,
        api_key=env.get("MBTA_API_KEY") or None,
    )
    logger.debug(f"Loaded config for stop {config.stop_id}")
    return config

"""SolariBoard - Live MBTA commuter rail departure board for a single station."""

__version__ = "0.1.0"

from .models import Platform, Station, Prediction, Trip, DisplayRow, BoardSnapshot
from .config import BoardConfig, from_env
from .mbta_client import MBTAClient, MBTAAPIError
from .board import SolariBoard
from .display import render_board

__all__ = [
    "SolariBoard",
    "MBTAClient",
    "MBTAAPIError",
    "BoardConfig",
    "from_env",
    "render_board",
    "Platform",
    "Station",
    "Prediction",
    "Trip",
    "DisplayRow",
    "BoardSnapshot",
]

"""Data models for the SolariBoard departure display."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from datetime import datetime

# Track label used when the API gives no platform code for a prediction
TRACK_TBD = "TBD"


@dataclass
class Platform:
    """A boarding platform within a station."""
    platform_id: str
    track: str  # Platform code, "TBD" when unknown, "" for a synthesized platform


@dataclass
class Station:
    """Represents a transit station and its boarding platforms."""
    stop_id: str
    name: str
    platforms: List[Platform] = field(default_factory=list)


@dataclass
class Prediction:
    """A forecasted departure of one trip from the station."""
    trip_id: Optional[str]
    departure_time: datetime  # Timezone-aware
    track: str
    status: Optional[str] = None


@dataclass
class Trip:
    """Metadata for a single scheduled run of a train."""
    trip_id: str
    train: str  # Train number/label
    headsign: str  # Destination


@dataclass(frozen=True)
class DisplayRow:
    """One display-ready departure on the board."""
    departure_time: datetime
    destination: str
    train: str
    track: str
    status: Optional[str] = None


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only view of the board handed to the renderer."""
    stop_id: str
    station_name: str
    current_time: datetime
    last_updated: Optional[datetime]  # None until the first successful refresh
    rows: Tuple[DisplayRow, ...] = ()

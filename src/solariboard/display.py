"""Text rendering of the departure board."""

from datetime import datetime, tzinfo
from typing import Iterable, Optional

import pandas as pd

from .models import BoardSnapshot, DisplayRow
from .pipeline import train_sort_key

COLUMNS = ["Time", "Destination", "Train", "Track", "Status"]

LOADING_PLACEHOLDER = "Data loading..."
NO_DEPARTURES = "No departures scheduled"


def format_time(dt: datetime, tz: Optional[tzinfo] = None, seconds: bool = False) -> str:
    """
    Format a time as "9:05 AM" (or "9:05:12 AM" with seconds).

    Args:
        dt: Time to format. Aware times are converted to `tz`.
        tz: Target timezone. Defaults to the local timezone.
        seconds: Include seconds.
    """
    if isinstance(dt, pd.Timestamp):
        # Timestamp.astimezone(None) converts to UTC, not local time
        dt = dt.to_pydatetime()
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    text = dt.strftime("%I:%M:%S %p" if seconds else "%I:%M %p")
    return text[1:] if text.startswith("0") else text


def rows_to_frame(rows: Iterable[DisplayRow]) -> pd.DataFrame:
    """Build a DataFrame with one row per departure, in the given order."""
    records = [
        {
            "Time": row.departure_time,
            "Destination": row.destination,
            "Train": row.train,
            "Track": row.track,
            "Status": row.status,
        }
        for row in rows
    ]
    return pd.DataFrame.from_records(records, columns=COLUMNS)


def sort_frame(frame: pd.DataFrame, sort_by: str) -> pd.DataFrame:
    """
    Sort the board by one column, keeping the existing order for ties.

    Raises:
        ValueError: If the column does not exist.
    """
    matches = [column for column in COLUMNS if column.lower() == sort_by.strip().lower()]
    if not matches:
        raise ValueError(f"Cannot sort by '{sort_by}'; choose one of {', '.join(COLUMNS)}")
    column = matches[0]

    if column == "Train":
        trains = list(frame["Train"])
        order = sorted(range(len(trains)), key=lambda i: train_sort_key(trains[i]))
        return frame.iloc[order]
    return frame.sort_values(column, kind="mergesort", na_position="last")


def render_board(
    snapshot: BoardSnapshot,
    sort_by: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Render a board snapshot as text.

    Args:
        snapshot: Board state to render.
        sort_by: Optional column name to sort the table by.
        tz: Timezone to show times in. Defaults to the local timezone.

    Returns:
        Multi-line string with a header, the departures table and a footer.
    """
    header = f"{snapshot.station_name or snapshot.stop_id} - {format_time(snapshot.current_time, tz, seconds=True)}"

    if snapshot.last_updated is None:
        return "\n".join([header, "", LOADING_PLACEHOLDER])

    if not snapshot.rows:
        table = NO_DEPARTURES
    else:
        frame = rows_to_frame(snapshot.rows)
        if sort_by:
            frame = sort_frame(frame, sort_by)
        frame["Time"] = frame["Time"].map(lambda dt: format_time(dt, tz))
        frame["Status"] = frame["Status"].fillna("")
        table = frame.to_string(index=False)

    footer = f"Data last updated {format_time(snapshot.last_updated, tz, seconds=True)}"
    return "\n".join([header, "", table, "", footer])

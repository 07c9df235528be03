"""Helpers for reward windows: one UTC calendar day keyed by its midnight timestamp."""
from datetime import date, datetime, time, timezone as dt_timezone

from django.utils import timezone

from .constants import SECONDS_PER_DAY


def normalize_date_ts(ts: int) -> int:
    """Midnight (UTC) of the day containing `ts`."""
    return int(ts) - int(ts) % SECONDS_PER_DAY


def date_to_ts(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=dt_timezone.utc).timestamp())


def ts_to_date(date_ts: int) -> date:
    return datetime.fromtimestamp(date_ts, tz=dt_timezone.utc).date()


def today_ts() -> int:
    return normalize_date_ts(int(timezone.now().timestamp()))


def yesterday_ts() -> int:
    return today_ts() - SECONDS_PER_DAY


def payout_timestamp(date_ts: int) -> int:
    """Last second of the window, so payouts are booked inside the rewarded day."""
    return normalize_date_ts(date_ts) + SECONDS_PER_DAY - 1


def parse_window(value: str) -> int:
    """Parse a YYYY-MM-DD string into a window timestamp."""
    return date_to_ts(date.fromisoformat(value))


def window_label(date_ts: int) -> str:
    return ts_to_date(date_ts).isoformat()

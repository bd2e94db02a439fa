"""Time utilities (IST)."""

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")


def now_ist_naive() -> datetime:
    """
    Current time in IST, returned as naive datetime for DB storage.
    """
    return datetime.now(IST).replace(tzinfo=None)


def to_ist_iso_db(dt: datetime, naive_assumed_tz: tzinfo = IST) -> str:
    """
    Convert a DB timestamp to an IST ISO string with offset.

    Ledger timestamps are stored as naive IST, so naive values are
    interpreted as IST unless told otherwise.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.astimezone(IST).isoformat()

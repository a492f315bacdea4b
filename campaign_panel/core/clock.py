# campaign_panel/core/clock.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    # columns are naive UTC
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)

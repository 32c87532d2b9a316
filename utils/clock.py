from datetime import datetime, timezone, timedelta


def utcnow() -> datetime:
    """Naive UTC now. All order timestamps are stored naive in UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def seconds_ago(seconds: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(seconds=seconds)


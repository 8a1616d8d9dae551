from datetime import UTC, date, datetime, time


def now() -> datetime:
    return datetime.now(UTC)


def start_of_day(value: date) -> datetime:
    """Midnight UTC of the given calendar day."""
    return datetime.combine(value, time.min, tzinfo=UTC)

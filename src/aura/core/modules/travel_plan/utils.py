from datetime import date, timedelta

MAX_TRIP_DAYS = 366


def day_range(start: date, end: date) -> list[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def diff_days(current: list[date], new: list[date]) -> tuple[list[date], list[date]]:
    """Return (days to add, days to remove) to get from ``current`` to ``new``."""
    current_set, new_set = set(current), set(new)
    return [day for day in new if day not in current_set], [day for day in current if day not in new_set]

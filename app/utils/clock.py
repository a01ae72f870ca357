from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return utcnow().date()


def start_of_today_utc() -> datetime:
    """Midnight (UTC) of the current day.

    ``due_date < start_of_today_utc()`` is the same test as "the due date's
    calendar day is before today" and stays index-friendly on every backend.
    """
    return datetime.combine(today_utc(), time.min, tzinfo=timezone.utc)

from datetime import date, datetime, time, timedelta


def hhmm_to_time(hhmm: str):
    """Parse time strings into datetime.time.

    Accepts common formats:
      - 'HH:MM' (24h)
      - 'HH:MM:SS' (24h)
      - 'H:MM AM/PM' (12h), case-insensitive
      - 'H AM/PM'

    Returns None for empty strings.
    """
    if hhmm is None:
        return None
    s = hhmm.strip()
    if s == "":
        return None

    candidates = [
        "%H:%M",
        "%H:%M:%S",
        "%I:%M %p",
        "%I %p",
    ]
    for fmt in candidates:
        try:
            return datetime.strptime(s, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Time '{hhmm}' must be in formats like 'HH:MM' or '2:00 PM'")


def time_to_hhmm(t) -> str | None:
    """Format datetime.time -> 'HH:MM'. Returns None if t is None."""
    if t is None:
        return None
    return f"{t.hour:02d}:{t.minute:02d}"


def shift_minutes(start: time, end: time) -> int:
    """Gross minutes between two clock times.

    An end at or before the start is read as the next day, so a
    22:00 -> 06:00 shift is 480 minutes.
    """
    start_m = start.hour * 60 + start.minute
    end_m = end.hour * 60 + end.minute
    if end_m <= start_m:
        end_m += 24 * 60
    return end_m - start_m


def monday_of(d: date) -> date:
    # Monday = 0, Sunday = 6
    return d - timedelta(days=d.weekday())


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_friendly_date(d: date) -> str:
    """'July 15th, 2024' style date used for display and search."""
    return f"{d.strftime('%B')} {_ordinal(d.day)}, {d.year}"


def format_duration(total_seconds: float) -> str:
    """Format a duration as '2h 05m', '45m' or '<1m'."""
    total_minutes = int(abs(total_seconds) // 60)
    if total_minutes == 0:
        return "<1m"
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes:02d}m"


def format_time_ahead_behind(seconds: float | None) -> str:
    """Human description of a schedule offset in seconds (positive = ahead)."""
    if seconds is None:
        return "-"
    if abs(seconds) < 60:
        return "On schedule"
    label = "Ahead" if seconds > 0 else "Behind"
    return f"{label} by {format_duration(seconds)}"


def to_local_datetime(dt, tz_name: str | None = None):
    """Convert a datetime from source tz (assume UTC if naive) to local or given tz.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is IANA tz name (e.g., 'America/New_York'): use that.
    - If `dt` has no tzinfo, assume UTC.
    """
    from datetime import timezone
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if tz_name and tz_name != "local":
        try:
            from zoneinfo import ZoneInfo
            return dt.astimezone(ZoneInfo(tz_name))
        except (KeyError, ValueError):
            return dt.astimezone()
    return dt.astimezone()


def local_now(tz_name: str | None = None) -> datetime:
    """Wall-clock time in the configured zone, as a naive datetime.

    Work log dates and shift times are stored as local wall-clock values,
    so live calculations compare against a naive local `now`.
    """
    from datetime import timezone
    return to_local_datetime(datetime.now(timezone.utc), tz_name).replace(tzinfo=None)

import re
from datetime import date, datetime

from calendar_generator import CalendarError, normalize_time
from models import DAYS_OF_WEEK


def normalize_team_name(name: str) -> str:
    """Return a canonical form of a team name for duplicate detection.
    - Lowercase
    - Remove all non-alphanumeric characters
    """
    if not name:
        return ""
    lowered = name.lower()
    canonical = re.sub(r"[^a-z0-9]", "", lowered)
    return canonical


def parse_iso_date(value) -> date | None:
    """Parse 'YYYY-MM-DD' (a trailing time part is ignored). Returns None if invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_availability(entries):
    """
    Validate availability entries posted for a team.

    Each entry: {"day_of_week": "monday", "is_available": true,
                 "start_time": "09:00", "end_time": "18:00"}
    Returns: (cleaned_entries, errors)
    """
    if entries is None:
        return [], []
    if not isinstance(entries, list):
        return [], ["Availability must be a list of entries"]

    cleaned = []
    errors = []
    seen_days = set()

    for entry in entries:
        if not isinstance(entry, dict):
            errors.append("Availability entries must be objects")
            continue

        day = str(entry.get("day_of_week") or "").strip().lower()
        if day not in DAYS_OF_WEEK:
            errors.append(f"Invalid day of week: {entry.get('day_of_week')!r}")
            continue
        if day in seen_days:
            errors.append(f"Duplicate availability for {day}")
            continue
        seen_days.add(day)

        try:
            start_time = normalize_time(entry["start_time"]) if entry.get("start_time") else None
            end_time = normalize_time(entry["end_time"]) if entry.get("end_time") else None
        except CalendarError as e:
            errors.append(f"{day}: {e}")
            continue

        if start_time and end_time and start_time >= end_time:
            errors.append(f"{day}: start time must be before end time")
            continue

        is_available = entry.get("is_available", True)
        if not isinstance(is_available, bool):
            errors.append(f"{day}: is_available must be true or false")
            continue

        cleaned.append({
            "day_of_week": day,
            "is_available": is_available,
            "start_time": start_time,
            "end_time": end_time,
        })

    return cleaned, errors

"""iCalendar (RFC 5545) feed of a church's events.

Calendar apps subscribe to the feed URL, so the output favours broad client
compatibility: UTC timestamps, CRLF line endings and escaped text values.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable

from app.adapters.store.base import AbstractCRMStore

PRODID = "-//Grace CRM//Church Calendar//EN"
UID_DOMAIN = "grace-crm.com"
DEFAULT_DURATION = timedelta(hours=1)
SUNDAY, WEDNESDAY = 6, 2


def escape_text(value: str | None) -> str:
    """Escape backslash, semicolon, comma and newline for a TEXT value."""
    if not value:
        return ""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def parse_datetime(value: Any) -> datetime:
    """Accept datetimes, dates and ISO strings; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_ical_datetime(value: datetime, all_day: bool = False) -> str:
    if all_day:
        return value.strftime("%Y%m%d")
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def next_weekday(now: datetime, weekday: int, hour: int, minute: int) -> datetime:
    """Next occurrence (strictly after today) of ``weekday`` at hour:minute UTC."""
    days_ahead = (weekday - now.weekday()) % 7 or 7
    day = (now + timedelta(days=days_ahead)).date()
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def default_schedule(now: datetime) -> list[dict[str, Any]]:
    """Weekly services published when a church has no events of its own."""
    return [
        {
            "id": "sunday-service",
            "title": "Sunday Service",
            "description": "Weekly worship service",
            "start_date": next_weekday(now, SUNDAY, 10, 0),
            "end_date": next_weekday(now, SUNDAY, 12, 0),
            "location": "Main Sanctuary",
            "category": "service",
        },
        {
            "id": "wednesday-prayer",
            "title": "Wednesday Prayer",
            "description": "Midweek prayer meeting",
            "start_date": next_weekday(now, WEDNESDAY, 19, 0),
            "end_date": next_weekday(now, WEDNESDAY, 20, 30),
            "location": "Fellowship Hall",
            "category": "prayer",
        },
    ]


def build_vevent(event: dict[str, Any], church_id: str, stamp: str) -> list[str]:
    all_day = bool(event.get("all_day"))
    start = parse_datetime(event["start_date"])
    end = parse_datetime(event["end_date"]) if event.get("end_date") else start + DEFAULT_DURATION
    date_param = ";VALUE=DATE" if all_day else ""

    lines = [
        "BEGIN:VEVENT",
        f"UID:{event['id']}@{church_id}.{UID_DOMAIN}",
        f"DTSTAMP:{stamp}",
        f"DTSTART{date_param}:{format_ical_datetime(start, all_day)}",
        f"DTEND{date_param}:{format_ical_datetime(end, all_day)}",
        f"SUMMARY:{escape_text(event.get('title'))}",
    ]
    if event.get("description"):
        lines.append(f"DESCRIPTION:{escape_text(event['description'])}")
    if event.get("location"):
        lines.append(f"LOCATION:{escape_text(event['location'])}")
    if event.get("category"):
        lines.append(f"CATEGORIES:{escape_text(event['category'])}")
    lines.append("END:VEVENT")
    return lines


def build_ical(events: Iterable[dict[str, Any]], church_name: str, church_id: str, now: datetime) -> str:
    stamp = format_ical_datetime(now)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_text(church_name)} Calendar",
        f"X-WR-CALDESC:Events from {escape_text(church_name)}",
    ]
    for event in events:
        lines.extend(build_vevent(event, church_id, stamp))
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)


class CalendarService:
    def __init__(self, store: AbstractCRMStore) -> None:
        self.store = store

    def feed(self, church_id: str, church_name: str, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        events = self.store.list_events(church_id) or default_schedule(now)
        return build_ical(events, church_name, church_id, now)

"""Tests for the iCalendar feed builder and GET /api/calendar/ical."""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.adapters.store.in_memory import InMemoryCRMStore
from app.services.calendar_service import (
    CalendarService,
    build_ical,
    build_vevent,
    default_schedule,
    escape_text,
    format_ical_datetime,
    next_weekday,
    parse_datetime,
)

# Wednesday
NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)
STAMP = "20260318T150000Z"


class TestHelpers:
    def test_escape_text(self):
        assert escape_text("Potluck; bring food, drinks\nand joy") == "Potluck\\; bring food\\, drinks\\nand joy"
        assert escape_text("C:\\path") == "C:\\\\path"
        assert escape_text(None) == ""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2026-04-05T10:00:00Z", datetime(2026, 4, 5, 10, 0, tzinfo=timezone.utc)),
            ("2026-04-05T10:00:00-05:00", datetime(2026, 4, 5, 15, 0, tzinfo=timezone.utc)),
            ("2026-04-05T10:00:00", datetime(2026, 4, 5, 10, 0, tzinfo=timezone.utc)),
            (date(2026, 4, 5), datetime(2026, 4, 5, 0, 0, tzinfo=timezone.utc)),
        ],
    )
    def test_parse_datetime_normalises_to_utc(self, value, expected):
        assert parse_datetime(value) == expected

    def test_format_ical_datetime(self):
        value = datetime(2026, 4, 5, 9, 30, 5, tzinfo=timezone(timedelta(hours=-4)))

        assert format_ical_datetime(value) == "20260405T133005Z"
        assert format_ical_datetime(value, all_day=True) == "20260405"

    def test_next_weekday_is_strictly_after_today(self):
        assert next_weekday(NOW, 2, 19, 0) == datetime(2026, 3, 25, 19, 0, tzinfo=timezone.utc)
        assert next_weekday(NOW, 6, 10, 0) == datetime(2026, 3, 22, 10, 0, tzinfo=timezone.utc)

    def test_default_schedule(self):
        sunday, wednesday = default_schedule(NOW)

        assert sunday["start_date"] == datetime(2026, 3, 22, 10, 0, tzinfo=timezone.utc)
        assert sunday["end_date"] == datetime(2026, 3, 22, 12, 0, tzinfo=timezone.utc)
        assert sunday["location"] == "Main Sanctuary"
        assert wednesday["end_date"] == datetime(2026, 3, 25, 20, 30, tzinfo=timezone.utc)
        assert wednesday["location"] == "Fellowship Hall"


class TestBuildVevent:
    def test_timed_event(self):
        event = {
            "id": "evt-1",
            "title": "Youth Night",
            "description": "Games, pizza",
            "start_date": "2026-04-03T23:00:00Z",
            "end_date": "2026-04-04T01:00:00Z",
            "location": "Gym",
            "category": "youth",
        }

        lines = build_vevent(event, "grace-1", STAMP)

        assert lines == [
            "BEGIN:VEVENT",
            "UID:evt-1@grace-1.grace-crm.com",
            f"DTSTAMP:{STAMP}",
            "DTSTART:20260403T230000Z",
            "DTEND:20260404T010000Z",
            "SUMMARY:Youth Night",
            "DESCRIPTION:Games\\, pizza",
            "LOCATION:Gym",
            "CATEGORIES:youth",
            "END:VEVENT",
        ]

    def test_all_day_event_uses_date_values(self):
        event = {"id": "evt-2", "title": "Easter", "start_date": "2026-04-05", "all_day": True}

        lines = build_vevent(event, "grace-1", STAMP)

        assert "DTSTART;VALUE=DATE:20260405" in lines
        assert "DTEND;VALUE=DATE:20260405" in lines

    def test_missing_end_defaults_to_one_hour(self):
        event = {"id": "evt-3", "title": "Choir", "start_date": "2026-04-01T18:00:00Z"}

        assert "DTEND:20260401T190000Z" in build_vevent(event, "grace-1", STAMP)

    def test_optional_fields_are_omitted(self):
        event = {"id": "evt-4", "title": "Quiet", "start_date": "2026-04-01T18:00:00Z"}

        lines = build_vevent(event, "grace-1", STAMP)

        assert not any(line.startswith(("DESCRIPTION", "LOCATION", "CATEGORIES")) for line in lines)


class TestBuildIcal:
    def test_calendar_envelope_uses_crlf(self):
        body = build_ical([], "Grace, Downtown", "grace-1", NOW)

        lines = body.split("\r\n")
        assert lines[0] == "BEGIN:VCALENDAR"
        assert lines[-1] == "END:VCALENDAR"
        assert "X-WR-CALNAME:Grace\\, Downtown Calendar" in lines
        assert "METHOD:PUBLISH" in lines

    def test_feed_uses_stored_events(self):
        store = InMemoryCRMStore()
        store.events.append(
            {"id": "evt-9", "church_id": "grace-1", "title": "Picnic", "start_date": "2026-05-01T16:00:00Z"}
        )
        store.events.append(
            {"id": "evt-x", "church_id": "other", "title": "Other", "start_date": "2026-05-01T16:00:00Z"}
        )

        body = CalendarService(store).feed("grace-1", "Grace Church", now=NOW)

        assert "UID:evt-9@grace-1.grace-crm.com" in body
        assert "evt-x" not in body
        assert "sunday-service" not in body

    def test_feed_falls_back_to_default_schedule(self):
        body = CalendarService(InMemoryCRMStore()).feed("grace-1", "Grace Church", now=NOW)

        assert "UID:sunday-service@grace-1.grace-crm.com" in body
        assert "DTSTART:20260322T100000Z" in body
        assert "DTSTART:20260325T190000Z" in body


class TestIcalRoute:
    def test_returns_calendar_file(self, client, store):
        response = client.get("/api/calendar/ical?churchId=grace-1&churchName=Grace%20North")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert response.headers["content-disposition"] == 'attachment; filename="grace-1-calendar.ics"'
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert "X-WR-CALNAME:Grace North Calendar" in response.text
        assert "\r\n" in response.text

    def test_missing_church_id_is_400(self, client, store):
        response = client.get("/api/calendar/ical")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "churchId is required"

    def test_rejects_unsafe_church_id(self, client, store):
        assert client.get("/api/calendar/ical?churchId=bad%20id!").status_code == 422

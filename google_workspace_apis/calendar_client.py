"""
CalendarClient — request builders for the Google Calendar API v3 events collection.

Every method returns a builder; nothing is sent until ``.execute()``.

Usage:
    cal = CalendarClient(client)
    events = (
        cal.get_events("primary")
        .single_events(True)
        .order_by(EventOrderBy.START_TIME)
        .time_min(datetime.now(timezone.utc))
        .max_results(10)
        .execute()
    )
    cal.insert_event("primary", start, end).set_summary("Standup").execute()
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .google_client import GoogleClient
from .models import Event, EventAttendee, EventDateTime, EventList
from .request import (
    ApiRequest,
    EmptyResponseRequest,
    PagedRequest,
    parse_rfc3339,
    to_rfc3339,
)

logger = logging.getLogger(__name__)

_API = ("calendar", "v3")

EventTime = Union[EventDateTime, datetime, date]


class EventOrderBy(str, Enum):
    START_TIME = "startTime"
    UPDATED = "updated"


class EventType(str, Enum):
    BIRTHDAY = "birthday"
    DEFAULT = "default"
    FOCUS_TIME = "focusTime"
    FROM_GMAIL = "fromGmail"
    OUT_OF_OFFICE = "outOfOffice"
    WORKING_LOCATION = "workingLocation"


class SendUpdates(str, Enum):
    ALL = "all"
    EXTERNAL_ONLY = "externalOnly"
    NONE = "none"


def _as_event_datetime(value: EventTime) -> EventDateTime:
    if isinstance(value, EventDateTime):
        return value
    if isinstance(value, datetime):
        return EventDateTime(date_time=value)
    return EventDateTime(date=value)


# ── Parsers ───────────────────────────────────────────────────────────────────

def _parse_event_datetime(raw: Optional[dict]) -> Optional[EventDateTime]:
    if not raw:
        return None
    day = raw.get("date")
    return EventDateTime(
        date=date.fromisoformat(day) if day else None,
        date_time=parse_rfc3339(raw.get("dateTime")),
        time_zone=raw.get("timeZone"),
    )


def _parse_attendee(raw: dict) -> EventAttendee:
    return EventAttendee(
        email=raw.get("email", ""),
        display_name=raw.get("displayName", ""),
        response_status=raw.get("responseStatus", ""),
        comment=raw.get("comment", ""),
        optional=bool(raw.get("optional", False)),
        organizer=bool(raw.get("organizer", False)),
        is_self=bool(raw.get("self", False)),
        resource=bool(raw.get("resource", False)),
        additional_guests=int(raw.get("additionalGuests") or 0),
    )


def _parse_event(raw: dict) -> Event:
    return Event(
        event_id=raw["id"],
        summary=raw.get("summary", ""),
        description=raw.get("description", ""),
        location=raw.get("location", ""),
        status=raw.get("status", ""),
        start=_parse_event_datetime(raw.get("start")),
        end=_parse_event_datetime(raw.get("end")),
        attendees=[_parse_attendee(a) for a in raw.get("attendees") or []],
        organizer=(raw.get("organizer") or {}).get("email", ""),
        creator=(raw.get("creator") or {}).get("email", ""),
        recurrence=list(raw.get("recurrence") or []),
        color_id=raw.get("colorId", ""),
        event_type=raw.get("eventType", ""),
        visibility=raw.get("visibility", ""),
        transparency=raw.get("transparency", ""),
        sequence=int(raw.get("sequence") or 0),
        html_link=raw.get("htmlLink", ""),
        etag=raw.get("etag", ""),
        created=parse_rfc3339(raw.get("created")),
        updated=parse_rfc3339(raw.get("updated")),
    )


def event_start(event: Event, default_tz: str = "") -> Optional[datetime]:
    """
    Aware start instant of an event. All-day events start at midnight in the
    event's time zone (falling back to ``default_tz``, then UTC).
    """
    if event.start is None:
        return None
    if event.start.date_time is not None:
        return event.start.date_time
    if event.start.date is None:
        return None
    tz: Any = timezone.utc
    tz_name = event.start.time_zone or default_tz
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %r on event %s, using UTC", tz_name, event.event_id)
    d = event.start.date
    return datetime(d.year, d.month, d.day, tzinfo=tz)


# ── Builders ──────────────────────────────────────────────────────────────────

class EventListRequest(PagedRequest):
    """``events.list`` — events of one calendar, optionally bounded in time."""

    api = _API
    resource = ("events",)
    method = "list"

    def __init__(self, client: GoogleClient, calendar_id: str) -> None:
        super().__init__(client, calendarId=calendar_id)
        self._time_min: Optional[datetime] = None
        self._time_max: Optional[datetime] = None

    def time_min(self, time_min: datetime) -> "EventListRequest":
        self._time_min = time_min if time_min.tzinfo else time_min.replace(tzinfo=timezone.utc)
        return self._param("timeMin", to_rfc3339(time_min))

    def time_max(self, time_max: datetime) -> "EventListRequest":
        self._time_max = time_max if time_max.tzinfo else time_max.replace(tzinfo=timezone.utc)
        return self._param("timeMax", to_rfc3339(time_max))

    def event_type(self, *types: EventType) -> "EventListRequest":
        return self._param("eventTypes", [EventType(t).value for t in types])

    def order_by(self, by: EventOrderBy) -> "EventListRequest":
        return self._param("orderBy", EventOrderBy(by).value)

    def max_attendees(self, max_attendees: int) -> "EventListRequest":
        return self._param("maxAttendees", int(max_attendees))

    def single_events(self, single: bool) -> "EventListRequest":
        """Expand recurring events into instances (required for order_by START_TIME)."""
        return self._param("singleEvents", bool(single))

    def show_deleted(self, show: bool) -> "EventListRequest":
        return self._param("showDeleted", bool(show))

    def show_hidden_invitations(self, show: bool) -> "EventListRequest":
        return self._param("showHiddenInvitations", bool(show))

    def query(self, query: str) -> "EventListRequest":
        """Free-text search in summary, description, location, attendees."""
        return self._param("q", query)

    def time_zone(self, tz_name: str) -> "EventListRequest":
        return self._param("timeZone", tz_name)

    def updated_min(self, updated_min: datetime) -> "EventListRequest":
        return self._param("updatedMin", to_rfc3339(updated_min))

    def parse(self, raw: dict) -> EventList:
        events = [_parse_event(e) for e in raw.get("items") or []]
        list_tz = raw.get("timeZone", "")

        # Google returns every event overlapping the window; callers asking for
        # a window get only the events that start inside it.
        if self._time_min is not None or self._time_max is not None:
            kept = []
            for e in events:
                start = event_start(e, list_tz)
                if start is None:
                    continue
                if self._time_min is not None and start < self._time_min:
                    continue
                if self._time_max is not None and start >= self._time_max:
                    continue
                kept.append(e)
            if len(kept) != len(events):
                logger.debug("Dropped %d event(s) starting outside the window", len(events) - len(kept))
            events = kept

        return EventList(
            summary=raw.get("summary", ""),
            time_zone=list_tz,
            items=events,
            next_page_token=raw.get("nextPageToken", ""),
            next_sync_token=raw.get("nextSyncToken", ""),
            updated=parse_rfc3339(raw.get("updated")),
        )


class EventGetRequest(ApiRequest):
    """``events.get`` — a single event by id."""

    api = _API
    resource = ("events",)
    method = "get"

    def __init__(self, client: GoogleClient, calendar_id: str, event_id: str) -> None:
        super().__init__(client, calendarId=calendar_id, eventId=event_id)

    def time_zone(self, tz_name: str) -> "EventGetRequest":
        return self._param("timeZone", tz_name)

    def max_attendees(self, max_attendees: int) -> "EventGetRequest":
        return self._param("maxAttendees", int(max_attendees))

    def parse(self, raw: dict) -> Event:
        return _parse_event(raw)


class _EventWriteRequest(ApiRequest):
    """Shared setters for insert and patch; body fields use the API's camelCase names."""

    api = _API
    resource = ("events",)

    def __init__(self, client: GoogleClient, **params: Any) -> None:
        super().__init__(client, **params)
        self.body = {}

    def set_summary(self, summary: str):
        return self._field("summary", summary)

    def set_description(self, description: str):
        return self._field("description", description)

    def set_location(self, location: str):
        return self._field("location", location)

    def set_attendees(self, attendees: list[EventAttendee | str]):
        return self._field("attendees", [
            (EventAttendee(email=a) if isinstance(a, str) else a).to_api() for a in attendees
        ])

    def set_type(self, event_type: EventType):
        return self._field("eventType", EventType(event_type).value)

    set_event_type = set_type

    def set_color_id(self, color_id: str):
        return self._field("colorId", color_id)

    def set_recurrence(self, rules: list[str]):
        """RRULE/EXRULE/RDATE/EXDATE lines, e.g. ``["RRULE:FREQ=DAILY"]``."""
        return self._field("recurrence", list(rules))

    def set_send_updates(self, send_updates: SendUpdates):
        return self._param("sendUpdates", SendUpdates(send_updates).value)

    def set_conference_data_version(self, version: int):
        return self._param("conferenceDataVersion", int(version))

    def support_attachments(self, supported: bool):
        return self._param("supportsAttachments", bool(supported))

    def set_max_attendees(self, max_attendees: int):
        return self._param("maxAttendees", int(max_attendees))

    def parse(self, raw: dict) -> Event:
        event = _parse_event(raw)
        logger.info("%s event %s: %s", self.method.capitalize(), event.event_id, event.summary)
        return event


class EventInsertRequest(_EventWriteRequest):
    """``events.insert`` — create an event; start and end are mandatory."""

    method = "insert"

    def __init__(
        self, client: GoogleClient, calendar_id: str, start: EventTime, end: EventTime
    ) -> None:
        super().__init__(client, calendarId=calendar_id)
        self._field("start", _as_event_datetime(start).to_api())
        self._field("end", _as_event_datetime(end).to_api())


class EventPatchRequest(_EventWriteRequest):
    """``events.patch`` — only the fields set on the builder are sent."""

    method = "patch"

    def __init__(self, client: GoogleClient, calendar_id: str, event_id: str) -> None:
        super().__init__(client, calendarId=calendar_id, eventId=event_id)

    def set_start(self, start: EventTime) -> "EventPatchRequest":
        return self._field("start", _as_event_datetime(start).to_api())

    def set_end(self, end: EventTime) -> "EventPatchRequest":
        return self._field("end", _as_event_datetime(end).to_api())

    def set_guests_can_invite_others(self, allowed: bool) -> "EventPatchRequest":
        return self._field("guestsCanInviteOthers", bool(allowed))

    def set_guests_can_modify(self, allowed: bool) -> "EventPatchRequest":
        return self._field("guestsCanModify", bool(allowed))

    def set_guests_can_see_other_guests(self, allowed: bool) -> "EventPatchRequest":
        return self._field("guestsCanSeeOtherGuests", bool(allowed))

    def set_id(self, event_id: str) -> "EventPatchRequest":
        return self._field("id", event_id)

    def set_sequence(self, sequence: int) -> "EventPatchRequest":
        return self._field("sequence", int(sequence))

    def set_status(self, status: str) -> "EventPatchRequest":
        """'confirmed' | 'tentative' | 'cancelled'"""
        return self._field("status", status)

    def set_transparency(self, transparency: str) -> "EventPatchRequest":
        """'opaque' (busy) | 'transparent' (free)"""
        return self._field("transparency", transparency)

    def set_visibility(self, visibility: str) -> "EventPatchRequest":
        return self._field("visibility", visibility)


class EventDeleteRequest(EmptyResponseRequest):
    """``events.delete``"""

    api = _API
    resource = ("events",)
    method = "delete"

    def __init__(self, client: GoogleClient, calendar_id: str, event_id: str) -> None:
        super().__init__(client, calendarId=calendar_id, eventId=event_id)

    def set_send_updates(self, send_updates: SendUpdates) -> "EventDeleteRequest":
        return self._param("sendUpdates", SendUpdates(send_updates).value)

    def parse(self, raw: Any) -> None:
        logger.info("Deleted event %s", self.params["eventId"])
        return None


# ── Client class ──────────────────────────────────────────────────────────────

class CalendarClient:
    """
    Entry point for Calendar event builders.

    Instantiate with a GoogleClient so the token is shared:
        cal = CalendarClient(client)
        cal.delete_event("primary", event_id).execute()
    """

    def __init__(self, client: GoogleClient) -> None:
        self._client = client

    def get_events(self, calendar_id: str = "primary") -> EventListRequest:
        return EventListRequest(self._client, calendar_id)

    def get_upcoming_events(
        self, days: int = 7, calendar_id: str = "primary"
    ) -> EventListRequest:
        """Events starting from now through the next N days, in start order."""
        now = datetime.now(timezone.utc)
        return (
            self.get_events(calendar_id)
            .time_min(now)
            .time_max(now + timedelta(days=days))
            .single_events(True)
            .order_by(EventOrderBy.START_TIME)
        )

    def get_event(self, calendar_id: str, event_id: str) -> EventGetRequest:
        return EventGetRequest(self._client, calendar_id, event_id)

    def insert_event(
        self, calendar_id: str, start: EventTime, end: EventTime
    ) -> EventInsertRequest:
        return EventInsertRequest(self._client, calendar_id, start, end)

    def patch_event(self, calendar_id: str, event_id: str) -> EventPatchRequest:
        return EventPatchRequest(self._client, calendar_id, event_id)

    def delete_event(self, calendar_id: str, event_id: str) -> EventDeleteRequest:
        return EventDeleteRequest(self._client, calendar_id, event_id)

"""
Typed data models for credentials, tokens and Google API resources.

All classes are plain dataclasses. Decoding from raw API dicts lives next to
the client that fetches them; the only logic here is small derived properties
and the token endpoint conversion.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from .errors import DeserializationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Auth ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ClientCredentials:
    """OAuth client configuration plus the long-lived refresh token."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str = ""
    refresh_token: str = field(default="", repr=False)


@dataclass
class AccessToken:
    """
    A bearer token and when it stops being valid.

    Owned by a single GoogleClient which refreshes it in place.
    """

    token: str
    expiry: datetime
    refresh_token: str = field(default="", repr=False)
    token_type: str = "Bearer"
    scope: str = ""

    @classmethod
    def from_token_response(
        cls, data: dict[str, Any], now: Optional[datetime] = None
    ) -> "AccessToken":
        """Build from a token endpoint payload (expires_in is relative seconds)."""
        now = now or _utcnow()
        scope = data.get("scope") or ""
        if isinstance(scope, (list, tuple)):
            scope = " ".join(scope)
        return cls(
            token=data["access_token"],
            expiry=now + timedelta(seconds=int(data.get("expires_in") or 0)),
            refresh_token=data.get("refresh_token") or "",
            token_type=data.get("token_type") or "Bearer",
            scope=scope,
        )

    @property
    def expired(self) -> bool:
        return _utcnow() >= self.expiry

    @property
    def seconds_remaining(self) -> int:
        """Seconds until expiry; negative once expired."""
        return int((self.expiry - _utcnow()).total_seconds())


# ── Calendar ──────────────────────────────────────────────────────────────────

@dataclass
class EventDateTime:
    """Start or end of an event: either an all-day ``date`` or a ``date_time``."""

    date: Optional[date] = None
    date_time: Optional[datetime] = None
    time_zone: Optional[str] = None

    @property
    def is_all_day(self) -> bool:
        return self.date is not None and self.date_time is None

    def to_api(self) -> dict[str, str]:
        body: dict[str, str] = {}
        if self.date_time is not None:
            body["dateTime"] = self.date_time.isoformat()
        elif self.date is not None:
            body["date"] = self.date.isoformat()
        if self.time_zone:
            body["timeZone"] = self.time_zone
        return body


@dataclass
class EventAttendee:
    email: str
    display_name: str = ""
    response_status: str = ""
    comment: str = ""
    optional: bool = False
    organizer: bool = False
    is_self: bool = False
    resource: bool = False
    additional_guests: int = 0

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {"email": self.email}
        if self.display_name:
            body["displayName"] = self.display_name
        if self.response_status:
            body["responseStatus"] = self.response_status
        if self.comment:
            body["comment"] = self.comment
        if self.optional:
            body["optional"] = True
        if self.additional_guests:
            body["additionalGuests"] = self.additional_guests
        return body


@dataclass
class Event:
    """A Google Calendar event."""

    event_id: str
    summary: str = ""
    description: str = ""
    location: str = ""
    status: str = ""
    start: Optional[EventDateTime] = None
    end: Optional[EventDateTime] = None
    attendees: list[EventAttendee] = field(default_factory=list)
    organizer: str = ""
    creator: str = ""
    recurrence: list[str] = field(default_factory=list)
    color_id: str = ""
    event_type: str = ""
    visibility: str = ""
    transparency: str = ""
    sequence: int = 0
    html_link: str = ""
    etag: str = ""
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @property
    def is_all_day(self) -> bool:
        return self.start is not None and self.start.is_all_day


@dataclass
class EventList:
    summary: str = ""
    time_zone: str = ""
    items: list[Event] = field(default_factory=list)
    next_page_token: str = ""
    next_sync_token: str = ""
    updated: Optional[datetime] = None


# ── Tasks ─────────────────────────────────────────────────────────────────────

@dataclass
class TaskLink:
    type: str
    link: str
    description: str = ""


@dataclass
class Task:
    """A single Google Task."""

    task_id: str
    title: str = ""
    status: str = "needsAction"     # 'needsAction' | 'completed'
    notes: str = ""
    due: Optional[datetime] = None
    completed: Optional[datetime] = None
    updated: Optional[datetime] = None
    parent: Optional[str] = None
    position: str = ""
    hidden: bool = False
    deleted: bool = False
    links: list[TaskLink] = field(default_factory=list)
    etag: str = ""
    web_view_link: str = ""

    @property
    def is_done(self) -> bool:
        return self.status == "completed"


@dataclass
class Tasks:
    items: list[Task] = field(default_factory=list)
    next_page_token: str = ""
    etag: str = ""


@dataclass
class TaskList:
    """A Google Tasks list (container for tasks)."""

    list_id: str
    title: str = ""
    updated: Optional[datetime] = None
    etag: str = ""
    self_link: str = ""


@dataclass
class TaskLists:
    items: list[TaskList] = field(default_factory=list)
    next_page_token: str = ""
    etag: str = ""


# ── Gmail ─────────────────────────────────────────────────────────────────────

@dataclass
class Header:
    name: str
    value: str


@dataclass
class MessagePartBody:
    data: str = ""              # base64url encoded
    size: int = 0
    attachment_id: str = ""


@dataclass
class MessagePart:
    part_id: str = ""
    mime_type: str = ""
    filename: str = ""
    headers: list[Header] = field(default_factory=list)
    body: Optional[MessagePartBody] = None
    parts: list["MessagePart"] = field(default_factory=list)


@dataclass
class Message:
    """A Gmail message. Most fields are empty unless fetched with format=full."""

    message_id: str
    thread_id: str = ""
    label_ids: list[str] = field(default_factory=list)
    snippet: str = ""
    history_id: str = ""
    internal_date: str = ""     # epoch milliseconds, as Gmail sends it
    payload: Optional[MessagePart] = None
    size_estimate: int = 0
    raw: str = ""

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive lookup of a top-level payload header."""
        if self.payload is None:
            return default
        wanted = name.lower()
        for h in self.payload.headers:
            if h.name.lower() == wanted:
                return h.value
        return default

    @property
    def subject(self) -> str:
        return self.header("Subject")

    @property
    def sender(self) -> str:
        return self.header("From")

    @property
    def body_plain(self) -> str:
        """First text/plain part of the payload, decoded; DeserializationError if it is not base64url."""
        return _decode_plain(self.payload).strip() if self.payload else ""

    @property
    def is_unread(self) -> bool:
        return "UNREAD" in self.label_ids

    @property
    def is_trashed(self) -> bool:
        return "TRASH" in self.label_ids


@dataclass
class MessageList:
    messages: list[Message] = field(default_factory=list)
    next_page_token: str = ""
    result_size_estimate: int = 0


def _decode_plain(part: MessagePart) -> str:
    """
    Walk a payload and return the first text/plain body.
    Handles simple messages (body.data) and multipart structures.
    """
    if part.mime_type == "text/plain" and part.body and part.body.data:
        # Gmail uses URL-safe base64 without padding
        data = part.body.data
        padded = data + "=" * (-len(data) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded)
        except binascii.Error as exc:
            raise DeserializationError(f"part {part.part_id or '(root)'} body is not base64url: {exc}") from exc
        return raw.decode("utf-8", errors="replace")

    if part.mime_type.startswith("multipart/"):
        for sub in part.parts:
            text = _decode_plain(sub)
            if text:
                return text
    return ""

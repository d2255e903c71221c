"""OAuth2 scopes for the APIs wrapped by this package."""
from __future__ import annotations

from enum import Enum


class Scope(str, Enum):
    # Calendar
    CALENDAR = "https://www.googleapis.com/auth/calendar"
    CALENDAR_READONLY = "https://www.googleapis.com/auth/calendar.readonly"
    CALENDAR_EVENTS = "https://www.googleapis.com/auth/calendar.events"
    CALENDAR_EVENTS_READONLY = "https://www.googleapis.com/auth/calendar.events.readonly"
    CALENDAR_APP_CREATED = "https://www.googleapis.com/auth/calendar.app.created"
    CALENDAR_EVENTS_FREEBUSY = "https://www.googleapis.com/auth/calendar.events.freebusy"
    CALENDAR_EVENTS_OWNED = "https://www.googleapis.com/auth/calendar.events.owned"
    CALENDAR_EVENTS_OWNED_READONLY = (
        "https://www.googleapis.com/auth/calendar.events.owned.readonly"
    )
    CALENDAR_EVENTS_PUBLIC_READONLY = (
        "https://www.googleapis.com/auth/calendar.events.public.readonly"
    )
    # Tasks
    TASKS = "https://www.googleapis.com/auth/tasks"
    TASKS_READONLY = "https://www.googleapis.com/auth/tasks.readonly"
    # Gmail
    MAIL = "https://mail.google.com/"
    MAIL_MODIFY = "https://www.googleapis.com/auth/gmail.modify"
    MAIL_READONLY = "https://www.googleapis.com/auth/gmail.readonly"
    MAIL_METADATA = "https://www.googleapis.com/auth/gmail.metadata"

    def __str__(self) -> str:
        return self.value


# Enough to use every builder in the package
ALL_SCOPES: list[Scope] = [
    Scope.CALENDAR,
    Scope.TASKS,
    Scope.MAIL_MODIFY,
]


def scope_urls(scopes) -> list[str]:
    """Normalise a mix of Scope members and raw scope strings to URL strings."""
    return [s.value if isinstance(s, Scope) else str(s) for s in scopes]

"""
google_workspace_apis — Google Calendar, Tasks and Gmail client library.

Package structure:
    google_workspace_apis.google_client    — GoogleClient, RefreshPolicy (token lifecycle, services)
    google_workspace_apis.request          — ApiRequest base builder (send, error mapping, decoding)
    google_workspace_apis.calendar_client  — CalendarClient + Events builders
    google_workspace_apis.tasks_client     — TasksClient + Tasks / Tasklists builders
    google_workspace_apis.gmail_client     — GmailClient + Messages builders
    google_workspace_apis.auth             — consent URL and authorization-code exchange
    google_workspace_apis.scopes           — Scope enum, ALL_SCOPES
    google_workspace_apis.models           — Typed dataclasses (tokens, events, tasks, messages)
    google_workspace_apis.errors           — WorkspaceError hierarchy
    google_workspace_apis.config           — ClientCredentials from env / .env / secrets JSON
    google_workspace_apis.base             — BaseScript abstract class (logging, timing, CLI)
"""
from .auth import exchange_code, get_oauth_url
from .calendar_client import CalendarClient, EventOrderBy, EventType, SendUpdates
from .errors import (
    ApiError,
    AuthError,
    DeserializationError,
    NetworkError,
    ServerError,
    WorkspaceError,
)
from .gmail_client import GmailClient, MessageFormat
from .google_client import GoogleClient, RefreshPolicy
from .models import AccessToken, ClientCredentials
from .scopes import ALL_SCOPES, Scope
from .tasks_client import TasksClient

__all__ = [
    "ALL_SCOPES",
    "AccessToken",
    "ApiError",
    "AuthError",
    "CalendarClient",
    "ClientCredentials",
    "DeserializationError",
    "EventOrderBy",
    "EventType",
    "GmailClient",
    "GoogleClient",
    "MessageFormat",
    "NetworkError",
    "RefreshPolicy",
    "Scope",
    "SendUpdates",
    "ServerError",
    "TasksClient",
    "WorkspaceError",
    "exchange_code",
    "get_oauth_url",
]

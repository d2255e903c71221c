"""
GoogleClient — one OAuth2 identity shared by every request builder.

Holds the immutable ClientCredentials and the mutable AccessToken, hands out a
valid bearer token on demand (refreshing it when the refresh policy allows),
and builds/caches googleapiclient service objects from the bundled discovery
documents.

Usage:
    client = GoogleClient(credentials, access_token, auto_refresh=True)

    events = CalendarClient(client).get_events("primary").max_results(10).execute()
    tasks  = TasksClient(client).get_tasks("@default").execute()
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import build_http

from .auth import TOKEN_URI, exchange_code
from .errors import AuthError, NetworkError
from .models import AccessToken, ClientCredentials

logger = logging.getLogger(__name__)

TokenRefreshHandler = Callable[[AccessToken], None]

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class RefreshPolicy(enum.Enum):
    """When the client may exchange its refresh token for a new access token."""

    NEVER = "never"            # expired token -> AuthError
    ON_EXPIRY = "on_expiry"    # refresh before sending if expired
    ON_401 = "on_401"          # as ON_EXPIRY, plus refresh and re-send once on a 401


class GoogleClient:
    """
    Authenticated access to the Google Workspace REST APIs.

    Token refresh is serialised by a lock: with several threads sharing one
    client, at most one refresh request is in flight and every caller sees the
    token it produced. Service objects are built at most once per
    (api_name, version) pair; each request is sent on its own httplib2.Http
    because those are not thread-safe.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        access_token: Optional[AccessToken] = None,
        auto_refresh: bool = True,
        refresh_policy: Optional[RefreshPolicy] = None,
        http: Any = None,
        transport: Any = None,
    ) -> None:
        """
        Args:
            credentials:    OAuth client id/secret/redirect URI/refresh token.
            access_token:   Current token; None means "refresh before first use".
            auto_refresh:   Shorthand for ON_EXPIRY (True) or NEVER (False).
            refresh_policy: Explicit policy, overrides auto_refresh.
            http:           httplib2-compatible object for API calls (tests inject mocks).
            transport:      google.auth transport for the token endpoint.
        """
        self.credentials = credentials
        if access_token is None:
            access_token = AccessToken(
                token="", expiry=_NEVER, refresh_token=credentials.refresh_token
            )
        self.access_token = access_token
        self.refresh_policy = refresh_policy or (
            RefreshPolicy.ON_EXPIRY if auto_refresh else RefreshPolicy.NEVER
        )
        self._http = http
        self._transport = transport
        self._lock = threading.Lock()
        self._services: dict[str, Any] = {}
        self._refresh_handlers: list[TokenRefreshHandler] = []

    @classmethod
    def from_authorization_code(
        cls, code: str, credentials: ClientCredentials, auto_refresh: bool = True, **kwargs: Any
    ) -> "GoogleClient":
        """Finish the OAuth consent flow and return a ready client."""
        token = exchange_code(code, credentials)
        if token.refresh_token and not credentials.refresh_token:
            credentials = dataclasses.replace(credentials, refresh_token=token.refresh_token)
        return cls(credentials, token, auto_refresh=auto_refresh, **kwargs)

    def __repr__(self) -> str:
        return (
            f"GoogleClient(client_id={self.credentials.client_id!r}, "
            f"token_expiry={self.access_token.expiry.isoformat()}, "
            f"refresh_policy={self.refresh_policy.value}, "
            f"refresh_handlers={len(self._refresh_handlers)})"
        )

    # ── Refresh policy ────────────────────────────────────────────────────────

    @property
    def auto_refresh(self) -> bool:
        return self.refresh_policy is not RefreshPolicy.NEVER

    @auto_refresh.setter
    def auto_refresh(self, value: bool) -> None:
        self.refresh_policy = RefreshPolicy.ON_EXPIRY if value else RefreshPolicy.NEVER

    def enable_auto_refresh(self) -> None:
        self.auto_refresh = True

    def disable_auto_refresh(self) -> None:
        self.auto_refresh = False

    def add_token_refresh_handler(self, handler: TokenRefreshHandler) -> None:
        """Register a callable invoked with the AccessToken after every refresh."""
        self._refresh_handlers.append(handler)

    # ── Token lifecycle ───────────────────────────────────────────────────────

    def is_access_token_valid(self) -> bool:
        return bool(self.access_token.token) and not self.access_token.expired

    def get_valid_token(self) -> str:
        """
        Return a bearer token that has not expired, refreshing first if the
        policy allows. Raises AuthError when expired and refresh is disabled.
        """
        with self._lock:
            if self.is_access_token_valid():
                return self.access_token.token
            if self.refresh_policy is RefreshPolicy.NEVER:
                raise AuthError("access token expired and auto-refresh is disabled")
            self._refresh_locked()
            return self.access_token.token

    def refresh_after_rejection(self, rejected_token: str) -> str:
        """
        Called when the API answered 401 for ``rejected_token``.

        If another caller already replaced that token, the replacement is
        returned without a second refresh.
        """
        with self._lock:
            if self.access_token.token != rejected_token and self.is_access_token_valid():
                return self.access_token.token
            # the server says it is dead, whatever the stored expiry claims
            self.access_token.expiry = min(self.access_token.expiry, datetime.now(timezone.utc))
            self._refresh_locked()
            return self.access_token.token

    def refresh_access_token(self) -> AccessToken:
        """Unconditionally exchange the refresh token for a new access token."""
        with self._lock:
            self._refresh_locked()
            return self.access_token

    def _refresh_locked(self) -> None:
        refresh_token = self.access_token.refresh_token or self.credentials.refresh_token
        if not refresh_token:
            raise AuthError("no refresh token available to renew the access token")

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.credentials.client_id,
            client_secret=self.credentials.client_secret,
        )
        transport = self._transport or google.auth.transport.requests.Request()
        logger.debug("Refreshing access token for client %s", self.credentials.client_id)
        try:
            creds.refresh(transport)
        except google.auth.exceptions.RefreshError as exc:
            raise AuthError(f"token refresh failed: {exc}") from exc
        except google.auth.exceptions.TransportError as exc:
            raise NetworkError(f"token endpoint unreachable: {exc}") from exc

        if creds.expiry is None:
            raise AuthError("token endpoint response carried no expires_in")
        # google-auth reports expiry as naive UTC
        expiry = creds.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        previous = self.access_token.expiry
        if expiry <= previous:
            raise AuthError(
                f"refreshed token expires at {expiry.isoformat()}, "
                f"not after the previous expiry {previous.isoformat()}"
            )

        self.access_token.token = creds.token
        self.access_token.expiry = expiry
        self.access_token.refresh_token = creds.refresh_token or refresh_token
        logger.info(
            "Refreshed access token for client %s (valid %ds)",
            self.credentials.client_id, self.access_token.seconds_remaining,
        )

        for handler in self._refresh_handlers:
            handler(self.access_token)

    # ── Services ──────────────────────────────────────────────────────────────

    def new_http(self) -> Any:
        """HTTP object for a single API call."""
        return self._http if self._http is not None else build_http()

    def service(self, name: str, version: str) -> Any:
        """Build and cache a googleapiclient service object."""
        key = f"{name}/{version}"
        if key not in self._services:
            # Static discovery documents ship with google-api-python-client,
            # so building never touches the network.
            self._services[key] = build(
                name,
                version,
                http=self.new_http(),
                cache_discovery=False,
                static_discovery=True,
            )
        return self._services[key]

    @property
    def calendar(self) -> Any:
        """Google Calendar API v3 service object."""
        return self.service("calendar", "v3")

    @property
    def tasks(self) -> Any:
        """Google Tasks API v1 service object."""
        return self.service("tasks", "v1")

    @property
    def gmail(self) -> Any:
        """Gmail API v1 service object."""
        return self.service("gmail", "v1")

"""
ApiRequest — base class for every per-resource request builder.

A builder accumulates query parameters (``params``) and an optional JSON body
(``body``) through chained setters, then ``execute()`` turns them into a single
googleapiclient HttpRequest, authenticates it with a token from the
GoogleClient, sends it and decodes the response.

Subclasses set ``api`` (discovery name/version), ``resource`` (the chain of
collection names, e.g. ``("users", "messages")``) and ``method`` and implement
``parse()``.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional, TypeVar

import httplib2
from googleapiclient.errors import HttpError

from .errors import AuthError, DeserializationError, NetworkError, error_from_http
from .google_client import GoogleClient, RefreshPolicy

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="ApiRequest")


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware UTC datetime; empty -> None."""
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_rfc3339(value: datetime | date) -> str:
    """Format a datetime for a query parameter; naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).isoformat()


class ApiRequest:
    """One pending API call. Setters return ``self`` so calls can be chained."""

    api: tuple[str, str] = ("", "")
    resource: tuple[str, ...] = ()
    method: str = ""

    def __init__(self, client: GoogleClient, **params: Any) -> None:
        self._client = client
        self.params: dict[str, Any] = dict(params)
        self.body: Optional[dict[str, Any]] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(params={self.params!r})"

    # ── Parameter helpers ─────────────────────────────────────────────────────

    def _param(self: R, name: str, value: Any) -> R:
        self.params[name] = value
        return self

    def _field(self: R, name: str, value: Any) -> R:
        if self.body is None:
            self.body = {}
        self.body[name] = value
        return self

    # ── Building ──────────────────────────────────────────────────────────────

    def build(self):
        """
        Return the googleapiclient HttpRequest without sending it.
        ``.uri``, ``.method`` and ``.body`` can be inspected on the result.
        """
        node = self._client.service(*self.api)
        for name in self.resource:
            node = getattr(node, name)()
        kwargs = dict(self.params)
        if self.body is not None:
            kwargs["body"] = self.body
        return getattr(node, self.method)(**kwargs)

    # ── Sending ───────────────────────────────────────────────────────────────

    def _send(self, token: str) -> Any:
        http_request = self.build()
        http_request.headers["authorization"] = f"Bearer {token}"
        logger.debug("%s %s", http_request.method, http_request.uri)
        try:
            return http_request.execute(http=self._client.new_http())
        except HttpError as exc:
            raise error_from_http(exc) from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            raise NetworkError(f"{http_request.method} {http_request.uri} failed: {exc}") from exc
        except ValueError as exc:
            # JsonModel.deserialize -> json.loads on a non-JSON body
            raise DeserializationError(f"response is not valid JSON: {exc}") from exc

    def execute(self) -> Any:
        """Send the request and return the decoded result."""
        token = self._client.get_valid_token()
        try:
            raw = self._send(token)
        except AuthError:
            if self._client.refresh_policy is not RefreshPolicy.ON_401:
                raise
            logger.info("%s got 401, refreshing token and re-sending once", type(self).__name__)
            raw = self._send(self._client.refresh_after_rejection(token))

        try:
            return self.parse(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DeserializationError(
                f"unexpected {type(self).__name__} response shape: {exc!r}"
            ) from exc

    def parse(self, raw: Any) -> Any:
        """Decode the JSON payload; default returns it unchanged."""
        return raw


class EmptyResponseRequest(ApiRequest):
    """For DELETE-style calls whose success response has no body."""

    def parse(self, raw: Any) -> None:
        return None


class PagedRequest(ApiRequest):
    """List calls sharing Google's maxResults/pageToken pagination."""

    def max_results(self: R, max_results: int) -> R:
        return self._param("maxResults", int(max_results))

    def page_token(self: R, token: str) -> R:
        return self._param("pageToken", token)

import threading
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import google.auth.exceptions
import pytest

from fakes import FakeTokenTransport, ok
from google_workspace_apis import google_client
from google_workspace_apis.calendar_client import CalendarClient
from google_workspace_apis.errors import AuthError, NetworkError
from google_workspace_apis.google_client import GoogleClient, RefreshPolicy
from google_workspace_apis.models import AccessToken, ClientCredentials

EVENT = {"id": "evt1", "summary": "Standup"}


# ── Policy plumbing ───────────────────────────────────────────────────────────

def test_auto_refresh_maps_to_policy(credentials):
    assert GoogleClient(credentials).refresh_policy is RefreshPolicy.ON_EXPIRY
    assert GoogleClient(credentials, auto_refresh=False).refresh_policy is RefreshPolicy.NEVER
    explicit = GoogleClient(credentials, auto_refresh=False, refresh_policy=RefreshPolicy.ON_401)
    assert explicit.refresh_policy is RefreshPolicy.ON_401


def test_enable_disable_auto_refresh(credentials):
    client = GoogleClient(credentials)
    client.disable_auto_refresh()
    assert not client.auto_refresh
    assert client.refresh_policy is RefreshPolicy.NEVER
    client.enable_auto_refresh()
    assert client.auto_refresh
    assert client.refresh_policy is RefreshPolicy.ON_EXPIRY


def test_missing_access_token_is_not_valid(credentials):
    client = GoogleClient(credentials)
    assert not client.is_access_token_valid()
    assert client.access_token.refresh_token == "r3fresh"


def test_repr_hides_secrets(credentials, fresh_token):
    text = repr(GoogleClient(credentials, fresh_token))
    assert "client-123" in text
    for secret in ("s3cret", "r3fresh", "live-token"):
        assert secret not in text
    assert "s3cret" not in repr(credentials)
    assert "r3fresh" not in repr(fresh_token)


# ── Refresh on expiry ─────────────────────────────────────────────────────────

def test_expired_token_refreshes_once_before_request(make_client, expired_token, transport):
    client, http = make_client([ok(EVENT)], token=expired_token)

    event = CalendarClient(client).get_event("primary", "evt1").execute()

    assert event.summary == "Standup"
    assert len(transport.calls) == 1
    assert len(http.calls) == 1
    assert http.calls[0].headers["authorization"] == "Bearer fresh-token-1"
    assert client.access_token.token == "fresh-token-1"
    assert client.access_token.expiry > datetime.now(timezone.utc) + timedelta(minutes=50)


def test_refresh_posts_refresh_token_grant(make_client, expired_token, transport):
    client, _ = make_client(token=expired_token)
    client.get_valid_token()

    call = transport.calls[0]
    assert call.method == "POST"
    assert call.url == "https://oauth2.googleapis.com/token"
    form = parse_qs(call.body.decode("utf-8"))
    assert form["grant_type"] == ["refresh_token"]
    assert form["refresh_token"] == ["r3fresh"]
    assert form["client_id"] == ["client-123.apps.googleusercontent.com"]
    assert form["client_secret"] == ["s3cret"]


def test_valid_token_is_not_refreshed(make_client, transport):
    client, http = make_client([ok(EVENT)])
    CalendarClient(client).get_event("primary", "evt1").execute()
    assert transport.calls == []
    assert http.calls[0].headers["authorization"] == "Bearer live-token"


def test_auto_refresh_off_raises_without_any_request(make_client, expired_token, transport):
    client, http = make_client([ok(EVENT)], token=expired_token, policy=RefreshPolicy.NEVER)

    with pytest.raises(AuthError):
        CalendarClient(client).get_event("primary", "evt1").execute()

    assert http.calls == []
    assert transport.calls == []
    assert client.access_token.token == "stale-token"


def test_concurrent_callers_share_one_refresh(credentials, expired_token):
    transport = FakeTokenTransport(delay=0.05)
    client = GoogleClient(credentials, expired_token, transport=transport)
    results = []

    def worker():
        results.append(client.get_valid_token())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(transport.calls) == 1
    assert results == ["fresh-token-1"] * 8


def test_refresh_keeps_refresh_token_unless_rotated(credentials, expired_token):
    client = GoogleClient(credentials, expired_token, transport=FakeTokenTransport())
    client.refresh_access_token()
    assert client.access_token.refresh_token == "r3fresh"

    rotated = FakeTokenTransport(payload={
        "access_token": "next", "expires_in": 7200, "refresh_token": "rotated",
    })
    client._transport = rotated
    client.refresh_access_token()
    assert client.access_token.refresh_token == "rotated"
    assert client.access_token.token == "next"


def test_refresh_handlers_receive_new_token(make_client, expired_token):
    client, _ = make_client(token=expired_token)
    seen = []
    client.add_token_refresh_handler(lambda token: seen.append((token.token, token.expiry)))

    client.get_valid_token()

    assert len(seen) == 1
    assert seen[0] == ("fresh-token-1", client.access_token.expiry)


# ── Refresh failures ──────────────────────────────────────────────────────────

def test_invalid_grant_becomes_auth_error(credentials, expired_token):
    transport = FakeTokenTransport(status=400, payload={
        "error": "invalid_grant", "error_description": "Token has been expired or revoked.",
    })
    client = GoogleClient(credentials, expired_token, transport=transport)

    with pytest.raises(AuthError) as excinfo:
        client.get_valid_token()

    assert isinstance(excinfo.value.__cause__, google.auth.exceptions.RefreshError)
    assert len(transport.calls) == 1
    assert client.access_token.token == "stale-token"


def test_token_endpoint_unreachable_is_network_error(credentials, expired_token):
    def broken(url, method="GET", body=None, headers=None, **kwargs):
        raise google.auth.exceptions.TransportError("connection refused")

    client = GoogleClient(credentials, expired_token, transport=broken)
    with pytest.raises(NetworkError):
        client.get_valid_token()


def test_no_refresh_token_available(expired_token, transport):
    creds = ClientCredentials(client_id="cid", client_secret="secret")
    token = AccessToken(token="stale", expiry=expired_token.expiry)
    client = GoogleClient(creds, token, transport=transport)

    with pytest.raises(AuthError):
        client.get_valid_token()
    assert transport.calls == []


def test_refresh_must_extend_expiry(credentials):
    later = datetime.now(timezone.utc) + timedelta(hours=2)
    token = AccessToken(token="long-lived", expiry=later, refresh_token="r3fresh")
    transport = FakeTokenTransport(payload={"access_token": "short-lived", "expires_in": 60})
    client = GoogleClient(credentials, token, transport=transport)

    with pytest.raises(AuthError):
        client.refresh_access_token()

    assert client.access_token.token == "long-lived"
    assert client.access_token.expiry == later


# ── Refresh on 401 ────────────────────────────────────────────────────────────

def test_on_401_refreshes_and_resends_once(make_client, transport):
    client, http = make_client(
        [({"status": "401"}, '{"error": {"code": 401, "message": "Invalid Credentials"}}'), ok(EVENT)],
        policy=RefreshPolicy.ON_401,
    )

    event = CalendarClient(client).get_event("primary", "evt1").execute()

    assert event.event_id == "evt1"
    assert len(transport.calls) == 1
    assert [c.headers["authorization"] for c in http.calls] == [
        "Bearer live-token",
        "Bearer fresh-token-1",
    ]


def test_on_401_second_rejection_propagates(make_client, transport):
    unauthorized = ({"status": "401"}, '{"error": {"code": 401, "message": "Invalid Credentials"}}')
    client, http = make_client([unauthorized, unauthorized], policy=RefreshPolicy.ON_401)

    with pytest.raises(AuthError) as excinfo:
        CalendarClient(client).get_event("primary", "evt1").execute()

    assert excinfo.value.status == 401
    assert len(http.calls) == 2
    assert len(transport.calls) == 1


def test_on_expiry_does_not_resend_after_401(make_client, transport):
    client, http = make_client(
        [({"status": "401"}, '{"error": {"code": 401, "message": "Invalid Credentials"}}')]
    )
    with pytest.raises(AuthError):
        CalendarClient(client).get_event("primary", "evt1").execute()
    assert len(http.calls) == 1
    assert transport.calls == []


def test_rejection_after_someone_else_refreshed(make_client, transport):
    client, _ = make_client()
    client.access_token.token = "already-replaced"
    assert client.refresh_after_rejection("live-token") == "already-replaced"
    assert transport.calls == []


# ── Construction helpers ──────────────────────────────────────────────────────

def test_from_authorization_code_copies_refresh_token(monkeypatch):
    issued = AccessToken(
        token="first",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        refresh_token="from-consent",
    )
    monkeypatch.setattr(google_client, "exchange_code", lambda code, creds: issued)
    creds = ClientCredentials(client_id="cid", client_secret="secret", redirect_uri="http://localhost")

    client = GoogleClient.from_authorization_code("4/abc", creds, auto_refresh=False)

    assert client.access_token is issued
    assert client.credentials.refresh_token == "from-consent"
    assert client.refresh_policy is RefreshPolicy.NEVER


def test_services_are_cached(make_client):
    client, http = make_client()
    assert client.calendar is client.service("calendar", "v3")
    assert client.tasks is client.tasks
    assert client.gmail is not client.calendar
    assert http.calls == []

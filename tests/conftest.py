from datetime import datetime, timedelta, timezone

import pytest

from fakes import FakeTokenTransport, RecordingHttp
from google_workspace_apis.google_client import GoogleClient, RefreshPolicy
from google_workspace_apis.models import AccessToken, ClientCredentials


@pytest.fixture
def credentials():
    return ClientCredentials(
        client_id="client-123.apps.googleusercontent.com",
        client_secret="s3cret",
        redirect_uri="http://localhost:8080/callback",
        refresh_token="r3fresh",
    )


@pytest.fixture
def fresh_token():
    return AccessToken(
        token="live-token",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        refresh_token="r3fresh",
    )


@pytest.fixture
def expired_token():
    return AccessToken(
        token="stale-token",
        expiry=datetime.now(timezone.utc) - timedelta(minutes=5),
        refresh_token="r3fresh",
    )


@pytest.fixture
def transport():
    return FakeTokenTransport()


@pytest.fixture
def make_client(credentials, fresh_token, transport):
    """Build a GoogleClient wired to a RecordingHttp with the given responses."""

    def _make(responses=(), token=None, policy=RefreshPolicy.ON_EXPIRY, **kwargs):
        http = RecordingHttp(responses)
        client = GoogleClient(
            credentials,
            token or fresh_token,
            refresh_policy=policy,
            http=http,
            transport=kwargs.pop("transport", transport),
            **kwargs,
        )
        return client, http

    return _make

import base64
import dataclasses
from datetime import date, datetime, timedelta, timezone

import pytest

from google_workspace_apis.errors import DeserializationError
from google_workspace_apis.models import (
    AccessToken,
    ClientCredentials,
    EventDateTime,
    Message,
    MessagePart,
    MessagePartBody,
)
from google_workspace_apis.request import parse_rfc3339, to_rfc3339


def test_token_from_response():
    now = datetime(2026, 5, 1, 12, tzinfo=timezone.utc)
    token = AccessToken.from_token_response(
        {"access_token": "abc", "expires_in": 3600, "scope": "a b"}, now=now
    )
    assert token.expiry == now + timedelta(hours=1)
    assert token.token_type == "Bearer"
    assert token.refresh_token == ""
    assert token.scope == "a b"


def test_token_expired_at_boundary():
    token = AccessToken(token="t", expiry=datetime.now(timezone.utc))
    assert token.expired
    assert token.seconds_remaining <= 0


def test_credentials_are_immutable():
    creds = ClientCredentials(client_id="cid", client_secret="secret")
    with pytest.raises(dataclasses.FrozenInstanceError):
        creds.client_id = "other"


def test_event_datetime_to_api():
    assert EventDateTime(date=date(2026, 1, 2)).to_api() == {"date": "2026-01-02"}
    assert EventDateTime(date=date(2026, 1, 2)).is_all_day
    timed = EventDateTime(date_time=datetime(2026, 1, 2, 9, tzinfo=timezone.utc), time_zone="UTC")
    assert timed.to_api() == {"dateTime": "2026-01-02T09:00:00+00:00", "timeZone": "UTC"}
    assert not timed.is_all_day


def test_body_plain_simple_message():
    data = base64.urlsafe_b64encode("héllo".encode("utf-8")).decode("ascii").rstrip("=")
    msg = Message(message_id="m", payload=MessagePart(mime_type="text/plain", body=MessagePartBody(data=data)))
    assert msg.body_plain == "héllo"


def test_body_plain_without_text_part():
    html = MessagePart(mime_type="text/html", body=MessagePartBody(data="PGI-"))
    msg = Message(message_id="m", payload=MessagePart(mime_type="multipart/mixed", parts=[html]))
    assert msg.body_plain == ""
    assert Message(message_id="bare").body_plain == ""


def test_rfc3339_helpers():
    assert parse_rfc3339("2026-05-01T10:00:00.000Z") == datetime(2026, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_rfc3339("2026-05-01T12:00:00+02:00") == datetime(2026, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_rfc3339("") is None
    assert to_rfc3339(datetime(2026, 5, 1, 10)) == "2026-05-01T10:00:00+00:00"
    assert to_rfc3339(date(2026, 5, 1)) == "2026-05-01T00:00:00+00:00"


def test_body_plain_not_base64():
    msg = Message(
        message_id="m",
        payload=MessagePart(part_id="0", mime_type="text/plain", body=MessagePartBody(data="a")),
    )
    with pytest.raises(DeserializationError):
        msg.body_plain

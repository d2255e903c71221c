import importlib.util
import json
import logging
from pathlib import Path

import pytest

from fakes import ok
from google_workspace_apis.calendar_client import _parse_event

SCRIPTS = Path(__file__).resolve().parent.parent / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("WORKSPACE_APIS_LOG_DIR", str(tmp_path))
    yield tmp_path
    for name in ("google_workspace_apis", "dailydigest"):
        logger = logging.getLogger(name)
        logger.setLevel(logging.NOTSET)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_daily_digest(make_client):
    client, http = make_client([
        ok({"timeZone": "UTC", "items": []}),
        ok({"items": [
            {"id": "t1", "title": "Pay rent", "due": "2026-05-01T00:00:00.000Z"},
            {"id": "t2", "title": "Old", "status": "completed"},
        ]}),
        ok({"messages": [{"id": "m1", "threadId": "t"}], "resultSizeEstimate": 12}),
    ])
    digest = _load("daily_digest").DailyDigest(days_ahead=2)
    digest.client = client

    result = digest.run()

    assert result["calendar"] == {"window_days": 2, "event_count": 0, "events": []}
    assert result["tasks"]["open_count"] == 1
    assert result["tasks"]["tasks"] == [{"title": "Pay rent", "due": "2026-05-01", "notes": ""}]
    assert result["email"] == {"unread_estimate": 12}
    assert len(http.calls) == 3
    json.dumps(result, default=str)


def test_digest_formats_event_without_date_or_time():
    module = _load("daily_digest")
    event = _parse_event({"id": "e1", "summary": "Floating", "start": {"timeZone": "UTC"}, "end": {"timeZone": "UTC"}})

    formatted = module._fmt_event(event)

    assert formatted["title"] == "Floating"
    assert formatted["start"] == ""
    assert formatted["end"] == ""

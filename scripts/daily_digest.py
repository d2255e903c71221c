"""
Daily Digest — morning briefing from Google Calendar, Tasks and Gmail.

Fetches the coming days' calendar events, open tasks in the default list and
the unread message count, then emits a single JSON dict to stdout.

Usage:
    python scripts/daily_digest.py
    python scripts/daily_digest.py --days-ahead 3
    python scripts/daily_digest.py --debug

Needs GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN in the
environment or a .env file (see scripts/authorize.py).
"""
from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from typing import Any

from google_workspace_apis.base import BaseScript
from google_workspace_apis.calendar_client import CalendarClient
from google_workspace_apis.gmail_client import GmailClient
from google_workspace_apis.models import Event, Task
from google_workspace_apis.tasks_client import TasksClient


class DailyDigest(BaseScript):
    """
    Pulls upcoming calendar events, open tasks and unread mail into one JSON digest.

    Output schema:
        {
            "generated_at": "<ISO 8601 UTC>",
            "calendar": {"window_days": int, "event_count": int,
                         "events": [ { title, start, end, location, is_all_day, link } ]},
            "tasks":    {"open_count": int, "tasks": [ { title, due, notes } ]},
            "email":    {"unread_estimate": int}
        }
    """

    def __init__(self, log_level: int = logging.INFO, days_ahead: int = 1) -> None:
        super().__init__(log_level=log_level)
        self.days_ahead = days_ahead

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--days-ahead", type=int, default=1, metavar="N",
            help="How many days of calendar to include (default: 1)",
        )

    def run(self) -> dict[str, Any]:
        self.logger.info("Fetching daily digest (days_ahead=%d)", self.days_ahead)

        events = CalendarClient(self.client).get_upcoming_events(days=self.days_ahead).execute()
        self.logger.info("Calendar: %d event(s) fetched", len(events.items))

        tasks = TasksClient(self.client).get_tasks().show_completed(False).execute()
        open_tasks = [t for t in tasks.items if not t.is_done]
        self.logger.info("Tasks: %d open", len(open_tasks))

        unread = GmailClient(self.client).get_unread(max_results=1).execute()
        self.logger.info("Email: ~%d unread", unread.result_size_estimate)

        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "calendar": {
                "window_days": self.days_ahead,
                "event_count": len(events.items),
                "events": [_fmt_event(e) for e in events.items],
            },
            "tasks": {
                "open_count": len(open_tasks),
                "tasks": [_fmt_task(t) for t in open_tasks],
            },
            "email": {"unread_estimate": unread.result_size_estimate},
        }


# ── Formatters ────────────────────────────────────────────────────────────────

def _fmt_event(event: Event) -> dict:
    def _when(edt):
        when = edt and (edt.date_time or edt.date)
        return when.isoformat() if when else ""

    return {
        "title":      event.summary,
        "start":      _when(event.start),
        "end":        _when(event.end),
        "location":   event.location,
        "is_all_day": event.is_all_day,
        "link":       event.html_link,
    }


def _fmt_task(task: Task) -> dict:
    return {
        "title": task.title,
        "due":   task.due.date().isoformat() if task.due else None,
        "notes": task.notes[:300],
    }


if __name__ == "__main__":
    DailyDigest.main()

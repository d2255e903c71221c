"""
TasksClient — request builders for the Google Tasks API v1.

Google Tasks has two levels:
  - TaskList: a named container (e.g. "Work", "Personal")
  - Task: an item inside a list (with optional due date, notes, subtasks)

Usage:
    tasks = TasksClient(client)

    lists = tasks.get_task_lists().execute()
    task  = tasks.insert_task("@default").set_title("Review contract").execute()
    items = tasks.get_tasks("@default").show_completed(False).execute()
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from .google_client import GoogleClient
from .models import Task, TaskLink, TaskList, TaskLists, Tasks
from .request import (
    ApiRequest,
    EmptyResponseRequest,
    PagedRequest,
    parse_rfc3339,
    to_rfc3339,
)

logger = logging.getLogger(__name__)

_API = ("tasks", "v1")
DEFAULT_TASKLIST = "@default"


def _due(value: datetime | date) -> str:
    # Tasks API keeps only the date part of "due"; it expects midnight UTC
    return value.strftime("%Y-%m-%dT00:00:00.000Z")


# ── Parsers ───────────────────────────────────────────────────────────────────

def _parse_task(raw: dict) -> Task:
    return Task(
        task_id=raw["id"],
        title=raw.get("title", ""),
        status=raw.get("status", "needsAction"),
        notes=raw.get("notes", ""),
        due=parse_rfc3339(raw.get("due")),
        completed=parse_rfc3339(raw.get("completed")),
        updated=parse_rfc3339(raw.get("updated")),
        parent=raw.get("parent"),
        position=raw.get("position", ""),
        hidden=bool(raw.get("hidden", False)),
        deleted=bool(raw.get("deleted", False)),
        links=[
            TaskLink(type=l.get("type", ""), link=l.get("link", ""), description=l.get("description", ""))
            for l in raw.get("links") or []
        ],
        etag=raw.get("etag", ""),
        web_view_link=raw.get("webViewLink", ""),
    )


def _parse_tasklist(raw: dict) -> TaskList:
    return TaskList(
        list_id=raw["id"],
        title=raw.get("title", ""),
        updated=parse_rfc3339(raw.get("updated")),
        etag=raw.get("etag", ""),
        self_link=raw.get("selfLink", ""),
    )


def _task_body(task: Task) -> dict[str, Any]:
    body: dict[str, Any] = {"title": task.title, "status": task.status}
    if task.notes:
        body["notes"] = task.notes
    if task.due:
        body["due"] = _due(task.due)
    if task.completed:
        body["completed"] = to_rfc3339(task.completed)
    if task.links:
        body["links"] = [
            {"type": l.type, "link": l.link, "description": l.description} for l in task.links
        ]
    if task.etag:
        body["etag"] = task.etag
    return body


# ── Task lists ────────────────────────────────────────────────────────────────

class TaskListsRequest(PagedRequest):
    """``tasklists.list`` — the user's task lists (not their tasks)."""

    api = _API
    resource = ("tasklists",)
    method = "list"

    def parse(self, raw: dict) -> TaskLists:
        return TaskLists(
            items=[_parse_tasklist(t) for t in raw.get("items") or []],
            next_page_token=raw.get("nextPageToken", ""),
            etag=raw.get("etag", ""),
        )


class TaskListGetRequest(ApiRequest):
    """``tasklists.get``"""

    api = _API
    resource = ("tasklists",)
    method = "get"

    def __init__(self, client: GoogleClient, tasklist_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id)

    def parse(self, raw: dict) -> TaskList:
        return _parse_tasklist(raw)


class TaskListInsertRequest(ApiRequest):
    """``tasklists.insert``"""

    api = _API
    resource = ("tasklists",)
    method = "insert"

    def __init__(self, client: GoogleClient, title: str) -> None:
        super().__init__(client)
        self._field("title", title)

    def parse(self, raw: dict) -> TaskList:
        tasklist = _parse_tasklist(raw)
        logger.info("Created task list %s: %s", tasklist.list_id, tasklist.title)
        return tasklist


class TaskListDeleteRequest(EmptyResponseRequest):
    """``tasklists.delete`` — removes the list and every task in it."""

    api = _API
    resource = ("tasklists",)
    method = "delete"

    def __init__(self, client: GoogleClient, tasklist_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id)

    def parse(self, raw: Any) -> None:
        logger.info("Deleted task list %s", self.params["tasklist"])
        return None


# ── Tasks ─────────────────────────────────────────────────────────────────────

class TasksListRequest(PagedRequest):
    """``tasks.list`` — tasks of one task list, with optional filters."""

    api = _API
    resource = ("tasks",)
    method = "list"

    def __init__(self, client: GoogleClient, tasklist_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id)

    def completed_max(self, completed_max: datetime) -> "TasksListRequest":
        return self._param("completedMax", to_rfc3339(completed_max))

    def completed_min(self, completed_min: datetime) -> "TasksListRequest":
        return self._param("completedMin", to_rfc3339(completed_min))

    def due_max(self, due_max: datetime) -> "TasksListRequest":
        return self._param("dueMax", to_rfc3339(due_max))

    def due_min(self, due_min: datetime) -> "TasksListRequest":
        return self._param("dueMin", to_rfc3339(due_min))

    def show_completed(self, show: bool) -> "TasksListRequest":
        return self._param("showCompleted", bool(show))

    def show_deleted(self, show: bool) -> "TasksListRequest":
        return self._param("showDeleted", bool(show))

    def show_hidden(self, show: bool) -> "TasksListRequest":
        """Completed tasks cleared from the UI are hidden; needs show_completed too."""
        return self._param("showHidden", bool(show))

    def updated_min(self, updated_min: datetime) -> "TasksListRequest":
        return self._param("updatedMin", to_rfc3339(updated_min))

    def show_assigned(self, show: bool) -> "TasksListRequest":
        return self._param("showAssigned", bool(show))

    def parse(self, raw: dict) -> Tasks:
        return Tasks(
            items=[_parse_task(t) for t in raw.get("items") or []],
            next_page_token=raw.get("nextPageToken", ""),
            etag=raw.get("etag", ""),
        )


class TaskGetRequest(ApiRequest):
    """``tasks.get``"""

    api = _API
    resource = ("tasks",)
    method = "get"

    def __init__(self, client: GoogleClient, tasklist_id: str, task_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id, task=task_id)

    def parse(self, raw: dict) -> Task:
        return _parse_task(raw)


class _TaskWriteRequest(ApiRequest):
    api = _API
    resource = ("tasks",)

    def __init__(self, client: GoogleClient, **params: Any) -> None:
        super().__init__(client, **params)
        self.body = {}

    def set_task(self, task: Task):
        """Replace the whole body with the fields of ``task``."""
        self.body = _task_body(task)
        return self

    def set_title(self, title: str):
        return self._field("title", title)

    def set_notes(self, notes: str):
        return self._field("notes", notes)

    def set_due(self, due: datetime | date):
        return self._field("due", _due(due))

    def set_status(self, status: str):
        """'needsAction' | 'completed'"""
        return self._field("status", status)

    def set_completed(self, completed: Optional[datetime]):
        """Completion time; None clears it (use with set_status('needsAction'))."""
        return self._field("completed", to_rfc3339(completed) if completed else None)

    def set_links(self, links: list[TaskLink]):
        return self._field("links", [
            {"type": l.type, "link": l.link, "description": l.description} for l in links
        ])

    def set_etag(self, etag: str):
        return self._field("etag", etag)

    def parse(self, raw: dict) -> Task:
        task = _parse_task(raw)
        logger.info("%s task %s: %s", self.method.capitalize(), task.task_id, task.title)
        return task


class TaskInsertRequest(_TaskWriteRequest):
    """``tasks.insert`` — new tasks start as needsAction unless set otherwise."""

    method = "insert"

    def __init__(self, client: GoogleClient, tasklist_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id)
        self._field("status", "needsAction")

    def set_parent(self, parent_id: str) -> "TaskInsertRequest":
        """Create as a subtask of ``parent_id``."""
        return self._param("parent", parent_id)

    def set_previous(self, previous_id: str) -> "TaskInsertRequest":
        """Insert after sibling ``previous_id`` instead of at the top."""
        return self._param("previous", previous_id)


class TaskPatchRequest(_TaskWriteRequest):
    """``tasks.patch`` — only the fields set on the builder are sent."""

    method = "patch"

    def __init__(self, client: GoogleClient, tasklist_id: str, task_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id, task=task_id)


class TaskDeleteRequest(EmptyResponseRequest):
    """``tasks.delete``"""

    api = _API
    resource = ("tasks",)
    method = "delete"

    def __init__(self, client: GoogleClient, tasklist_id: str, task_id: str) -> None:
        super().__init__(client, tasklist=tasklist_id, task=task_id)

    def parse(self, raw: Any) -> None:
        logger.info("Deleted task %s", self.params["task"])
        return None


# ── Client class ──────────────────────────────────────────────────────────────

class TasksClient:
    """
    Entry point for Tasks and Tasklists builders.

    Task list ids default to '@default', the user's default list.
    """

    def __init__(self, client: GoogleClient) -> None:
        self._client = client

    # ── Task lists ────────────────────────────────────────────────────────────

    def get_task_lists(self) -> TaskListsRequest:
        return TaskListsRequest(self._client)

    def get_task_list(self, tasklist_id: str = DEFAULT_TASKLIST) -> TaskListGetRequest:
        return TaskListGetRequest(self._client, tasklist_id)

    def insert_task_list(self, title: str) -> TaskListInsertRequest:
        return TaskListInsertRequest(self._client, title)

    def delete_task_list(self, tasklist_id: str) -> TaskListDeleteRequest:
        return TaskListDeleteRequest(self._client, tasklist_id)

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def get_tasks(self, tasklist_id: str = DEFAULT_TASKLIST) -> TasksListRequest:
        return TasksListRequest(self._client, tasklist_id)

    def get_task(self, tasklist_id: str, task_id: str) -> TaskGetRequest:
        return TaskGetRequest(self._client, tasklist_id, task_id)

    def insert_task(self, tasklist_id: str = DEFAULT_TASKLIST) -> TaskInsertRequest:
        return TaskInsertRequest(self._client, tasklist_id)

    def patch_task(self, tasklist_id: str, task_id: str) -> TaskPatchRequest:
        return TaskPatchRequest(self._client, tasklist_id, task_id)

    def complete_task(self, tasklist_id: str, task_id: str) -> TaskPatchRequest:
        """Patch builder preset to mark the task completed."""
        return self.patch_task(tasklist_id, task_id).set_status("completed")

    def delete_task(self, tasklist_id: str, task_id: str) -> TaskDeleteRequest:
        return TaskDeleteRequest(self._client, tasklist_id, task_id)

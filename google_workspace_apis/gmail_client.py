"""
GmailClient — request builders for the Gmail API v1 users.messages collection.

Builders decode into the typed models rather than raw API dicts.
Supports listing/searching, reading, trashing, untrashing, deleting and
relabelling messages.

Usage:
    gmail = GmailClient(client)
    page  = gmail.get_emails().query("is:unread").max_results(20).execute()
    msg   = gmail.get_email(page.messages[0].message_id).execute()
    gmail.trash_email(msg.message_id).execute()
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .google_client import GoogleClient
from .models import Header, Message, MessageList, MessagePart, MessagePartBody
from .request import ApiRequest, EmptyResponseRequest, PagedRequest

logger = logging.getLogger(__name__)

_API = ("gmail", "v1")
_RESOURCE = ("users", "messages")


class MessageFormat(str, Enum):
    MINIMAL = "minimal"
    FULL = "full"
    RAW = "raw"
    METADATA = "metadata"


# ── Parsers ───────────────────────────────────────────────────────────────────

def _parse_part(raw: dict) -> MessagePart:
    body = raw.get("body")
    return MessagePart(
        part_id=raw.get("partId", ""),
        mime_type=raw.get("mimeType", ""),
        filename=raw.get("filename", ""),
        headers=[Header(name=h["name"], value=h.get("value", "")) for h in raw.get("headers") or []],
        body=MessagePartBody(
            data=body.get("data", ""),
            size=int(body.get("size") or 0),
            attachment_id=body.get("attachmentId", ""),
        ) if body else None,
        parts=[_parse_part(p) for p in raw.get("parts") or []],
    )


def _parse_message(raw: dict) -> Message:
    """Convert a raw Gmail API message dict into a typed Message."""
    payload = raw.get("payload")
    return Message(
        message_id=raw["id"],
        thread_id=raw.get("threadId", ""),
        label_ids=list(raw.get("labelIds") or []),
        snippet=raw.get("snippet", ""),
        history_id=str(raw.get("historyId") or ""),
        internal_date=str(raw.get("internalDate") or ""),
        payload=_parse_part(payload) if payload else None,
        size_estimate=int(raw.get("sizeEstimate") or 0),
        raw=raw.get("raw", ""),
    )


# ── Builders ──────────────────────────────────────────────────────────────────

class MessagesListRequest(PagedRequest):
    """``users.messages.list`` — ids and thread ids only; fetch bodies with get_email."""

    api = _API
    resource = _RESOURCE
    method = "list"

    def __init__(self, client: GoogleClient, user_id: str = "me") -> None:
        super().__init__(client, userId=user_id)

    def include_spam_trash(self, include: bool) -> "MessagesListRequest":
        return self._param("includeSpamTrash", bool(include))

    def label_ids(self, *label_ids: str) -> "MessagesListRequest":
        """Only messages carrying all of these labels."""
        return self._param("labelIds", list(label_ids))

    def query(self, query: str) -> "MessagesListRequest":
        """
        Gmail search syntax, e.g.:
            "is:unread"
            "from:boss@company.com"
            "subject:invoice after:2026/01/01"
        """
        return self._param("q", query)

    def parse(self, raw: dict) -> MessageList:
        return MessageList(
            messages=[_parse_message(m) for m in raw.get("messages") or []],
            next_page_token=raw.get("nextPageToken", ""),
            result_size_estimate=int(raw.get("resultSizeEstimate") or 0),
        )


class MessageGetRequest(ApiRequest):
    """``users.messages.get``"""

    api = _API
    resource = _RESOURCE
    method = "get"

    def __init__(self, client: GoogleClient, message_id: str, user_id: str = "me") -> None:
        super().__init__(client, userId=user_id, id=message_id)

    def format(self, fmt: MessageFormat) -> "MessageGetRequest":
        return self._param("format", MessageFormat(fmt).value)

    def metadata_headers(self, *names: str) -> "MessageGetRequest":
        """Headers to include when format is METADATA."""
        return self._param("metadataHeaders", list(names))

    def parse(self, raw: dict) -> Message:
        return _parse_message(raw)


class _MessageActionRequest(ApiRequest):
    """trash/untrash/modify: act on one message and return its new state."""

    api = _API
    resource = _RESOURCE

    def __init__(self, client: GoogleClient, message_id: str, user_id: str = "me") -> None:
        super().__init__(client, userId=user_id, id=message_id)

    def parse(self, raw: dict) -> Message:
        message = _parse_message(raw)
        logger.info(
            "%s message %s, labels now %s", self.method.capitalize(), message.message_id, message.label_ids
        )
        return message


class MessageTrashRequest(_MessageActionRequest):
    method = "trash"


class MessageUntrashRequest(_MessageActionRequest):
    method = "untrash"


class MessageModifyRequest(_MessageActionRequest):
    """``users.messages.modify`` — add and/or remove label ids."""

    method = "modify"

    def __init__(self, client: GoogleClient, message_id: str, user_id: str = "me") -> None:
        super().__init__(client, message_id, user_id)
        self.body = {}

    def add_labels(self, *label_ids: str) -> "MessageModifyRequest":
        return self._field("addLabelIds", list(label_ids))

    def remove_labels(self, *label_ids: str) -> "MessageModifyRequest":
        return self._field("removeLabelIds", list(label_ids))


class MessageDeleteRequest(EmptyResponseRequest):
    """``users.messages.delete`` — permanent, skips the trash."""

    api = _API
    resource = _RESOURCE
    method = "delete"

    def __init__(self, client: GoogleClient, message_id: str, user_id: str = "me") -> None:
        super().__init__(client, userId=user_id, id=message_id)

    def parse(self, raw: Any) -> None:
        logger.info("Deleted message %s", self.params["id"])
        return None


# ── Client class ──────────────────────────────────────────────────────────────

class GmailClient:
    """
    Entry point for Gmail message builders.

    Instantiate with a GoogleClient so the token is shared:
        gmail = GmailClient(client)
    """

    def __init__(self, client: GoogleClient, user_id: str = "me") -> None:
        self._client = client
        self.user_id = user_id

    # ── Search / listing ──────────────────────────────────────────────────────

    def get_emails(self) -> MessagesListRequest:
        return MessagesListRequest(self._client, self.user_id)

    def get_unread(self, max_results: int = 20) -> MessagesListRequest:
        return self.get_emails().query("is:unread").max_results(max_results)

    # ── Single message ────────────────────────────────────────────────────────

    def get_email(self, message_id: str) -> MessageGetRequest:
        return MessageGetRequest(self._client, message_id, self.user_id)

    # ── Mutations ─────────────────────────────────────────────────────────────

    def trash_email(self, message_id: str) -> MessageTrashRequest:
        """Move a message to trash (adds the TRASH label)."""
        return MessageTrashRequest(self._client, message_id, self.user_id)

    def untrash_email(self, message_id: str) -> MessageUntrashRequest:
        """Take a message out of trash, restoring its previous labels."""
        return MessageUntrashRequest(self._client, message_id, self.user_id)

    def delete_email(self, message_id: str) -> MessageDeleteRequest:
        return MessageDeleteRequest(self._client, message_id, self.user_id)

    def modify_email(self, message_id: str) -> MessageModifyRequest:
        return MessageModifyRequest(self._client, message_id, self.user_id)

    def mark_as_read(self, message_id: str) -> MessageModifyRequest:
        """Remove the UNREAD label from a message."""
        return self.modify_email(message_id).remove_labels("UNREAD")

    def archive(self, message_id: str) -> MessageModifyRequest:
        """Archive a message (remove from inbox, keep in All Mail)."""
        return self.modify_email(message_id).remove_labels("INBOX")

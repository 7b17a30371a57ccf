"""
Message Sources

Producers of RawMessage sequences, and the selection predicates a caller
may apply to them.
"""

import json
import logging
import time
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from .classifier import is_financial_sender
from .models import MessageFolder, RawMessage

logger = logging.getLogger(__name__)


class MessageSource(Protocol):
    """Anything that can yield raw messages on demand."""

    def read_messages(self) -> Iterable[RawMessage]:
        ...


def message_from_dict(data: dict) -> RawMessage:
    """Build a RawMessage from a JSON object.

    Accepts ``folder`` as either the numeric folder code or its name.
    """
    folder = data.get("folder", MessageFolder.INBOX.value)
    if isinstance(folder, str):
        folder = MessageFolder[folder.upper()]
    else:
        folder = MessageFolder(int(folder))

    return RawMessage(
        id=int(data["id"]),
        sender=str(data["sender"]),
        body=str(data["body"]),
        received_at=int(data["received_at"]),
        folder=folder,
        read_flag=int(data.get("read_flag", 0)),
    )


class JsonMessageSource:
    """Reads messages from a JSON file holding an array of message objects."""

    def __init__(self, path: Path | str, encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def read_messages(self) -> list[RawMessage]:
        with open(self.path, encoding=self.encoding) as f:
            data = json.load(f)

        messages = []
        for index, item in enumerate(data):
            try:
                messages.append(message_from_dict(item))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping message {index} in {self.path.name}: {e}")

        logger.info(f"Read {len(messages)} message(s) from {self.path}")
        return messages


def financial_senders_only(messages: Iterable[RawMessage]) -> Iterator[RawMessage]:
    return (m for m in messages if is_financial_sender(m.sender))


def within_date_range(
    messages: Iterable[RawMessage],
    start_ms: int,
    end_ms: int
) -> Iterator[RawMessage]:
    return (m for m in messages if start_ms <= m.received_at <= end_ms)


def recent(messages: Iterable[RawMessage], n: int) -> list[RawMessage]:
    """Return the n most recently received messages, newest first."""
    if n <= 0:
        return []
    return sorted(messages, key=lambda m: m.received_at, reverse=True)[:n]


def message_from_callback(
    sender: str,
    body: str,
    received_at: int | None = None
) -> RawMessage:
    """Build a RawMessage for a message pushed by a receiver callback.

    The id is synthesized from the current time in milliseconds.
    """
    now = int(time.time() * 1000)
    return RawMessage(
        id=now,
        sender=sender,
        body=body,
        received_at=received_at if received_at is not None else now,
    )

"""
Transaction Message Classifier

Decides whether a raw message is a financial transaction, and provides the
filter/sort/dedupe utilities applied to batches of raw messages.
"""

import logging
from typing import Iterable

from .errors import check_cancelled
from .models import RawMessage
from .patterns import (
    CURRENCY_KEYWORDS,
    FINANCIAL_SENDERS,
    PAYMENT_KEYWORDS,
    TRANSACTION_KEYWORDS,
)

logger = logging.getLogger(__name__)

# Bucket size for raw-message dedupe
MESSAGE_DEDUPE_BUCKET_MS = 5 * 60 * 1000


def is_financial_sender(sender: str) -> bool:
    """Check if the sender is a known bank, card issuer, payment app or merchant."""
    normalized = sender.strip().upper()
    return any(token in normalized for token in FINANCIAL_SENDERS)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def is_transaction_message(message: RawMessage) -> bool:
    """Check if a message is likely to describe a financial transaction.

    A message from a known financial sender always qualifies. Otherwise it
    needs two of: a transaction keyword, a currency marker, a payment keyword.

    Args:
        message: Raw message

    Returns:
        True if the message should be handed to the extractors
    """
    if is_financial_sender(message.sender):
        return True

    body = message.body.lower()
    has_transaction_keyword = _contains_any(body, TRANSACTION_KEYWORDS)
    has_currency = _contains_any(body, CURRENCY_KEYWORDS)
    has_payment_keyword = _contains_any(body, PAYMENT_KEYWORDS)

    return (
        (has_transaction_keyword and has_currency)
        or (has_payment_keyword and has_currency)
        or (has_transaction_keyword and has_payment_keyword)
    )


def filter_transaction_messages(
    messages: Iterable[RawMessage],
    cancel_event=None
) -> list[RawMessage]:
    """Keep only the messages classified as transactions."""
    result = []
    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        if is_transaction_message(message):
            result.append(message)
    return result


def filter_by_date_range(
    messages: Iterable[RawMessage],
    start_ms: int,
    end_ms: int,
    cancel_event=None
) -> list[RawMessage]:
    """Keep messages received within [start_ms, end_ms]."""
    result = []
    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        if start_ms <= message.received_at <= end_ms:
            result.append(message)
    return result


def filter_by_senders(
    messages: Iterable[RawMessage],
    senders: list[str],
    cancel_event=None
) -> list[RawMessage]:
    """Keep messages whose sender contains any of the given sender tokens."""
    wanted = [s.upper() for s in senders]
    result = []
    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        if any(token in message.normalized_sender for token in wanted):
            result.append(message)
    return result


def remove_duplicate_messages(
    messages: Iterable[RawMessage],
    cancel_event=None
) -> list[RawMessage]:
    """Drop repeated deliveries of the same message.

    Two messages are the same delivery when sender and body match and they
    fall in the same five-minute bucket. The first occurrence is kept.
    """
    seen: set[tuple[str, str, int]] = set()
    result = []
    dropped = 0
    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        key = (message.sender, message.body, message.received_at // MESSAGE_DEDUPE_BUCKET_MS)
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        result.append(message)

    if dropped:
        logger.debug(f"Dropped {dropped} repeated message(s)")
    return result


def sort_by_date_desc(messages: Iterable[RawMessage]) -> list[RawMessage]:
    """Sort messages newest first."""
    return sorted(messages, key=lambda m: m.received_at, reverse=True)

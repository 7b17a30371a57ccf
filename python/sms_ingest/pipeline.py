"""
Ingestion Pipeline

Runs raw messages through classification, extraction, validation and both
duplicate checks, and reports what happened to each of them.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .classifier import is_transaction_message
from .config import IngestionConfig
from .duplicate_detector import DuplicateTransactionChecker, remove_duplicates
from .errors import StoreAccessError, check_cancelled
from .extractors import extract_candidate
from .models import (
    DEFAULT_HIGH_CONFIDENCE_THRESHOLD,
    ParsedTransaction,
    PersistedTransaction,
    RawMessage,
)
from .validators import validate_transaction

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Outcome of one ingestion run."""

    total_in: int = 0
    skipped: int = 0  # not in the inbox
    classified: int = 0
    unparsed: int = 0
    parsed_out: int = 0
    discarded: int = 0
    duplicates: int = 0
    accepted: list[ParsedTransaction] = field(default_factory=list)
    rejected: list[ParsedTransaction] = field(default_factory=list)
    details: list[tuple[ParsedTransaction, list[PersistedTransaction]]] = field(
        default_factory=list
    )
    errors_from_store: list[str] = field(default_factory=list)
    high_confidence_threshold: float = DEFAULT_HIGH_CONFIDENCE_THRESHOLD

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def high_confidence_count(self) -> int:
        return sum(
            1 for t in self.accepted
            if t.is_high_confidence(self.high_confidence_threshold)
        )

    def to_dict(self) -> dict:
        return {
            "total_in": self.total_in,
            "skipped": self.skipped,
            "classified": self.classified,
            "unparsed": self.unparsed,
            "parsed_out": self.parsed_out,
            "discarded": self.discarded,
            "duplicates": self.duplicates,
            "high_confidence_count": self.high_confidence_count,
            "accepted": [t.to_dict() for t in self.accepted],
            "rejected": [t.to_dict() for t in self.rejected],
            "errors_from_store": self.errors_from_store,
        }


def parse_validated(
    message: RawMessage,
    config: IngestionConfig | None = None
) -> ParsedTransaction | None:
    """Classify, extract and validate a single message.

    Applies the same gate as ingest_messages, including the configured
    amount cap.

    Args:
        message: Raw message
        config: Ingestion configuration, defaults if omitted

    Returns:
        ParsedTransaction, or None if the message is not a transaction, has
        no amount or fails validation
    """
    config = config or IngestionConfig()

    if not is_transaction_message(message):
        return None

    parsed = extract_candidate(message)
    if parsed is None:
        return None

    if not validate_transaction(parsed, config.amount_cap).is_valid:
        return None

    return parsed


def iter_parsed(
    messages: Iterable[RawMessage],
    config: IngestionConfig | None = None,
    cancel_event=None
) -> Iterator[ParsedTransaction]:
    """Lazily yield valid transactions parsed from inbox messages."""
    config = config or IngestionConfig()
    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        if not message.is_inbox:
            continue
        parsed = parse_validated(message, config)
        if parsed is not None:
            yield parsed


def ingest_messages(
    messages: Iterable[RawMessage],
    store=None,
    config: IngestionConfig | None = None,
    cancel_event=None
) -> IngestionReport:
    """Run a batch of raw messages through the full pipeline.

    Nothing is written to the store; callers persist ``report.accepted``.

    Args:
        messages: Raw messages to ingest
        store: Optional transaction store for the cross-store duplicate check
        config: Ingestion configuration, defaults if omitted
        cancel_event: Optional threading.Event checked between messages

    Returns:
        IngestionReport
    """
    config = config or IngestionConfig()
    report = IngestionReport(high_confidence_threshold=config.high_confidence_threshold)
    candidates: list[ParsedTransaction] = []

    for count, message in enumerate(messages):
        check_cancelled(cancel_event, count)
        report.total_in += 1

        if not message.is_inbox:
            report.skipped += 1
            continue

        if not is_transaction_message(message):
            continue
        report.classified += 1

        parsed = extract_candidate(message)
        if parsed is None:
            report.unparsed += 1
            continue

        validation = validate_transaction(parsed, config.amount_cap)
        if not validation.is_valid:
            logger.debug(f"Discarding message {message.id}: {'; '.join(validation.errors)}")
            report.discarded += 1
            continue

        candidates.append(parsed)

    report.parsed_out = len(candidates)

    unique = remove_duplicates(
        candidates,
        config.window_ms,
        cancel_event=cancel_event,
        similarity_threshold=config.similarity_threshold,
        amount_tolerance=config.amount_tolerance,
    )
    report.duplicates = len(candidates) - len(unique)

    if store is None:
        report.accepted = unique
    else:
        checker = DuplicateTransactionChecker(store, config)
        for count, parsed in enumerate(unique):
            check_cancelled(cancel_event, count)
            try:
                matches = checker.find_potential_duplicates(parsed)
            except StoreAccessError as e:
                report.errors_from_store.append(str(e))
                continue

            if matches:
                report.duplicates += 1
                report.rejected.append(parsed)
                report.details.append((parsed, matches))
            else:
                report.accepted.append(parsed)

    logger.info(
        f"Ingested {report.total_in} message(s): {report.parsed_out} parsed, "
        f"{report.discarded} discarded, {report.duplicates} duplicate(s), "
        f"{report.accepted_count} accepted, {report.high_confidence_count} high confidence"
    )
    if report.errors_from_store:
        logger.warning(f"{len(report.errors_from_store)} store lookup(s) failed")

    return report

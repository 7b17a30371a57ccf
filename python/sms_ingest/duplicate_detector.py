"""
Duplicate Transaction Detector Module

Detects duplicate transactions within a batch of newly parsed messages and
against transactions already held by the store.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from .config import DEFAULT_TIME_WINDOW_MS, IngestionConfig, clamp_window
from .errors import StoreAccessError, check_cancelled
from .models import ParsedTransaction, PersistedTransaction
from .similarity import DEFAULT_SIMILARITY_THRESHOLD, is_similar

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")

# Confidence weights, summing to 1.0
AMOUNT_WEIGHT = 0.40
COUNTERPARTY_EXACT_WEIGHT = 0.30
COUNTERPARTY_SIMILAR_WEIGHT = 0.15
TIME_WEIGHT = 0.20
TRANSACTION_ID_WEIGHT = 0.10


@dataclass
class DuplicateDetectionSummary:
    """Result of checking parsed transactions against a list of persisted ones."""

    total_parsed: int
    unique_transactions: list[ParsedTransaction] = field(default_factory=list)
    duplicate_transactions: list[ParsedTransaction] = field(default_factory=list)
    potential_duplicates: list[tuple[ParsedTransaction, list[PersistedTransaction]]] = field(
        default_factory=list
    )

    @property
    def unique_count(self) -> int:
        return len(self.unique_transactions)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_transactions)

    @property
    def duplicate_percentage(self) -> float:
        if self.total_parsed == 0:
            return 0.0
        return self.duplicate_count / self.total_parsed * 100

    def to_dict(self) -> dict:
        return {
            "total_parsed": self.total_parsed,
            "unique": self.unique_count,
            "duplicates": self.duplicate_count,
            "duplicate_percentage": round(self.duplicate_percentage, 2),
        }


@dataclass
class DuplicateAnalysisResult:
    """Result of checking parsed transactions against the store."""

    total: int
    unique: list[ParsedTransaction] = field(default_factory=list)
    duplicates: list[ParsedTransaction] = field(default_factory=list)
    details: list[tuple[ParsedTransaction, list[PersistedTransaction]]] = field(
        default_factory=list
    )

    @property
    def duplicate_rate(self) -> float:
        """Fraction of the batch found in the store."""
        return len(self.duplicates) / self.total if self.total > 0 else 0.0

    @property
    def has_duplicates(self) -> bool:
        return len(self.duplicates) > 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "unique": len(self.unique),
            "duplicates": len(self.duplicates),
            "duplicate_rate": round(self.duplicate_rate, 4),
            "details": [
                {
                    "transaction": parsed.to_dict(),
                    "matches": [match.to_dict() for match in matches],
                }
                for parsed, matches in self.details
            ],
        }


def _amounts_match(a: Decimal, b: Decimal, tolerance: Decimal = AMOUNT_TOLERANCE) -> bool:
    return abs(Decimal(a) - Decimal(b)) < tolerance


def are_duplicates(
    txn1: ParsedTransaction,
    txn2: ParsedTransaction,
    window_ms: int = DEFAULT_TIME_WINDOW_MS,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    amount_tolerance: Decimal = AMOUNT_TOLERANCE
) -> bool:
    """Check whether two parsed transactions describe the same payment.

    Args:
        txn1: First transaction
        txn2: Second transaction
        window_ms: Time window, clamped to the legal range
        similarity_threshold: Threshold for the counterparty comparison
        amount_tolerance: Amounts closer than this are equal

    Returns:
        True if amount, time and counterparty all match
    """
    window = clamp_window(window_ms)

    if not _amounts_match(txn1.amount, txn2.amount, amount_tolerance):
        return False

    if abs(txn1.date_time - txn2.date_time) > window:
        return False

    identifier1 = txn1.primary_identifier()
    identifier2 = txn2.primary_identifier()
    if identifier1 is None or identifier2 is None:
        # Without counterparties only amount and time can be compared
        return identifier1 is None and identifier2 is None

    return is_similar(identifier1, identifier2, similarity_threshold)


def remove_duplicates(
    transactions: list[ParsedTransaction],
    window_ms: int = DEFAULT_TIME_WINDOW_MS,
    cancel_event=None,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    amount_tolerance: Decimal = AMOUNT_TOLERANCE
) -> list[ParsedTransaction]:
    """Collapse duplicates within a batch, keeping the earliest occurrence.

    Args:
        transactions: Newly parsed transactions
        window_ms: Time window, clamped to the legal range
        cancel_event: Optional threading.Event checked between transactions

    Returns:
        Unique transactions in ascending date_time order
    """
    window = clamp_window(window_ms)
    unique: list[ParsedTransaction] = []

    for count, txn in enumerate(sorted(transactions, key=lambda t: t.date_time)):
        check_cancelled(cancel_event, count)
        if any(
            are_duplicates(kept, txn, window, similarity_threshold, amount_tolerance)
            for kept in unique
        ):
            logger.debug(f"Dropping in-batch duplicate: {txn.short_description()} {txn.amount}")
            continue
        unique.append(txn)

    return unique


def calculate_duplicate_confidence(
    parsed: ParsedTransaction,
    existing: PersistedTransaction,
    window_ms: int = DEFAULT_TIME_WINDOW_MS,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    amount_tolerance: Decimal = AMOUNT_TOLERANCE
) -> float:
    """Score how likely a parsed transaction duplicates a persisted one.

    Returns:
        Confidence between 0.0 and 1.0
    """
    window = clamp_window(window_ms)
    confidence = 0.0

    # 1. Amount
    if _amounts_match(parsed.amount, existing.amount, amount_tolerance):
        confidence += AMOUNT_WEIGHT

    # 2. Counterparty
    parsed_identifier = parsed.short_description()
    existing_identifier = existing.short_description()
    if parsed_identifier.lower() == existing_identifier.lower():
        confidence += COUNTERPARTY_EXACT_WEIGHT
    elif is_similar(parsed_identifier, existing_identifier, similarity_threshold):
        confidence += COUNTERPARTY_SIMILAR_WEIGHT

    # 3. Time proximity
    time_difference = abs(parsed.date_time - existing.date_time)
    if time_difference <= window:
        confidence += TIME_WEIGHT * (1.0 - time_difference / window)

    # 4. Reference
    if parsed.transaction_id and existing.transaction_id:
        if parsed.transaction_id == existing.transaction_id:
            confidence += TRANSACTION_ID_WEIGHT

    return min(max(confidence, 0.0), 1.0)


def _matches_persisted(
    parsed: ParsedTransaction,
    existing: PersistedTransaction,
    window: int,
    similarity_threshold: float,
    amount_tolerance: Decimal
) -> bool:
    if not _amounts_match(parsed.amount, existing.amount, amount_tolerance):
        return False

    if abs(parsed.date_time - existing.date_time) > window:
        return False

    identifier = parsed.primary_identifier()
    if identifier is None:
        # Amount and time agree but there is nothing else to compare
        return True

    existing_identifier = existing.short_description()
    return (
        identifier.lower() == existing_identifier.lower()
        or is_similar(identifier, existing_identifier, similarity_threshold)
    )


def find_duplicates_in(
    parsed: ParsedTransaction,
    existing_transactions: list[PersistedTransaction],
    window_ms: int = DEFAULT_TIME_WINDOW_MS,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    amount_tolerance: Decimal = AMOUNT_TOLERANCE
) -> list[PersistedTransaction]:
    """Find persisted transactions in a list that the parsed one duplicates."""
    window = clamp_window(window_ms)
    return [
        existing for existing in existing_transactions
        if _matches_persisted(parsed, existing, window, similarity_threshold, amount_tolerance)
    ]


def get_duplicate_detection_summary(
    parsed_transactions: list[ParsedTransaction],
    existing_transactions: list[PersistedTransaction],
    window_ms: int = DEFAULT_TIME_WINDOW_MS,
    cancel_event=None,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    amount_tolerance: Decimal = AMOUNT_TOLERANCE
) -> DuplicateDetectionSummary:
    """Split parsed transactions into unique ones and duplicates of a list.

    Args:
        parsed_transactions: Newly parsed transactions
        existing_transactions: Persisted transactions to compare against
        window_ms: Time window, clamped to the legal range
        cancel_event: Optional threading.Event checked between transactions
        similarity_threshold: Threshold for the counterparty comparison
        amount_tolerance: Amounts closer than this are equal

    Returns:
        DuplicateDetectionSummary
    """
    summary = DuplicateDetectionSummary(total_parsed=len(parsed_transactions))

    for count, parsed in enumerate(parsed_transactions):
        check_cancelled(cancel_event, count)
        matches = find_duplicates_in(
            parsed,
            existing_transactions,
            window_ms,
            similarity_threshold,
            amount_tolerance,
        )
        if matches:
            summary.duplicate_transactions.append(parsed)
            summary.potential_duplicates.append((parsed, matches))
        else:
            summary.unique_transactions.append(parsed)

    return summary


class DuplicateTransactionChecker:
    """Checks parsed transactions against the transaction store."""

    def __init__(self, store, config: IngestionConfig | None = None):
        """Initialize the checker.

        Args:
            store: Object implementing find_potential_duplicate()
            config: Ingestion configuration, defaults if omitted
        """
        self.store = store
        self.config = config or IngestionConfig()

    @property
    def window_ms(self) -> int:
        return self.config.window_ms

    def _lookup(self, parsed: ParsedTransaction) -> PersistedTransaction | None:
        try:
            return self.store.find_potential_duplicate(
                parsed.amount,
                parsed.recipient,
                parsed.merchant_name,
                parsed.date_time,
                self.window_ms,
            )
        except Exception as e:
            logger.warning(f"Duplicate lookup failed for {parsed.short_description()}: {e}")
            raise StoreAccessError("find_potential_duplicate", e) from e

    def is_duplicate(self, parsed: ParsedTransaction) -> bool:
        """Check if the store already holds this transaction."""
        return self._lookup(parsed) is not None

    def find_potential_duplicates(self, parsed: ParsedTransaction) -> list[PersistedTransaction]:
        match = self._lookup(parsed)
        return [match] if match is not None else []

    def duplicate_confidence(self, parsed: ParsedTransaction) -> float:
        """Return the highest confidence among the store's matches, 0.0 if none."""
        matches = self.find_potential_duplicates(parsed)
        if not matches:
            return 0.0

        return max(
            calculate_duplicate_confidence(
                parsed,
                match,
                self.window_ms,
                self.config.similarity_threshold,
                self.config.amount_tolerance,
            )
            for match in matches
        )

    def filter_duplicates(
        self,
        transactions: list[ParsedTransaction],
        cancel_event=None
    ) -> list[ParsedTransaction]:
        """Return the transactions the store does not already hold."""
        unique = []
        for count, parsed in enumerate(transactions):
            check_cancelled(cancel_event, count)
            if not self.is_duplicate(parsed):
                unique.append(parsed)
        return unique

    def analyze_duplicates(
        self,
        transactions: list[ParsedTransaction],
        cancel_event=None
    ) -> DuplicateAnalysisResult:
        """Split a batch into unique transactions and duplicates of stored ones.

        Args:
            transactions: Parsed transactions to check
            cancel_event: Optional threading.Event checked between transactions

        Returns:
            DuplicateAnalysisResult with the matching stored records per duplicate
        """
        result = DuplicateAnalysisResult(total=len(transactions))

        for count, parsed in enumerate(transactions):
            check_cancelled(cancel_event, count)
            matches = self.find_potential_duplicates(parsed)
            if matches:
                result.duplicates.append(parsed)
                result.details.append((parsed, matches))
            else:
                result.unique.append(parsed)

        if result.has_duplicates:
            logger.info(
                f"{len(result.duplicates)} of {result.total} transaction(s) already stored"
            )
        return result

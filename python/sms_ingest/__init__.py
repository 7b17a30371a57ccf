"""
SMS Ingestion Module

Classifies financial SMS, extracts transactions with issuer templates and a
generic fallback, and removes duplicates within a batch and against the
transaction store.
"""

from .models import (
    MessageFolder,
    PaymentMethod,
    RawMessage,
    ParsedTransaction,
    PersistedTransaction,
)
from .errors import IngestionError, StoreAccessError, IngestionCancelled
from .config import IngestionConfig, load_config, clamp_window
from .classifier import (
    is_financial_sender,
    is_transaction_message,
    filter_transaction_messages,
    filter_by_date_range,
    filter_by_senders,
    remove_duplicate_messages,
    sort_by_date_desc,
)
from .extractors import (
    IssuerKind,
    detect_issuer,
    extract_generic,
    extract_transaction,
    parse_message,
)
from .similarity import is_similar, levenshtein_distance
from .duplicate_detector import (
    DuplicateTransactionChecker,
    DuplicateAnalysisResult,
    DuplicateDetectionSummary,
    are_duplicates,
    remove_duplicates,
    calculate_duplicate_confidence,
    find_duplicates_in,
    get_duplicate_detection_summary,
)
from .validators import (
    Category,
    DEFAULT_CATEGORIES,
    ValidationResult,
    validate_transaction,
    validate_category_assignment,
)
from .analytics import (
    CategorySpending,
    DailySpending,
    MonthlySpendingSummary,
    category_totals,
    summarize_month,
)
from .store import TransactionStore, InMemoryTransactionStore, SqlTransactionStore
from .sources import JsonMessageSource, MessageSource, message_from_callback
from .pipeline import IngestionReport, ingest_messages, iter_parsed, parse_validated

__all__ = [
    # Models
    "MessageFolder",
    "PaymentMethod",
    "RawMessage",
    "ParsedTransaction",
    "PersistedTransaction",
    # Errors
    "IngestionError",
    "StoreAccessError",
    "IngestionCancelled",
    # Configuration
    "IngestionConfig",
    "load_config",
    "clamp_window",
    # Classification
    "is_financial_sender",
    "is_transaction_message",
    "filter_transaction_messages",
    "filter_by_date_range",
    "filter_by_senders",
    "remove_duplicate_messages",
    "sort_by_date_desc",
    # Extraction
    "IssuerKind",
    "detect_issuer",
    "extract_generic",
    "extract_transaction",
    "parse_message",
    # Duplicate Detection
    "is_similar",
    "levenshtein_distance",
    "DuplicateTransactionChecker",
    "DuplicateAnalysisResult",
    "DuplicateDetectionSummary",
    "are_duplicates",
    "remove_duplicates",
    "calculate_duplicate_confidence",
    "find_duplicates_in",
    "get_duplicate_detection_summary",
    # Validation
    "Category",
    "DEFAULT_CATEGORIES",
    "ValidationResult",
    "validate_transaction",
    "validate_category_assignment",
    # Analytics
    "CategorySpending",
    "DailySpending",
    "MonthlySpendingSummary",
    "category_totals",
    "summarize_month",
    # Stores and Sources
    "TransactionStore",
    "InMemoryTransactionStore",
    "SqlTransactionStore",
    "MessageSource",
    "JsonMessageSource",
    "message_from_callback",
    # Pipeline
    "IngestionReport",
    "ingest_messages",
    "iter_parsed",
    "parse_validated",
]

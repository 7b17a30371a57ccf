"""
Transaction extractors for financial SMS.

The router picks an issuer template set by sender and falls back to the
generic extractor when the issuer templates do not yield a valid record.
"""

import logging
from dataclasses import replace

from ..classifier import is_transaction_message
from ..models import ParsedTransaction, RawMessage
from .base import (
    clean_merchant_name,
    clean_reference,
    infer_payment_method,
    parse_amount,
    split_counterparty,
)
from .generic import (
    calculate_confidence,
    determine_payment_method,
    extract_amount,
    extract_generic,
    extract_merchant_name,
    extract_recipient,
    extract_transaction_id,
)
from .issuers import (
    ISSUER_TEMPLATES,
    IssuerKind,
    IssuerTemplateSet,
    detect_issuer,
    extract_with_issuer,
)

logger = logging.getLogger(__name__)


def extract_candidate(message: RawMessage) -> ParsedTransaction | None:
    """Extract the best candidate record, valid or not.

    A valid issuer match wins. Otherwise the generic extractor runs; for a
    known issuer its confidence is capped at that issuer's template
    confidence, so a message matching no template never outscores one that
    does.

    Returns:
        ParsedTransaction, or None if no amount could be found
    """
    kind = detect_issuer(message.sender)
    if kind is not None:
        parsed = extract_with_issuer(message, kind)
        if parsed is not None and parsed.is_valid():
            return parsed
        logger.debug(f"{kind.value} templates did not match message {message.id}, using generic")

    parsed = extract_generic(message)
    if parsed is not None and kind is not None:
        cap = ISSUER_TEMPLATES[kind].confidence
        if parsed.confidence > cap:
            parsed = replace(parsed, confidence=cap)
    return parsed


def extract_transaction(message: RawMessage) -> ParsedTransaction | None:
    """Extract a valid transaction from a message.

    Args:
        message: Raw message, assumed to be classified as a transaction

    Returns:
        A ParsedTransaction that passes is_valid(), or None
    """
    parsed = extract_candidate(message)
    if parsed is not None and parsed.is_valid():
        return parsed
    return None


def parse_message(message: RawMessage) -> ParsedTransaction | None:
    """Classify a message and, if it is a transaction, extract it.

    Only the structural is_valid() check is applied here; the configured
    amount cap is enforced by pipeline.parse_validated.
    """
    if not is_transaction_message(message):
        return None
    return extract_transaction(message)


__all__ = [
    # Router
    "extract_candidate",
    "extract_transaction",
    "parse_message",
    # Issuers
    "IssuerKind",
    "IssuerTemplateSet",
    "ISSUER_TEMPLATES",
    "detect_issuer",
    "extract_with_issuer",
    # Generic
    "extract_generic",
    "extract_amount",
    "extract_recipient",
    "extract_merchant_name",
    "extract_transaction_id",
    "determine_payment_method",
    "calculate_confidence",
    # Helpers
    "parse_amount",
    "infer_payment_method",
    "clean_merchant_name",
    "clean_reference",
    "split_counterparty",
]

"""
Generic Extractor

Keyword and pattern based extraction for messages that no issuer template
recognizes. Each field is extracted independently and the overall
confidence reflects how many fields were found.
"""

import logging
from decimal import Decimal

from ..models import ParsedTransaction, PaymentMethod, RawMessage
from ..patterns import (
    AMOUNT_PATTERNS,
    MERCHANT_PATTERNS,
    PHONE_PATTERNS,
    TRANSACTION_ID_PATTERNS,
    VPA_PATTERNS,
)
from .base import clean_merchant_name, clean_reference, infer_payment_method, parse_amount

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5


def extract_amount(text: str) -> Decimal | None:
    """Extract the first currency amount in the text.

    Tries ₹, Rs./Rs, INR and Rupees markers in that order.
    """
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            amount = parse_amount(match.group(1))
            if amount is not None:
                return amount
    return None


def extract_recipient(text: str) -> str | None:
    """Extract a VPA, falling back to a mobile number."""
    for pattern in VPA_PATTERNS + PHONE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_merchant_name(text: str) -> str | None:
    """Extract an upper-case merchant name following an anchor word."""
    for pattern in MERCHANT_PATTERNS:
        for match in pattern.finditer(text):
            merchant = clean_merchant_name(match.group(1))
            if merchant:
                return merchant
    return None


def extract_transaction_id(text: str) -> str | None:
    for pattern in TRANSACTION_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            reference = clean_reference(match.group(1))
            if reference:
                return reference
    return None


def determine_payment_method(text: str) -> PaymentMethod:
    return infer_payment_method(text)


def calculate_confidence(
    amount: Decimal | None,
    recipient: str | None,
    merchant_name: str | None,
    transaction_id: str | None,
    payment_method: PaymentMethod
) -> float:
    """Score how completely the message was understood.

    Returns:
        Confidence in [0.0, 1.0], rounded to two decimals
    """
    confidence = BASE_CONFIDENCE

    if amount is not None:
        confidence += 0.2
    if recipient or merchant_name:
        confidence += 0.2
    if transaction_id:
        confidence += 0.1
    if payment_method != PaymentMethod.OTHER:
        confidence += 0.1
    if recipient and merchant_name:
        confidence += 0.1

    return min(max(round(confidence, 2), 0.0), 1.0)


def extract_generic(message: RawMessage) -> ParsedTransaction | None:
    """Extract a transaction from any message.

    Args:
        message: Raw message

    Returns:
        ParsedTransaction (not yet validated), or None if no amount was found
    """
    body = message.body
    amount = extract_amount(body)
    if amount is None:
        logger.debug(f"No amount in message {message.id} from {message.sender}")
        return None

    recipient = extract_recipient(body)
    merchant_name = extract_merchant_name(body)
    transaction_id = extract_transaction_id(body)
    payment_method = determine_payment_method(body)

    return ParsedTransaction(
        amount=amount,
        recipient=recipient,
        merchant_name=merchant_name,
        transaction_id=transaction_id,
        payment_method=payment_method,
        date_time=message.received_at,
        sms_content=body,
        sender=message.sender,
        confidence=calculate_confidence(
            amount, recipient, merchant_name, transaction_id, payment_method
        ),
    )

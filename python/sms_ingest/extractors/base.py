"""
Extractor Helpers

Field-level helpers shared by the issuer templates and the generic extractor.
"""

from decimal import Decimal, InvalidOperation

from ..models import PaymentMethod
from ..patterns import (
    BARE_PHONE,
    MERCHANT_MAX_LENGTH,
    MERCHANT_MIN_LENGTH,
    MERCHANT_STOP_WORDS,
    PAYMENT_METHOD_RULES,
    TRANSACTION_ID_MAX_LENGTH,
    TRANSACTION_ID_MIN_LENGTH,
)

_TRAILING_PUNCTUATION = ".,;"


def parse_amount(value: str | None) -> Decimal | None:
    """Parse an amount token such as ``2,500.25``.

    Returns:
        Decimal amount, or None if the token is not a number
    """
    if not value:
        return None
    try:
        return Decimal(value.replace(",", ""))
    except InvalidOperation:
        return None


def infer_payment_method(text: str) -> PaymentMethod:
    """Infer the payment instrument from keywords in the message body."""
    lowered = text.lower()
    for keywords, method in PAYMENT_METHOD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return method
    return PaymentMethod.OTHER


def clean_merchant_name(candidate: str | None) -> str | None:
    """Trim a merchant candidate and apply the stop-word and length filter."""
    if not candidate:
        return None

    name = candidate.strip().rstrip(_TRAILING_PUNCTUATION).strip()
    if not MERCHANT_MIN_LENGTH <= len(name) <= MERCHANT_MAX_LENGTH:
        return None

    upper = name.upper()
    if any(stop_word in upper for stop_word in MERCHANT_STOP_WORDS):
        return None

    return name


def clean_reference(candidate: str | None) -> str | None:
    """Keep a reference only if it has an acceptable length."""
    if not candidate:
        return None
    reference = candidate.strip()
    if TRANSACTION_ID_MIN_LENGTH <= len(reference) <= TRANSACTION_ID_MAX_LENGTH:
        return reference
    return None


def is_recipient_token(token: str) -> bool:
    """A VPA or a bare mobile number identifies a recipient, not a merchant."""
    return "@" in token or bool(BARE_PHONE.match(token))


def split_counterparty(token: str | None) -> tuple[str | None, str | None]:
    """Route a counterparty token to (recipient, merchant_name)."""
    if not token:
        return None, None

    cleaned = token.strip().rstrip(_TRAILING_PUNCTUATION)
    if not cleaned:
        return None, None

    if is_recipient_token(cleaned):
        return cleaned, None

    return None, clean_merchant_name(cleaned)

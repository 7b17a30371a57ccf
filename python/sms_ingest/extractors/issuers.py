"""
Issuer Templates

Each supported bank and payment app sends messages in a small number of
fixed sentence shapes. Matching those shapes directly gives better results
than the generic extractor, so the router tries them first.

Templates use named groups: ``amount`` (always), ``counterparty`` and
``reference`` (when the shape carries them). Date groups are matched so the
template anchors correctly but the value is not used; the message timestamp
is authoritative.
"""

import re
from dataclasses import dataclass
from enum import Enum

from ..models import ParsedTransaction, PaymentMethod, RawMessage
from ..patterns import AMOUNT
from .base import clean_reference, infer_payment_method, parse_amount, split_counterparty


BANK_CONFIDENCE = 0.90
APP_CONFIDENCE = 0.95

_A = rf"(?P<amount>{AMOUNT})"
_M = r"(?P<counterparty>[A-Z][A-Z0-9\s]+?)"
_C = r"(?P<counterparty>\S+)"
_R = r"(?P<reference>[A-Z0-9]+)"
_D = r"[\w-]+"


class IssuerKind(Enum):
    """Senders with dedicated templates, in detection order."""
    HDFC = "HDFC"
    SBI = "SBI"
    ICICI = "ICICI"
    GPAY = "GPAY"
    PHONEPE = "PHONEPE"
    PAYTM = "PAYTM"


@dataclass(frozen=True)
class IssuerTemplateSet:
    """Compiled templates and scoring for one issuer."""

    kind: IssuerKind
    templates: tuple[re.Pattern, ...]
    confidence: float
    is_payment_app: bool = False


ISSUER_TEMPLATES: dict[IssuerKind, IssuerTemplateSet] = {
    IssuerKind.HDFC: IssuerTemplateSet(
        kind=IssuerKind.HDFC,
        templates=(
            re.compile(rf"Rs\.{_A}\s+debited\s+from\s+.*?\s+at\s+{_M}\s+on\s+{_D}"),
            re.compile(rf"₹{_A}\s+debited\s+from\s+.*?\s+UPI\s+Ref\s*:?\s*{_R}"),
            re.compile(rf"INR\s+{_A}\s+spent\s+on\s+{_M}\s+using\s+HDFC\s+.*?Card"),
        ),
        confidence=BANK_CONFIDENCE,
    ),
    IssuerKind.SBI: IssuerTemplateSet(
        kind=IssuerKind.SBI,
        templates=(
            re.compile(rf"Rs\s+{_A}\s+debited\s+from\s+.*?\s+on\s+{_D}\s+at\s+(?P<counterparty>[A-Z][A-Z0-9\s]+)"),
            re.compile(rf"₹{_A}\s+sent\s+via\s+UPI\s+to\s+{_C}\s+Ref\s*:?\s*{_R}"),
        ),
        confidence=BANK_CONFIDENCE,
    ),
    IssuerKind.ICICI: IssuerTemplateSet(
        kind=IssuerKind.ICICI,
        templates=(
            re.compile(rf"₹{_A}\s+debited\s+from\s+.*?\s+at\s+{_M}\s+on\s+{_D}"),
            re.compile(rf"₹{_A}\s+transferred\s+to\s+{_C}\s+via\s+UPI\s+Ref\s*:?\s*{_R}"),
        ),
        confidence=BANK_CONFIDENCE,
    ),
    IssuerKind.GPAY: IssuerTemplateSet(
        kind=IssuerKind.GPAY,
        templates=(
            re.compile(rf"₹{_A}\s+paid\s+to\s+{_C}\s+via\s+UPI\s+UPI\s+Ref\s*:?\s*{_R}"),
            re.compile(rf"You\s+paid\s+₹{_A}\s+to\s+{_C}\s+UPI\s+Ref\s*:?\s*{_R}"),
        ),
        confidence=APP_CONFIDENCE,
        is_payment_app=True,
    ),
    IssuerKind.PHONEPE: IssuerTemplateSet(
        kind=IssuerKind.PHONEPE,
        templates=(
            re.compile(rf"₹{_A}\s+sent\s+to\s+{_C}\s+via\s+PhonePe\s+UPI\s+ID\s*:?\s*{_R}"),
            re.compile(rf"You\s+sent\s+₹{_A}\s+to\s+{_C}\s+Transaction\s+ID\s*:?\s*{_R}"),
        ),
        confidence=APP_CONFIDENCE,
        is_payment_app=True,
    ),
    IssuerKind.PAYTM: IssuerTemplateSet(
        kind=IssuerKind.PAYTM,
        templates=(
            re.compile(rf"₹{_A}\s+transferred\s+to\s+{_C}\s+via\s+Paytm\s+UPI\s+Txn\s+ID\s*:?\s*{_R}"),
            re.compile(rf"₹{_A}\s+paid\s+from\s+Paytm\s+Wallet\s+to\s+{_C}\s+Order\s+ID\s*:?\s*{_R}"),
        ),
        confidence=APP_CONFIDENCE,
        is_payment_app=True,
    ),
}


def detect_issuer(sender: str) -> IssuerKind | None:
    """Return the first issuer whose token appears in the sender."""
    normalized = sender.strip().upper()
    for kind in IssuerKind:
        if kind.value in normalized:
            return kind
    return None


def match_template(template_set: IssuerTemplateSet, body: str) -> re.Match | None:
    """Try the issuer's templates in order; first match wins."""
    for template in template_set.templates:
        match = template.search(body)
        if match:
            return match
    return None


def _app_payment_method(body: str) -> PaymentMethod:
    if "wallet" in body.lower():
        return PaymentMethod.WALLET
    return PaymentMethod.UPI


def extract_with_issuer(
    message: RawMessage,
    kind: IssuerKind
) -> ParsedTransaction | None:
    """Extract a transaction using one issuer's templates.

    Args:
        message: Raw message from the issuer
        kind: Issuer whose templates to apply

    Returns:
        ParsedTransaction (not yet validated), or None if no template matched
    """
    template_set = ISSUER_TEMPLATES[kind]
    match = match_template(template_set, message.body)
    if match is None:
        return None

    groups = match.groupdict()
    amount = parse_amount(groups.get("amount"))
    if amount is None:
        return None

    recipient, merchant_name = split_counterparty(groups.get("counterparty"))

    if template_set.is_payment_app:
        payment_method = _app_payment_method(message.body)
    else:
        payment_method = infer_payment_method(message.body)

    return ParsedTransaction(
        amount=amount,
        recipient=recipient,
        merchant_name=merchant_name,
        transaction_id=clean_reference(groups.get("reference")),
        payment_method=payment_method,
        date_time=message.received_at,
        sms_content=message.body,
        sender=message.sender,
        confidence=template_set.confidence,
    )

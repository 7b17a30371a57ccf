"""
SMS Ingestion Models

Value objects flowing through the pipeline: raw messages in, parsed
transactions out, and the persisted records used for duplicate checks.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class MessageFolder(Enum):
    """Folder a message was read from. Only the inbox is processed."""
    INBOX = 1
    SENT = 2
    DRAFT = 3
    OUTBOX = 4
    FAILED = 5
    QUEUED = 6


class PaymentMethod(Enum):
    """Payment instrument inferred from the message body."""
    UPI = "UPI"
    DEBIT_CARD = "Debit Card"
    CREDIT_CARD = "Credit Card"
    NET_BANKING = "Net Banking"
    WALLET = "Wallet"
    OTHER = "Other"


STATUS_UNREAD = 0
STATUS_READ = 1

DEFAULT_HIGH_CONFIDENCE_THRESHOLD = 0.8


@dataclass(frozen=True)
class RawMessage:
    """A message as yielded by the message source."""

    id: int
    sender: str
    body: str
    received_at: int  # epoch milliseconds
    folder: MessageFolder = MessageFolder.INBOX
    read_flag: int = STATUS_UNREAD

    @property
    def normalized_sender(self) -> str:
        return self.sender.strip().upper()

    @property
    def is_inbox(self) -> bool:
        return self.folder == MessageFolder.INBOX

    @property
    def is_unread(self) -> bool:
        return self.read_flag == STATUS_UNREAD


@dataclass(frozen=True)
class ParsedTransaction:
    """A transaction extracted from a single message."""

    amount: Decimal
    recipient: str | None
    merchant_name: str | None
    transaction_id: str | None
    payment_method: PaymentMethod
    date_time: int  # epoch milliseconds, copied from the message
    sms_content: str
    sender: str
    confidence: float = 1.0

    def primary_identifier(self) -> str | None:
        """Return the merchant name, falling back to the recipient."""
        return self.merchant_name or self.recipient

    def short_description(self) -> str:
        """Return the counterparty label used when comparing transactions."""
        return self.merchant_name or self.recipient or "Transaction"

    def is_high_confidence(self, threshold: float = DEFAULT_HIGH_CONFIDENCE_THRESHOLD) -> bool:
        return self.confidence >= threshold

    def is_valid(self) -> bool:
        """Check the record carries enough data to be stored."""
        return (
            self.amount > 0
            and bool(self.recipient or self.merchant_name)
            and isinstance(self.payment_method, PaymentMethod)
            and bool(self.sms_content and self.sms_content.strip())
        )

    def to_dict(self) -> dict:
        return {
            "amount": float(self.amount),
            "recipient": self.recipient,
            "merchant_name": self.merchant_name,
            "transaction_id": self.transaction_id,
            "payment_method": self.payment_method.value,
            "date_time": self.date_time,
            "sms_content": self.sms_content,
            "sender": self.sender,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PersistedTransaction:
    """A transaction already held by the store."""

    id: int
    amount: Decimal
    recipient: str | None
    merchant_name: str | None
    date_time: int
    transaction_id: str | None
    payment_method: str
    sms_content: str
    category: str | None = None
    categorized: bool = False
    notes: str | None = None
    created_at: int = 0
    updated_at: int = 0

    def short_description(self) -> str:
        return self.merchant_name or self.recipient or "Transaction"

    def formatted_amount(self) -> str:
        return f"₹{self.amount:.2f}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": float(self.amount),
            "recipient": self.recipient,
            "merchant_name": self.merchant_name,
            "date_time": self.date_time,
            "transaction_id": self.transaction_id,
            "payment_method": self.payment_method,
            "category": self.category,
            "categorized": self.categorized,
            "notes": self.notes,
            "description": self.short_description(),
            "formatted_amount": self.formatted_amount(),
        }

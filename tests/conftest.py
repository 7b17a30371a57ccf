"""
Pytest configuration and fixtures for SMS ingestion tests.
"""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

# Keep the API module from opening a database file during collection
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sms_ingest.models import (  # noqa: E402
    ParsedTransaction,
    PaymentMethod,
    PersistedTransaction,
    RawMessage,
)

BASE_TIME = 1_705_300_000_000  # 2024-01-15, epoch ms


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def ingestion_settings(config_dir: Path) -> dict:
    """Load the ingestion configuration file."""
    with open(config_dir / "sms_ingestion.yaml") as f:
        return yaml.safe_load(f)


@pytest.fixture
def base_time() -> int:
    return BASE_TIME


@pytest.fixture
def make_message():
    """Factory for raw messages."""
    counter = {"id": 0}

    def _make(sender: str, body: str, received_at: int = BASE_TIME, **kwargs) -> RawMessage:
        counter["id"] += 1
        return RawMessage(
            id=kwargs.pop("id", counter["id"]),
            sender=sender,
            body=body,
            received_at=received_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_parsed():
    """Factory for parsed transactions."""

    def _make(
        amount="150",
        merchant_name: str | None = "ZOMATO",
        recipient: str | None = None,
        date_time: int = BASE_TIME,
        transaction_id: str | None = None,
        payment_method: PaymentMethod = PaymentMethod.UPI,
        confidence: float = 0.9,
    ) -> ParsedTransaction:
        return ParsedTransaction(
            amount=Decimal(amount),
            recipient=recipient,
            merchant_name=merchant_name,
            transaction_id=transaction_id,
            payment_method=payment_method,
            date_time=date_time,
            sms_content=f"Rs.{amount} paid to {merchant_name or recipient}",
            sender="TEST",
            confidence=confidence,
        )

    return _make


@pytest.fixture
def make_persisted():
    """Factory for persisted transactions."""
    counter = {"id": 0}

    def _make(
        amount="150",
        merchant_name: str | None = "ZOMATO",
        recipient: str | None = None,
        date_time: int = BASE_TIME,
        transaction_id: str | None = None,
    ) -> PersistedTransaction:
        counter["id"] += 1
        return PersistedTransaction(
            id=counter["id"],
            amount=Decimal(amount),
            recipient=recipient,
            merchant_name=merchant_name,
            date_time=date_time,
            transaction_id=transaction_id,
            payment_method="UPI",
            sms_content="stored message",
        )

    return _make


@pytest.fixture
def sample_messages(make_message) -> list[RawMessage]:
    """A mixed batch of financial and non-financial messages."""
    return [
        make_message("GPAY", "₹150 paid to 9876543210 via UPI. UPI Ref: 123456789"),
        make_message("HDFCBK", "Rs.500 debited from account ending 1234 at ZOMATO on 15-Jan-24",
                     received_at=BASE_TIME + 1_000),
        make_message("HDFC", "INR 2000 spent on AMAZON using HDFC Credit Card ending 5678",
                     received_at=BASE_TIME + 2_000),
        make_message("AMAZON", "Your OTP for login is 123456. Do not share with anyone.",
                     received_at=BASE_TIME + 3_000),
        make_message("+919812345678", "Hey, are we still meeting tonight?",
                     received_at=BASE_TIME + 4_000),
    ]


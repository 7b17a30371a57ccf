"""
Ingestion Pipeline Tests

End-to-end tests from raw messages to the ingestion report.
"""

import threading
from decimal import Decimal
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from sms_ingest.config import IngestionConfig
from sms_ingest.errors import IngestionCancelled
from sms_ingest.models import MessageFolder
from sms_ingest.pipeline import ingest_messages, iter_parsed, parse_validated
from sms_ingest.store import InMemoryTransactionStore


class BrokenStore:
    """Store whose lookups always fail."""

    def find_potential_duplicate(self, *args, **kwargs):
        raise RuntimeError("lookup failed")


class TestIngestMessages:
    """Tests for ingest_messages."""

    def test_sample_batch(self, sample_messages):
        """Test counts for a mixed batch without a store."""
        report = ingest_messages(sample_messages)

        assert report.total_in == 5
        assert report.classified == 4
        assert report.unparsed == 1
        assert report.parsed_out == 3
        assert report.discarded == 0
        assert report.duplicates == 0
        assert [t.sender for t in report.accepted] == ["GPAY", "HDFCBK", "HDFC"]
        assert report.errors_from_store == []

    def test_skips_non_inbox(self, make_message):
        """Test sent messages are not processed."""
        message = make_message(
            "HDFCBK",
            "Rs.500 debited from account ending 1234 at ZOMATO on 15-Jan-24",
            folder=MessageFolder.SENT,
        )

        report = ingest_messages([message])

        assert report.skipped == 1
        assert report.accepted == []

    def test_discards_invalid(self, make_message):
        """Test records without counterparty or above the cap are discarded."""
        messages = [
            make_message("HDFCBK", "Your HDFC account balance is Rs.5000"),
            make_message("VK-ALERTS", "₹2,000,000 paid to ZOMATO via UPI"),
        ]

        report = ingest_messages(messages)

        assert report.discarded == 2
        assert report.parsed_out == 0

    def test_custom_amount_cap(self, make_message):
        """Test the configured cap is applied."""
        message = make_message("VK-ALERTS", "₹600 paid to ZOMATO via UPI")

        report = ingest_messages([message], config=IngestionConfig(amount_cap=Decimal("500")))

        assert report.discarded == 1

    def test_s5_in_batch_duplicate(self, make_message, base_time):
        """Test a repeated payment within the window is counted once."""
        messages = [
            make_message("VK-ALERTS", "₹150 paid to ZOMATO via UPI Ref: B", received_at=base_time + 120_000),
            make_message("VK-ALERTS", "₹150 paid to ZOMATO via UPI Ref: A", received_at=base_time),
        ]

        report = ingest_messages(messages)

        assert report.parsed_out == 2
        assert report.duplicates == 1
        assert len(report.accepted) == 1
        assert report.accepted[0].date_time == base_time

    def test_store_duplicates_rejected(self, make_message, make_persisted, base_time):
        """Test transactions already stored are rejected with details."""
        store = InMemoryTransactionStore([make_persisted(amount="500", date_time=base_time + 60_000)])
        messages = [
            make_message("HDFCBK", "Rs.500 debited from account ending 1234 at ZOMATO on 15-Jan-24",
                         received_at=base_time),
            make_message("HDFC", "INR 2000 spent on AMAZON using HDFC Credit Card ending 5678",
                         received_at=base_time),
        ]

        report = ingest_messages(messages, store=store)

        assert report.duplicates == 1
        assert [t.merchant_name for t in report.rejected] == ["ZOMATO"]
        assert [t.merchant_name for t in report.accepted] == ["AMAZON"]
        assert report.details[0][1][0].merchant_name == "ZOMATO"

    def test_store_errors_recorded(self, sample_messages):
        """Test store failures are reported and processing continues."""
        report = ingest_messages(sample_messages, store=BrokenStore())

        assert len(report.errors_from_store) == 3
        assert "lookup failed" in report.errors_from_store[0]
        assert report.accepted == []

    def test_report_to_dict(self, sample_messages):
        """Test the report serializes."""
        data = ingest_messages(sample_messages).to_dict()

        assert data["total_in"] == 5
        assert data["accepted"][1]["merchant_name"] == "ZOMATO"
        assert data["accepted"][1]["payment_method"] == "Debit Card"

    def test_high_confidence_count(self, sample_messages):
        """Test the configured threshold decides which records count as high confidence."""
        default = ingest_messages(sample_messages)
        strict = ingest_messages(
            sample_messages,
            config=IngestionConfig(high_confidence_threshold=0.95),
        )

        assert default.high_confidence_count == 3
        assert strict.high_confidence_count == 1
        assert strict.to_dict()["high_confidence_count"] == 1

    def test_empty_batch(self):
        """Test an empty batch."""
        report = ingest_messages([])
        assert report.total_in == 0
        assert report.accepted == []

    def test_cancellation(self, sample_messages):
        """Test a set cancel event stops the run."""
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(IngestionCancelled) as exc_info:
            ingest_messages(sample_messages, cancel_event=cancel_event)

        assert exc_info.value.processed == 0


class TestIterParsed:
    """Tests for the lazy parser."""

    def test_yields_valid_transactions(self, sample_messages):
        """Test only valid transactions are yielded."""
        parsed = list(iter_parsed(sample_messages))
        assert [p.sender for p in parsed] == ["GPAY", "HDFCBK", "HDFC"]

    def test_lazy(self, sample_messages):
        """Test the generator parses on demand."""
        iterator = iter_parsed(sample_messages)
        assert next(iterator).sender == "GPAY"

    def test_amount_cap_applied(self, make_message):
        """Test records above the cap are not yielded, matching ingest_messages."""
        messages = [
            make_message("HDFCBK", "Rs.5000000 debited from account ending 1234 at ZOMATO on 15-Jan-24"),
        ]

        assert list(iter_parsed(messages)) == []
        assert ingest_messages(messages).discarded == 1

    def test_custom_amount_cap(self, sample_messages):
        """Test the configured cap is used."""
        parsed = list(iter_parsed(sample_messages, config=IngestionConfig(amount_cap=Decimal("400"))))
        assert [p.sender for p in parsed] == ["GPAY"]

    def test_cancelled_midway(self, sample_messages):
        """Test cancellation between messages."""
        cancel_event = threading.Event()
        iterator = iter_parsed(sample_messages, cancel_event=cancel_event)

        next(iterator)
        cancel_event.set()

        with pytest.raises(IngestionCancelled):
            next(iterator)


class TestParseValidated:
    """Tests for single-message parsing with validation."""

    def test_valid_message(self, make_message):
        """Test a bank debit is parsed."""
        message = make_message("HDFCBK", "Rs.500 debited from account ending 1234 at ZOMATO on 15-Jan-24")

        parsed = parse_validated(message)

        assert parsed.amount == Decimal("500")
        assert parsed.merchant_name == "ZOMATO"

    def test_above_cap(self, make_message):
        """Test a record above the cap is rejected."""
        message = make_message("HDFCBK", "Rs.500 debited from account ending 1234 at ZOMATO on 15-Jan-24")
        assert parse_validated(message, IngestionConfig(amount_cap=Decimal("499"))) is None

    def test_not_a_transaction(self, make_message):
        """Test a personal message yields None."""
        assert parse_validated(make_message("+919812345678", "See you at 5?")) is None

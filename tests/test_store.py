"""
Transaction Store Tests

Tests for the in-memory and SQLAlchemy-backed stores.
"""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from sms_ingest.errors import StoreAccessError
from sms_ingest.store import InMemoryTransactionStore, SqlTransactionStore


@pytest.fixture
def sql_store():
    """SQL store on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = SqlTransactionStore(engine)
    store.create_schema()
    yield store
    engine.dispose()


class TestInMemoryStore:
    """Tests for InMemoryTransactionStore."""

    def test_insert_assigns_ids(self, make_parsed):
        """Test ids increase from one."""
        store = InMemoryTransactionStore()

        ids = store.batch_insert([make_parsed(), make_parsed(merchant_name="SWIGGY")])

        assert ids == [1, 2]
        assert len(store) == 2
        assert store.all()[1].merchant_name == "SWIGGY"
        assert store.all()[0].payment_method == "UPI"

    def test_ids_continue_after_existing(self, make_persisted, make_parsed):
        """Test new ids follow the highest existing one."""
        store = InMemoryTransactionStore([make_persisted(), make_persisted()])
        assert store.insert(make_parsed()) == 3

    def test_find_by_merchant(self, make_persisted, base_time):
        """Test lookup matches amount, merchant and window."""
        existing = make_persisted(date_time=base_time)
        store = InMemoryTransactionStore([existing])

        assert store.find_potential_duplicate(Decimal("150"), None, "ZOMATO", base_time + 1000, 300_000) == existing
        assert store.find_potential_duplicate(Decimal("150"), None, "SWIGGY", base_time, 300_000) is None
        assert store.find_potential_duplicate(Decimal("151"), None, "ZOMATO", base_time, 300_000) is None
        assert store.find_potential_duplicate(Decimal("150"), None, "ZOMATO", base_time + 300_001, 300_000) is None

    def test_find_by_recipient(self, make_persisted, base_time):
        """Test lookup by recipient."""
        existing = make_persisted(merchant_name=None, recipient="user@ybl", date_time=base_time)
        store = InMemoryTransactionStore([existing])

        assert store.find_potential_duplicate(Decimal("150"), "user@ybl", None, base_time, 300_000) == existing
        assert store.find_potential_duplicate(Decimal("150"), None, None, base_time, 300_000) is None


class TestSqlStore:
    """Tests for SqlTransactionStore on SQLite."""

    def test_insert_and_list(self, sql_store, make_parsed, base_time):
        """Test inserted transactions are listed newest first."""
        ids = sql_store.batch_insert([
            make_parsed(date_time=base_time),
            make_parsed(merchant_name="SWIGGY", amount="99.50", date_time=base_time + 10),
        ])

        rows = sql_store.list_transactions()

        assert len(ids) == 2
        assert [r.merchant_name for r in rows] == ["SWIGGY", "ZOMATO"]
        assert rows[0].amount == Decimal("99.5")
        assert rows[0].date_time == base_time + 10
        assert rows[0].categorized is False

    def test_insert_single(self, sql_store, make_parsed):
        """Test insert returns the new row id."""
        first = sql_store.insert(make_parsed())
        second = sql_store.insert(make_parsed(merchant_name="SWIGGY"))
        assert second == first + 1

    def test_empty_batch(self, sql_store):
        """Test inserting nothing."""
        assert sql_store.batch_insert([]) == []

    def test_find_potential_duplicate(self, sql_store, make_parsed, base_time):
        """Test the duplicate query honours amount, counterparty and window."""
        sql_store.insert(make_parsed(date_time=base_time, transaction_id="REF12345678"))

        match = sql_store.find_potential_duplicate(Decimal("150"), None, "ZOMATO", base_time + 60_000, 300_000)

        assert match is not None
        assert match.merchant_name == "ZOMATO"
        assert match.transaction_id == "REF12345678"
        assert match.amount == Decimal("150")
        assert sql_store.find_potential_duplicate(Decimal("150"), None, "SWIGGY", base_time, 300_000) is None
        assert sql_store.find_potential_duplicate(Decimal("150.02"), None, "ZOMATO", base_time, 300_000) is None
        assert sql_store.find_potential_duplicate(Decimal("150"), None, "ZOMATO", base_time + 400_000, 300_000) is None

    def test_find_by_recipient(self, sql_store, make_parsed, base_time):
        """Test the duplicate query matches on recipient."""
        sql_store.insert(make_parsed(merchant_name=None, recipient="9876543210", date_time=base_time))

        match = sql_store.find_potential_duplicate(Decimal("150"), "9876543210", None, base_time, 300_000)

        assert match is not None
        assert match.recipient == "9876543210"

    def test_insert_failure_wrapped(self, make_parsed):
        """Test database errors surface as StoreAccessError."""
        engine = create_engine("sqlite://", poolclass=StaticPool)
        store = SqlTransactionStore(engine)  # schema never created

        with pytest.raises(StoreAccessError) as exc_info:
            store.insert(make_parsed())

        assert exc_info.value.operation == "batch_insert"

    def test_get_transaction(self, sql_store, make_parsed):
        """Test lookup by id."""
        transaction_id = sql_store.insert(make_parsed())

        assert sql_store.get_transaction(transaction_id).merchant_name == "ZOMATO"
        assert sql_store.get_transaction(transaction_id + 100) is None


class TestSqlCategorization:
    """Tests for assigning categories to stored transactions."""

    def test_categorize(self, sql_store, make_parsed):
        """Test one transaction gets a category and a note."""
        transaction_id = sql_store.insert(make_parsed())

        updated = sql_store.categorize(transaction_id, "Food & Dining", notes="team lunch")
        stored = sql_store.get_transaction(transaction_id)

        assert updated == 1
        assert stored.category == "Food & Dining"
        assert stored.categorized is True
        assert stored.notes == "team lunch"

    def test_categorize_unknown_id(self, sql_store):
        """Test an unknown id updates nothing."""
        assert sql_store.categorize(999, "Shopping") == 0

    @pytest.mark.parametrize("category", ["Crypto", "", "   "])
    def test_categorize_rejects_non_default(self, sql_store, make_parsed, category):
        """Test only default categories can be assigned."""
        transaction_id = sql_store.insert(make_parsed())

        with pytest.raises(ValueError):
            sql_store.categorize(transaction_id, category)

        assert sql_store.get_transaction(transaction_id).categorized is False

    def test_categorize_many(self, sql_store, make_parsed):
        """Test several transactions share one category."""
        ids = sql_store.batch_insert([
            make_parsed(),
            make_parsed(merchant_name="SWIGGY"),
            make_parsed(merchant_name="UBER"),
        ])

        updated = sql_store.categorize_many(ids[:2], "Food & Dining")

        assert updated == 2
        assert [sql_store.get_transaction(i).category for i in ids] == [
            "Food & Dining", "Food & Dining", None,
        ]

    def test_categorize_many_empty(self, sql_store):
        """Test an empty id list updates nothing."""
        assert sql_store.categorize_many([], "Other") == 0

    def test_uncategorize(self, sql_store, make_parsed):
        """Test removing a category clears it and the note."""
        transaction_id = sql_store.insert(make_parsed())
        sql_store.categorize(transaction_id, "Shopping", notes="gift")

        updated = sql_store.uncategorize(transaction_id)
        stored = sql_store.get_transaction(transaction_id)

        assert updated == 1
        assert stored.category is None
        assert stored.categorized is False
        assert stored.notes is None

    def test_update_failure_wrapped(self):
        """Test database errors surface as StoreAccessError."""
        engine = create_engine("sqlite://", poolclass=StaticPool)
        store = SqlTransactionStore(engine)  # schema never created

        with pytest.raises(StoreAccessError) as exc_info:
            store.uncategorize(1)

        assert exc_info.value.operation == "uncategorize"


class TestSqlSpendingQueries:
    """Tests for category and monthly spending queries."""

    def test_category_spending(self, sql_store, make_parsed, base_time):
        """Test categorized totals in range, largest first."""
        ids = sql_store.batch_insert([
            make_parsed(amount="150", date_time=base_time),
            make_parsed(amount="350", merchant_name="SWIGGY", date_time=base_time + 1_000),
            make_parsed(amount="2000", merchant_name="AMAZON", date_time=base_time + 2_000),
            make_parsed(amount="80", merchant_name="UBER", date_time=base_time + 3_000),
            make_parsed(amount="999", merchant_name="FLIPKART", date_time=base_time + 10_000_000),
        ])
        sql_store.categorize_many(ids[:2], "Food & Dining")
        sql_store.categorize(ids[2], "Shopping")
        sql_store.categorize(ids[4], "Shopping")

        spending = sql_store.category_spending(base_time, base_time + 5_000)

        assert list(spending) == ["Shopping", "Food & Dining"]
        assert spending["Shopping"] == Decimal("2000")
        assert spending["Food & Dining"] == Decimal("500")

    def test_monthly_summary(self, sql_store, make_parsed, base_time):
        """Test the summary covers only the requested month."""
        ids = sql_store.batch_insert([
            make_parsed(amount="150", date_time=base_time),
            make_parsed(amount="350", merchant_name="SWIGGY", date_time=base_time + 1_000),
            make_parsed(amount="500", date_time=base_time - 40 * 86_400_000),
        ])
        sql_store.categorize(ids[0], "Food & Dining")

        summary = sql_store.monthly_summary(2024, 1)

        assert summary.total_transactions == 2
        assert summary.total_spent == Decimal("500")
        assert summary.categorized_transactions == 1
        assert summary.category_breakdown["Food & Dining"].total_amount == Decimal("150")
        assert [d.day for d in summary.daily_spending] == [15]


class TestPersistedSerialization:
    """Tests for serializing stored transactions."""

    def test_to_dict_formats_amount(self, sql_store, make_parsed):
        """Test the stored record reports a rupee-formatted amount."""
        transaction_id = sql_store.insert(make_parsed(amount="150"))

        data = sql_store.get_transaction(transaction_id).to_dict()

        assert data["formatted_amount"] == "₹150.00"
        assert data["notes"] is None

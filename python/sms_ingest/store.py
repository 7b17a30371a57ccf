"""
Transaction Stores

The duplicate checker needs a single point query against stored
transactions; the import flow also inserts accepted ones. Two stores are
provided: an in-memory one over a list, and one backed by SQLAlchemy.
"""

import logging
import time
from decimal import Decimal
from typing import Protocol

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    bindparam,
    text,
)
from sqlalchemy.engine import Engine

from .analytics import CENTS, MonthlySpendingSummary, month_bounds_ms, summarize_month
from .errors import StoreAccessError
from .models import ParsedTransaction, PersistedTransaction
from .validators import validate_category_assignment

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")


def current_time_millis() -> int:
    return int(time.time() * 1000)


class TransactionStore(Protocol):
    """Operations the ingestion core needs from a transaction store."""

    def find_potential_duplicate(
        self,
        amount: Decimal,
        recipient: str | None,
        merchant_name: str | None,
        date_time_millis: int,
        window_ms: int,
    ) -> PersistedTransaction | None:
        ...

    def insert(self, parsed: ParsedTransaction) -> int:
        ...

    def batch_insert(self, transactions: list[ParsedTransaction]) -> list[int]:
        ...


class InMemoryTransactionStore:
    """Store over a plain list of persisted transactions."""

    def __init__(self, transactions: list[PersistedTransaction] | None = None):
        self._transactions: list[PersistedTransaction] = list(transactions or [])
        self._next_id = max((t.id for t in self._transactions), default=0) + 1

    def __len__(self) -> int:
        return len(self._transactions)

    def all(self) -> list[PersistedTransaction]:
        return list(self._transactions)

    def find_potential_duplicate(
        self,
        amount: Decimal,
        recipient: str | None,
        merchant_name: str | None,
        date_time_millis: int,
        window_ms: int,
    ) -> PersistedTransaction | None:
        for existing in self._transactions:
            if abs(existing.amount - Decimal(amount)) >= AMOUNT_TOLERANCE:
                continue
            if abs(existing.date_time - date_time_millis) > window_ms:
                continue
            same_recipient = recipient is not None and existing.recipient == recipient
            same_merchant = merchant_name is not None and existing.merchant_name == merchant_name
            if same_recipient or same_merchant:
                return existing
        return None

    def insert(self, parsed: ParsedTransaction) -> int:
        now = current_time_millis()
        record = PersistedTransaction(
            id=self._next_id,
            amount=parsed.amount,
            recipient=parsed.recipient,
            merchant_name=parsed.merchant_name,
            date_time=parsed.date_time,
            transaction_id=parsed.transaction_id,
            payment_method=parsed.payment_method.value,
            sms_content=parsed.sms_content,
            created_at=now,
            updated_at=now,
        )
        self._transactions.append(record)
        self._next_id += 1
        return record.id

    def batch_insert(self, transactions: list[ParsedTransaction]) -> list[int]:
        return [self.insert(parsed) for parsed in transactions]


metadata = MetaData()

transactions_table = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("recipient", String(255)),
    Column("merchant_name", String(255)),
    Column("date_time", BigInteger, nullable=False, index=True),  # epoch ms
    Column("transaction_id", String(50)),
    Column("payment_method", String(50), nullable=False),
    Column("sms_content", Text, nullable=False),
    Column("category", String(100)),
    Column("categorized", Boolean, nullable=False, default=False),
    Column("notes", Text),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
)

FIND_POTENTIAL_DUPLICATE_SQL = """
    SELECT * FROM transactions
    WHERE ABS(amount - :amount) < :tolerance
      AND (recipient = :recipient OR merchant_name = :merchant_name)
      AND ABS(date_time - :date_time) <= :window_ms
    ORDER BY ABS(date_time - :date_time)
    LIMIT 1
"""

CATEGORIZE_SQL = """
    UPDATE transactions
    SET category = :category,
        notes = :notes,
        categorized = :categorized,
        updated_at = :updated_at
    WHERE id = :id
"""

CATEGORIZE_MANY_SQL = """
    UPDATE transactions
    SET category = :category,
        categorized = :categorized,
        updated_at = :updated_at
    WHERE id IN :ids
"""

UNCATEGORIZE_SQL = """
    UPDATE transactions
    SET category = NULL,
        notes = NULL,
        categorized = :categorized,
        updated_at = :updated_at
    WHERE id = :id
"""

CATEGORY_SPENDING_SQL = """
    SELECT category, SUM(amount) AS total_amount
    FROM transactions
    WHERE categorized = :categorized
      AND date_time BETWEEN :start_ms AND :end_ms
    GROUP BY category
    ORDER BY total_amount DESC
"""


def _check_category(category: str) -> None:
    validation = validate_category_assignment(category)
    if not validation.is_valid:
        raise ValueError("; ".join(validation.errors))


def _row_to_persisted(row: dict) -> PersistedTransaction:
    return PersistedTransaction(
        id=row["id"],
        amount=Decimal(str(row["amount"])),
        recipient=row["recipient"],
        merchant_name=row["merchant_name"],
        date_time=int(row["date_time"]),
        transaction_id=row["transaction_id"],
        payment_method=row["payment_method"],
        sms_content=row["sms_content"],
        category=row["category"],
        categorized=bool(row["categorized"]),
        notes=row["notes"],
        created_at=int(row["created_at"]),
        updated_at=int(row["updated_at"]),
    )


class SqlTransactionStore:
    """Transaction store backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self) -> None:
        """Create the transactions table if it does not exist."""
        metadata.create_all(self.engine)

    def find_potential_duplicate(
        self,
        amount: Decimal,
        recipient: str | None,
        merchant_name: str | None,
        date_time_millis: int,
        window_ms: int,
    ) -> PersistedTransaction | None:
        params = {
            "amount": float(amount),
            "tolerance": float(AMOUNT_TOLERANCE),
            "recipient": recipient,
            "merchant_name": merchant_name,
            "date_time": int(date_time_millis),
            "window_ms": int(window_ms),
        }
        with self.engine.connect() as conn:
            row = conn.execute(text(FIND_POTENTIAL_DUPLICATE_SQL), params).mappings().first()

        return _row_to_persisted(dict(row)) if row else None

    def insert(self, parsed: ParsedTransaction) -> int:
        return self.batch_insert([parsed])[0]

    def batch_insert(self, transactions: list[ParsedTransaction]) -> list[int]:
        """Insert parsed transactions in one database transaction.

        Args:
            transactions: Validated parsed transactions

        Returns:
            Ids of the inserted rows, in input order
        """
        if not transactions:
            return []

        now = current_time_millis()
        ids = []
        try:
            with self.engine.begin() as conn:
                for parsed in transactions:
                    result = conn.execute(
                        transactions_table.insert().values(
                            amount=parsed.amount,
                            recipient=parsed.recipient,
                            merchant_name=parsed.merchant_name,
                            date_time=parsed.date_time,
                            transaction_id=parsed.transaction_id,
                            payment_method=parsed.payment_method.value,
                            sms_content=parsed.sms_content,
                            categorized=False,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    ids.append(result.inserted_primary_key[0])
        except Exception as e:
            raise StoreAccessError("batch_insert", e) from e

        logger.info(f"Inserted {len(ids)} transaction(s)")
        return ids

    def list_transactions(self, limit: int = 100) -> list[PersistedTransaction]:
        """Return the most recent stored transactions."""
        query = "SELECT * FROM transactions ORDER BY date_time DESC LIMIT :limit"
        with self.engine.connect() as conn:
            rows = conn.execute(text(query), {"limit": limit}).mappings().all()
        return [_row_to_persisted(dict(row)) for row in rows]

    def get_transaction(self, transaction_id: int) -> PersistedTransaction | None:
        query = "SELECT * FROM transactions WHERE id = :id"
        with self.engine.connect() as conn:
            row = conn.execute(text(query), {"id": transaction_id}).mappings().first()
        return _row_to_persisted(dict(row)) if row else None

    def _update(self, operation: str, statement, params: dict) -> int:
        try:
            with self.engine.begin() as conn:
                return conn.execute(statement, params).rowcount
        except Exception as e:
            raise StoreAccessError(operation, e) from e

    def categorize(self, transaction_id: int, category: str, notes: str | None = None) -> int:
        """Assign a default category to one transaction.

        Args:
            transaction_id: Id of the stored transaction
            category: Name of a default category
            notes: Optional free-text note

        Returns:
            Number of rows updated, 0 if the id is unknown

        Raises:
            ValueError: If the category is not a default category
        """
        _check_category(category)
        updated = self._update("categorize", text(CATEGORIZE_SQL), {
            "id": transaction_id,
            "category": category,
            "notes": notes,
            "categorized": True,
            "updated_at": current_time_millis(),
        })
        logger.debug(f"Categorized transaction {transaction_id} as {category}")
        return updated

    def categorize_many(self, transaction_ids: list[int], category: str) -> int:
        """Assign one default category to several transactions."""
        _check_category(category)
        if not transaction_ids:
            return 0

        statement = text(CATEGORIZE_MANY_SQL).bindparams(bindparam("ids", expanding=True))
        updated = self._update("categorize_many", statement, {
            "ids": list(transaction_ids),
            "category": category,
            "categorized": True,
            "updated_at": current_time_millis(),
        })
        logger.info(f"Categorized {updated} transaction(s) as {category}")
        return updated

    def uncategorize(self, transaction_id: int) -> int:
        """Remove the category and note from one transaction."""
        return self._update("uncategorize", text(UNCATEGORIZE_SQL), {
            "id": transaction_id,
            "categorized": False,
            "updated_at": current_time_millis(),
        })

    def transactions_between(self, start_ms: int, end_ms: int) -> list[PersistedTransaction]:
        """Return transactions with start_ms <= date_time <= end_ms, oldest first."""
        query = """
            SELECT * FROM transactions
            WHERE date_time BETWEEN :start_ms AND :end_ms
            ORDER BY date_time
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(query), {"start_ms": int(start_ms), "end_ms": int(end_ms)}
            ).mappings().all()
        return [_row_to_persisted(dict(row)) for row in rows]

    def category_spending(self, start_ms: int, end_ms: int) -> dict[str, Decimal]:
        """Total categorized spending per category in a time range, largest first."""
        params = {
            "start_ms": int(start_ms),
            "end_ms": int(end_ms),
            "categorized": True,
        }
        with self.engine.connect() as conn:
            rows = conn.execute(text(CATEGORY_SPENDING_SQL), params).mappings().all()
        return {
            row["category"]: Decimal(str(row["total_amount"])).quantize(CENTS)
            for row in rows
        }

    def monthly_summary(self, year: int, month: int) -> MonthlySpendingSummary:
        """Build the spending summary for one UTC calendar month."""
        start_ms, end_ms = month_bounds_ms(year, month)
        return summarize_month(self.transactions_between(start_ms, end_ms), year, month)

"""
Transactions API Routes

Provides endpoints for viewing, categorizing and summarizing stored
transactions.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from sms_ingest.analytics import month_bounds_ms
from sms_ingest.errors import StoreAccessError
from sms_ingest.store import SqlTransactionStore
from sms_ingest.validators import validate_category_assignment

from ..database import get_store

router = APIRouter(prefix="/transactions", tags=["transactions"])


class TransactionOut(BaseModel):
    """Stored transaction."""

    id: int
    amount: float
    recipient: str | None
    merchant_name: str | None
    date_time: int
    transaction_id: str | None
    payment_method: str
    category: str | None
    categorized: bool
    notes: str | None
    description: str
    formatted_amount: str


class CategorizeRequest(BaseModel):
    """Category assignment for one transaction."""

    category: str
    notes: str | None = None


class BulkCategorizeRequest(BaseModel):
    """Category assignment for several transactions."""

    transaction_ids: list[int] = Field(default_factory=list)
    category: str


class CategorizeResponse(BaseModel):
    """Result of a categorization."""

    transactions_affected: int


class CategorySpendingOut(BaseModel):
    """Spending in one category."""

    category_name: str
    total_amount: float
    transaction_count: int
    average_amount: float
    percentage: float


class DailySpendingOut(BaseModel):
    """Spending on one day."""

    day: int
    total_amount: float
    transaction_count: int


class MonthlySummaryOut(BaseModel):
    """Monthly spending summary."""

    year: int
    month: int
    total_spent: float
    total_transactions: int
    categorized_transactions: int
    uncategorized_transactions: int
    categorization_rate: float
    category_breakdown: dict[str, CategorySpendingOut]
    daily_spending: list[DailySpendingOut]
    average_daily_spending: float
    highest_spending_day: DailySpendingOut | None
    most_used_payment_method: str | None
    top_merchant: str | None


def _check_category(category: str) -> None:
    validation = validate_category_assignment(category)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail="; ".join(validation.errors))


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    limit: int = Query(100, ge=1, le=1000),
    store: SqlTransactionStore = Depends(get_store),
) -> list[TransactionOut]:
    """List the most recent stored transactions."""
    return [TransactionOut(**t.to_dict()) for t in store.list_transactions(limit)]


@router.get("/summary/monthly", response_model=MonthlySummaryOut)
def get_monthly_summary(
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    store: SqlTransactionStore = Depends(get_store),
) -> MonthlySummaryOut:
    """Get the spending summary for one calendar month.

    Args:
        year: Calendar year
        month: Calendar month
        store: Transaction store

    Returns:
        Monthly spending summary
    """
    return MonthlySummaryOut(**store.monthly_summary(year, month).to_dict())


@router.get("/summary/categories", response_model=dict[str, float])
def get_category_spending(
    start_ms: int | None = Query(None),
    end_ms: int | None = Query(None),
    year: int | None = Query(None, ge=1970),
    month: int | None = Query(None, ge=1, le=12),
    store: SqlTransactionStore = Depends(get_store),
) -> dict[str, float]:
    """Get categorized spending per category.

    The range is either start_ms..end_ms (inclusive) or a calendar month.

    Args:
        start_ms: Range start, epoch ms
        end_ms: Range end, epoch ms
        year: Calendar year, used with month
        month: Calendar month, used with year
        store: Transaction store

    Returns:
        Category name to total amount, largest first
    """
    if year is not None and month is not None:
        start_ms, end_ms = month_bounds_ms(year, month)
    elif start_ms is None or end_ms is None:
        raise HTTPException(status_code=400, detail="Provide start_ms and end_ms, or year and month")

    spending = store.category_spending(start_ms, end_ms)
    return {category: float(total) for category, total in spending.items()}


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    store: SqlTransactionStore = Depends(get_store),
) -> TransactionOut:
    """Get a single transaction by id."""
    transaction = store.get_transaction(transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionOut(**transaction.to_dict())


@router.put("/category", response_model=CategorizeResponse)
def categorize_transactions(
    request: BulkCategorizeRequest,
    store: SqlTransactionStore = Depends(get_store),
) -> CategorizeResponse:
    """Assign one default category to several transactions.

    Args:
        request: Transaction ids and category
        store: Transaction store

    Returns:
        Number of transactions updated
    """
    _check_category(request.category)
    try:
        updated = store.categorize_many(request.transaction_ids, request.category)
    except StoreAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return CategorizeResponse(transactions_affected=updated)


@router.put("/{transaction_id}/category", response_model=CategorizeResponse)
def categorize_transaction(
    transaction_id: int,
    request: CategorizeRequest,
    store: SqlTransactionStore = Depends(get_store),
) -> CategorizeResponse:
    """Assign a default category to one transaction.

    Args:
        transaction_id: Transaction id
        request: Category and optional note
        store: Transaction store

    Returns:
        Number of transactions updated
    """
    _check_category(request.category)
    try:
        updated = store.categorize(transaction_id, request.category, request.notes)
    except StoreAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if updated == 0:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return CategorizeResponse(transactions_affected=updated)


@router.delete("/{transaction_id}/category", response_model=CategorizeResponse)
def uncategorize_transaction(
    transaction_id: int,
    store: SqlTransactionStore = Depends(get_store),
) -> CategorizeResponse:
    """Remove the category from one transaction."""
    try:
        updated = store.uncategorize(transaction_id)
    except StoreAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if updated == 0:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return CategorizeResponse(transactions_affected=updated)

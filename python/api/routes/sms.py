"""
SMS API Routes

Endpoints for classifying, parsing and importing financial SMS.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from sms_ingest.classifier import is_transaction_message
from sms_ingest.config import IngestionConfig
from sms_ingest.errors import StoreAccessError
from sms_ingest.models import MessageFolder, RawMessage
from sms_ingest.pipeline import ingest_messages, parse_validated
from sms_ingest.sources import message_from_callback
from sms_ingest.store import SqlTransactionStore

from ..database import get_config, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sms", tags=["sms"])


class MessageIn(BaseModel):
    """A single SMS as submitted by a client."""

    id: int | None = None
    sender: str
    body: str
    received_at: int | None = None  # epoch ms, defaults to now
    folder: int = MessageFolder.INBOX.value
    read_flag: int = 0

    def to_raw_message(self) -> RawMessage:
        message = message_from_callback(self.sender, self.body, self.received_at)
        return RawMessage(
            id=self.id if self.id is not None else message.id,
            sender=message.sender,
            body=message.body,
            received_at=message.received_at,
            folder=MessageFolder(self.folder),
            read_flag=self.read_flag,
        )


class ClassifyResponse(BaseModel):
    """Classification result."""

    is_transaction: bool


class ParsedTransactionOut(BaseModel):
    """Parsed transaction."""

    amount: float
    recipient: str | None
    merchant_name: str | None
    transaction_id: str | None
    payment_method: str
    date_time: int
    sms_content: str
    sender: str
    confidence: float


class ParseResponse(BaseModel):
    """Parse result; transaction is null when nothing was extracted."""

    transaction: ParsedTransactionOut | None


class ImportRequest(BaseModel):
    """Batch of messages to import."""

    messages: list[MessageIn] = Field(default_factory=list)


class ImportResponse(BaseModel):
    """Summary of an import run."""

    total_in: int
    skipped: int
    classified: int
    unparsed: int
    parsed_out: int
    discarded: int
    duplicates: int
    high_confidence_count: int
    inserted_ids: list[int]
    accepted: list[ParsedTransactionOut]
    rejected: list[ParsedTransactionOut]
    errors_from_store: list[str]


def _to_raw(message: MessageIn) -> RawMessage:
    try:
        return message.to_raw_message()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/classify", response_model=ClassifyResponse)
async def classify_message(message: MessageIn) -> ClassifyResponse:
    """Check whether a message is a financial transaction."""
    return ClassifyResponse(is_transaction=is_transaction_message(_to_raw(message)))


@router.post("/parse", response_model=ParseResponse)
async def parse_sms(
    message: MessageIn,
    config: IngestionConfig = Depends(get_config),
) -> ParseResponse:
    """Classify, extract and validate a single message.

    Args:
        message: Message to parse
        config: Ingestion configuration

    Returns:
        The parsed transaction, or null
    """
    parsed = parse_validated(_to_raw(message), config)
    if parsed is None:
        return ParseResponse(transaction=None)
    return ParseResponse(transaction=ParsedTransactionOut(**parsed.to_dict()))


@router.post("/import", response_model=ImportResponse)
def import_messages(
    request: ImportRequest,
    store: SqlTransactionStore = Depends(get_store),
    config: IngestionConfig = Depends(get_config),
) -> ImportResponse:
    """Run a batch through the pipeline and store the accepted transactions.

    Args:
        request: Messages to import
        store: Transaction store
        config: Ingestion configuration

    Returns:
        Import summary with the ids of the inserted rows
    """
    raw_messages = [_to_raw(m) for m in request.messages]
    report = ingest_messages(raw_messages, store=store, config=config)

    try:
        inserted_ids = store.batch_insert(report.accepted)
    except StoreAccessError as e:
        logger.error(f"Import failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    data = report.to_dict()
    return ImportResponse(
        total_in=data["total_in"],
        skipped=data["skipped"],
        classified=data["classified"],
        unparsed=data["unparsed"],
        parsed_out=data["parsed_out"],
        discarded=data["discarded"],
        duplicates=data["duplicates"],
        high_confidence_count=data["high_confidence_count"],
        inserted_ids=inserted_ids,
        accepted=[ParsedTransactionOut(**t) for t in data["accepted"]],
        rejected=[ParsedTransactionOut(**t) for t in data["rejected"]],
        errors_from_store=data["errors_from_store"],
    )

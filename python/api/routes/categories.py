"""
Categories API Routes

Exposes the fixed default category set.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from sms_ingest.validators import DEFAULT_CATEGORIES

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryOut(BaseModel):
    """Category model."""

    name: str
    color: str
    icon: str
    is_default: bool


@router.get("", response_model=list[CategoryOut])
async def list_categories() -> list[CategoryOut]:
    """List the default categories."""
    return [CategoryOut(**category.to_dict()) for category in DEFAULT_CATEGORIES]

"""
Validation Gates

Checks applied to parsed transactions before they are stored, and the
default category set with the rules guarding it.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal

from .models import ParsedTransaction, PaymentMethod

DEFAULT_AMOUNT_CAP = Decimal("1000000")

CATEGORY_NAME_MIN_LENGTH = 1
CATEGORY_NAME_MAX_LENGTH = 50

HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


@dataclass
class ValidationResult:
    """Outcome of a validation check."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=errors)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": self.errors}


@dataclass(frozen=True)
class Category:
    """Spending category assigned to a stored transaction."""

    name: str
    color: str
    icon: str
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "is_default": self.is_default,
        }


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category("Food & Dining", "#FF5722", "restaurant", is_default=True),
    Category("Transportation", "#2196F3", "directions_car", is_default=True),
    Category("Shopping", "#E91E63", "shopping_bag", is_default=True),
    Category("Entertainment", "#9C27B0", "movie", is_default=True),
    Category("Bills & Utilities", "#FF9800", "receipt", is_default=True),
    Category("Health & Medical", "#4CAF50", "local_hospital", is_default=True),
    Category("Education", "#3F51B5", "school", is_default=True),
    Category("Personal Care", "#00BCD4", "face", is_default=True),
    Category("Other", "#607D8B", "category", is_default=True),
)


def default_category_names() -> list[str]:
    return [category.name for category in DEFAULT_CATEGORIES]


def get_default_category(name: str) -> Category | None:
    for category in DEFAULT_CATEGORIES:
        if category.name == name:
            return category
    return None


def is_default_category(name: str) -> bool:
    return name in default_category_names()


# Transaction checks

def validate_transaction(
    transaction: ParsedTransaction,
    amount_cap: Decimal = DEFAULT_AMOUNT_CAP
) -> ValidationResult:
    """Check a parsed transaction is fit to be stored.

    Args:
        transaction: Parsed transaction
        amount_cap: Largest amount accepted

    Returns:
        ValidationResult listing every failed rule
    """
    errors = []

    if transaction.amount <= 0:
        errors.append("Amount must be greater than zero")
    if transaction.amount > amount_cap:
        errors.append("Amount seems unusually high")

    if not isinstance(transaction.payment_method, PaymentMethod):
        errors.append("Payment method is required")

    if not transaction.sms_content or not transaction.sms_content.strip():
        errors.append("SMS content is required")

    if not (transaction.recipient or "").strip() and not (transaction.merchant_name or "").strip():
        errors.append("Either recipient or merchant name is required")

    return ValidationResult.from_errors(errors)


def is_amount_reasonable(amount, amount_cap: Decimal = DEFAULT_AMOUNT_CAP) -> bool:
    amount = Decimal(str(amount))
    return 0 < amount <= amount_cap


def is_valid_payment_method(payment_method: str) -> bool:
    return payment_method in {method.value for method in PaymentMethod}


def is_valid_category(category: str | None) -> bool:
    """Uncategorized (None or blank) is valid; otherwise it must be a default."""
    if category is None or not category.strip():
        return True
    return is_default_category(category)


def validate_category_assignment(category: str | None) -> ValidationResult:
    """Check a category can be assigned to a transaction."""
    if category is None or not category.strip():
        return ValidationResult.from_errors(["Category is required"])
    if not is_valid_category(category):
        return ValidationResult.from_errors([f"Invalid category: {category}"])
    return ValidationResult.from_errors([])


# Category checks

def is_valid_color(color: str) -> bool:
    return bool(HEX_COLOR.fullmatch(color))


def _name_errors(name: str) -> list[str]:
    if not name.strip():
        return ["Category name cannot be empty"]
    if len(name) < CATEGORY_NAME_MIN_LENGTH:
        return ["Category name is too short"]
    if len(name) > CATEGORY_NAME_MAX_LENGTH:
        return [f"Category name is too long (max {CATEGORY_NAME_MAX_LENGTH} characters)"]
    return []


def validate_category_name(name: str, existing_names: list[str] | None = None) -> ValidationResult:
    errors = _name_errors(name)
    if not errors and name in (existing_names or []):
        errors.append("Category name already exists")
    return ValidationResult.from_errors(errors)


def validate_category(category: Category) -> ValidationResult:
    errors = _name_errors(category.name)
    if not is_valid_color(category.color):
        errors.append("Invalid color format. Use hex format like #FF5722")
    return ValidationResult.from_errors(errors)


def can_delete_category(category: Category, has_transactions: bool = False) -> ValidationResult:
    errors = []
    if category.is_default:
        errors.append("Cannot delete default categories")
    if has_transactions:
        errors.append(
            "Cannot delete category that has transactions. Please recategorize transactions first."
        )
    return ValidationResult.from_errors(errors)


def can_edit_category(category: Category) -> ValidationResult:
    if category.is_default:
        return ValidationResult.from_errors(["Cannot edit default categories"])
    return ValidationResult.from_errors([])

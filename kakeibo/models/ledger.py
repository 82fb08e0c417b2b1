"""
Core Data Models for the Kakeibo client

These models define the schemas for everything crossing the network
boundary and everything the views read. They are designed to:
1. Reject malformed server payloads at the edge
2. Keep drafts in a shape the server accepts as-is
3. Be cheap to compare in tests (plain values, frozen where shared)

DESIGN DECISION: Amounts are plain ints. The currency is yen, which has
no minor unit, so Decimal would only add noise.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)


# Shown in place of a missing category snapshot
UNCATEGORIZED_LABEL = "その他"

_DATETIME_ADAPTER = TypeAdapter(datetime)


def to_calendar_date(value: Any) -> Any:
    """
    Normalize a wire date to a calendar date.

    The server may send either "2024-05-01" or a full RFC 3339 timestamp.
    Timestamps are converted to UTC before the time component is dropped.
    Anything unrecognized is passed through for pydantic to reject.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return text
        try:
            parsed = _DATETIME_ADAPTER.validate_python(text)
        except ValidationError:
            raise ValueError(f"Not an ISO date or timestamp: {value!r}")
        return to_calendar_date(parsed)
    return value


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# SERVER-HELD RECORDS
# =============================================================================

class Category(BaseModel):
    """Reference data. Fetched, never mutated by the client."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class Transaction(BaseModel):
    """
    A recorded income or expense event, as the server returns it.

    CRITICAL: `amount` is SIGNED here (the server stores expenses as
    negative values). Drafts carry the unsigned magnitude instead.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        description="Server-assigned identifier"
    )
    date: date
    type: TransactionType
    category_id: int = Field(
        default=0,
        description="Foreign key to the category"
    )
    category: Optional[Category] = Field(
        default=None,
        description="Denormalized category snapshot"
    )
    amount: int = Field(
        ...,
        description="Signed amount in yen"
    )
    memo: str = ""
    created_at: Optional[datetime] = None

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return to_calendar_date(v)

    @field_validator('memo', mode='before')
    @classmethod
    def null_memo_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def magnitude(self) -> int:
        """Unsigned amount."""
        return abs(self.amount)

    @property
    def category_label(self) -> str:
        """
        Category name, or the uncategorized label when the snapshot is missing.

        A blank name also counts as missing: the service sends a zero-value
        snapshot ({"id": 0, "name": ""}) for rows without a category, and
        those belong in the uncategorized bucket rather than in one keyed "".
        """
        if self.category is None or not self.category.name.strip():
            return UNCATEGORIZED_LABEL
        return self.category.name


# =============================================================================
# CLIENT-SIDE DRAFT
# =============================================================================

class Draft(BaseModel):
    """
    An unsaved transaction, used both for registering and for editing.

    Same shape as the create/update request body. The amount is always a
    non-negative magnitude - the server applies the sign from `type`.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    date: date
    type: TransactionType = TransactionType.EXPENSE
    category_id: int = Field(default=0, ge=0)
    amount: int = Field(
        default=0,
        ge=0,
        description="Unsigned amount in yen"
    )
    memo: str = ""

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return to_calendar_date(v)

    @field_validator('memo', mode='before')
    @classmethod
    def null_memo_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def blank(cls, today: Optional[date] = None) -> "Draft":
        """Registration form default: today, expense, no category, zero amount."""
        return cls(date=today or datetime.now(timezone.utc).date())

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "Draft":
        """Seed an edit draft from a stored transaction."""
        return cls(
            date=transaction.date,
            type=transaction.type,
            category_id=transaction.category_id,
            amount=transaction.magnitude,
            memo=transaction.memo,
        )

    def with_field(self, field: str, value: Any) -> "Draft":
        """
        Return a copy with one field replaced.

        The copy is fully re-validated, so a bad value raises
        (pydantic.ValidationError is a ValueError) and the original
        draft is left as it was.
        """
        if field not in type(self).model_fields:
            raise ValueError(f"Unknown draft field: {field}")
        data = self.model_dump()
        data[field] = value
        return type(self).model_validate(data)

    def to_request_body(self) -> dict:
        """JSON body for POST/PUT."""
        return self.model_dump(mode="json")


# =============================================================================
# DERIVED / RESULT MODELS
# =============================================================================

class CategoryTotals(BaseModel):
    """One bar of the category chart."""

    category_label: str
    income_total: int = Field(default=0, ge=0)
    expense_total: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.income_total + self.expense_total


class LedgerSummary(BaseModel):
    """The two headline totals."""

    income_total: int = Field(default=0, ge=0)
    expense_total: int = Field(default=0, ge=0)

    @property
    def balance(self) -> int:
        return self.income_total - self.expense_total


class LedgerReport(BaseModel):
    """Everything the report view renders."""

    rows: list[CategoryTotals] = Field(default_factory=list)
    summary: LedgerSummary = Field(default_factory=LedgerSummary)


class RefreshResult(BaseModel):
    """
    Outcome of a store refresh.

    `ok` is False only when the fetch itself failed; in that case the
    store still holds its previous collections. `malformed` names the
    collections whose body was not a list at all and were emptied.
    `dropped` counts, per collection, the entries that failed validation
    and were skipped while the rest of the list was kept.
    """

    ok: bool
    error: Optional[str] = None
    malformed: list[str] = Field(default_factory=list)
    dropped: dict[str, int] = Field(default_factory=dict)


class FetchedCollection(BaseModel):
    """Valid entries of one list response, plus how many were skipped."""

    items: list[Any] = Field(default_factory=list)
    dropped: int = Field(default=0, ge=0)


class MutationOutcome(BaseModel):
    """
    Outcome of a create, update or delete.

    `refresh` is the result of the refresh that followed a successful
    mutation (None when the mutation itself did not happen).
    """

    ok: bool
    transaction: Optional[Transaction] = None
    error: Optional[str] = None
    cancelled: bool = False
    refresh: Optional[RefreshResult] = None


def format_amount(amount: int) -> str:
    """Render a signed amount for display, e.g. +¥1,000 or -¥500."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}¥{abs(amount):,}"

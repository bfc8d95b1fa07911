from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from models import AmountSign, CategoryType

CENTS = Decimal("0.01")


def _to_cents(value: Decimal) -> Decimal:
    # Matches the NUMERIC(12, 2) columns so stored and in-memory values agree.
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


Amount = Annotated[
    Decimal,
    AfterValidator(_to_cents),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def _clean_tags(value: Optional[list[str]]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for raw in value or []:
        tag = str(raw).strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        cleaned.append(tag)
    return cleaned


class BudgetCategory(BaseModel):
    """One budget line of one month.

    ``category`` is the display name; it is neither unique nor a key.
    """

    id: str = Field(..., min_length=1, max_length=36)
    type: CategoryType
    category: str = Field(..., min_length=1, max_length=200)
    expected: Amount
    tags: list[str] = Field(default_factory=list)
    require_all: bool = False
    amount_sign: Optional[AmountSign] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return _clean_tags(value)


class Transfer(BaseModel):
    id: str = Field(..., min_length=1, max_length=36)
    from_category: str = Field(..., min_length=1, max_length=200)
    to_category: str = Field(..., min_length=1, max_length=200)
    amount: Amount


class BudgetConfigCategory(BaseModel):
    expected: float
    tags: list[str] = Field(default_factory=list)
    require_all: Optional[bool] = None
    amount_sign: Optional[AmountSign] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _default_tags(cls, value):
        return list(value or [])


class BudgetConfig(BaseModel):
    """Legacy single-document budget configuration."""

    model_config = ConfigDict(populate_by_name=True)

    income: dict[str, BudgetConfigCategory] = Field(default_factory=dict)
    expenses: dict[str, BudgetConfigCategory] = Field(default_factory=dict)
    income_order: Optional[list[str]] = Field(default=None, alias="incomeOrder")
    expenses_order: Optional[list[str]] = Field(default=None, alias="expensesOrder")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CategoryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, min_length=1, max_length=36)
    type: CategoryType
    category: str = Field(..., min_length=1, max_length=200)
    expected: Decimal
    tags: list[str] = Field(default_factory=list)
    require_all: bool = False
    amount_sign: Optional[AmountSign] = None


class CategorySaveIn(CategoryIn):
    month: str
    sort_order: int = Field(default=0, ge=0)


class TransferIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, min_length=1, max_length=36)
    from_category: str = Field(..., min_length=1, max_length=200)
    to_category: str = Field(..., min_length=1, max_length=200)
    amount: Decimal


class TransferSaveIn(TransferIn):
    source_month: str
    to_month: str

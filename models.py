import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class CategoryType(str, Enum):
    income = "income"
    expense = "expense"


class AmountSign(str, Enum):
    positive = "positive"
    negative = "negative"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        "category_id", String(36), primary_key=True, default=new_id
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    type: Mapped[CategoryType] = mapped_column(SAEnum(CategoryType), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    expected: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tags_json: Mapped[Optional[str]] = mapped_column("tags", Text)
    require_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    amount_sign: Mapped[Optional[AmountSign]] = mapped_column(SAEnum(AmountSign))
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("ix_categories_month", "month"),)


class Rollover(Base, TimestampMixin):
    __tablename__ = "rollovers"

    id: Mapped[str] = mapped_column(
        "rollover_id", String(36), primary_key=True, default=new_id
    )
    source_month: Mapped[str] = mapped_column(String(7), nullable=False)
    from_category: Mapped[str] = mapped_column(String(200), nullable=False)
    to_category: Mapped[str] = mapped_column(String(200), nullable=False)
    to_month: Mapped[str] = mapped_column(String(7), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    __table_args__ = (
        Index("ix_rollovers_source_month", "source_month"),
        Index("ix_rollovers_to_month", "to_month"),
    )

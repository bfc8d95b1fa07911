from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from database import SessionLocal, atomic
from models import AmountSign, Category, CategoryType, Rollover, new_id
from periods import validate_month
from schemas import BudgetCategory, Transfer


logger = logging.getLogger(__name__)


def _encode_tags(tags: Sequence[str]) -> str:
    return json.dumps([t.strip() for t in tags if t.strip()])


def _decode_tags(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return json.loads(raw) or []


def _to_category(row: Category) -> BudgetCategory:
    return BudgetCategory(
        id=row.id,
        type=row.type,
        category=row.name,
        expected=row.expected,
        tags=_decode_tags(row.tags_json),
        require_all=bool(row.require_all),
        amount_sign=AmountSign(row.amount_sign) if row.amount_sign else None,
    )


def _to_transfer(row: Rollover) -> Transfer:
    return Transfer(
        id=row.id,
        from_category=row.from_category,
        to_category=row.to_category,
        amount=row.amount,
    )


class CategoryStore:
    """Month-scoped budget categories.

    Every month owns a complete, independent set of categories. Two months
    may both have a "Rent" line; they never share a row or an id.
    """

    def __init__(
        self, session: Session, id_factory: Callable[[], str] = new_id
    ) -> None:
        self.session = session
        self.id_factory = id_factory

    def load_categories(self, month: str) -> list[BudgetCategory]:
        income_first = case((Category.type == CategoryType.income, 0), else_=1)
        stmt = (
            select(Category)
            .where(Category.month == month)
            .order_by(income_first, Category.sort_order.asc())
        )
        return [_to_category(row) for row in self.session.scalars(stmt).all()]

    def has_categories(self, month: str) -> bool:
        count = self.session.scalar(
            select(func.count()).select_from(Category).where(Category.month == month)
        )
        return bool(count)

    def has_any_categories(self) -> bool:
        count = self.session.scalar(select(func.count()).select_from(Category))
        return bool(count)

    def _upsert(self, month: str, category: BudgetCategory, sort_order: int) -> None:
        row = self.session.get(Category, category.id)
        if row is None:
            row = Category(id=category.id)
            self.session.add(row)
        row.month = month
        row.type = category.type
        row.name = category.category
        row.expected = category.expected
        row.tags_json = _encode_tags(category.tags)
        row.require_all = category.require_all
        row.amount_sign = category.amount_sign
        row.sort_order = sort_order
        row.updated_at = datetime.utcnow()

    def save_category(
        self, month: str, category: BudgetCategory, sort_order: int
    ) -> None:
        """Insert or overwrite a category by id.

        Re-saving an existing id under another month moves the row there.
        """
        validate_month(month)
        with atomic(self.session, "save_category"):
            self._upsert(month, category, sort_order)

    def save_all_categories(
        self, month: str, categories: Sequence[BudgetCategory]
    ) -> None:
        validate_month(month)
        with atomic(self.session, "save_all_categories"):
            self.session.execute(delete(Category).where(Category.month == month))
            for index, category in enumerate(categories):
                self._upsert(month, category, index)
                # Pending rows are invisible to session.get without autoflush.
                self.session.flush()
        logger.info(f"categories_replaced: month={month} count={len(categories)}")

    def delete_category(self, category_id: str) -> None:
        with atomic(self.session, "delete_category"):
            self.session.execute(delete(Category).where(Category.id == category_id))

    def copy_from_month(
        self, source_month: str, target_month: str
    ) -> list[BudgetCategory]:
        validate_month(target_month)
        source = self.load_categories(source_month)
        if not source:
            logger.info(
                f"categories_copy_skipped: source={source_month} target={target_month}"
            )
            return []

        copied = [cat.model_copy(update={"id": self.id_factory()}) for cat in source]
        self.save_all_categories(target_month, copied)
        logger.info(
            f"categories_copied: source={source_month} target={target_month} "
            f"count={len(copied)}"
        )
        return copied

    def get_months_with_data(self) -> list[str]:
        stmt = select(Category.month).distinct().order_by(Category.month.desc())
        return list(self.session.scalars(stmt).all())


class RolloverStore:
    """Transfers of budgeted amounts between months.

    A rollover links categories by display name, not by id, because ids are
    reminted whenever a month is copied.
    """

    def __init__(
        self, session: Session, id_factory: Callable[[], str] = new_id
    ) -> None:
        self.session = session
        self.id_factory = id_factory

    def load_outgoing_rollovers(self, month: str) -> list[Transfer]:
        stmt = (
            select(Rollover)
            .where(Rollover.source_month == month)
            .order_by(Rollover.created_at.asc(), Rollover.id.asc())
        )
        return [_to_transfer(row) for row in self.session.scalars(stmt).all()]

    def load_incoming_rollovers(self, month: str) -> list[Transfer]:
        stmt = (
            select(Rollover)
            .where(Rollover.to_month == month)
            .order_by(Rollover.created_at.asc(), Rollover.id.asc())
        )
        return [_to_transfer(row) for row in self.session.scalars(stmt).all()]

    def _upsert(self, source_month: str, to_month: str, transfer: Transfer) -> None:
        row = self.session.get(Rollover, transfer.id)
        if row is None:
            row = Rollover(id=transfer.id)
            self.session.add(row)
        row.source_month = source_month
        row.to_month = to_month
        row.from_category = transfer.from_category
        row.to_category = transfer.to_category
        row.amount = transfer.amount
        if source_month == to_month:
            logger.warning(
                f"rollover_same_month: id={transfer.id} month={source_month}"
            )

    def save_rollover(self, source_month: str, to_month: str, transfer: Transfer) -> None:
        validate_month(source_month)
        validate_month(to_month)
        with atomic(self.session, "save_rollover"):
            self._upsert(source_month, to_month, transfer)

    def delete_rollover(self, rollover_id: str) -> None:
        with atomic(self.session, "delete_rollover"):
            self.session.execute(delete(Rollover).where(Rollover.id == rollover_id))

    def delete_month_rollovers(self, source_month: str) -> None:
        with atomic(self.session, "delete_month_rollovers"):
            self.session.execute(
                delete(Rollover).where(Rollover.source_month == source_month)
            )

    def save_month_rollovers(
        self, source_month: str, to_month: str, transfers: Sequence[Transfer]
    ) -> None:
        validate_month(source_month)
        validate_month(to_month)
        with atomic(self.session, "save_month_rollovers"):
            self.session.execute(
                delete(Rollover).where(Rollover.source_month == source_month)
            )
            for transfer in transfers:
                self._upsert(source_month, to_month, transfer)
                self.session.flush()
        logger.info(
            f"rollovers_replaced: source={source_month} to={to_month} "
            f"count={len(transfers)}"
        )


@dataclass(frozen=True)
class MonthData:
    categories: list[BudgetCategory] = field(default_factory=list)
    outgoing_rollovers: list[Transfer] = field(default_factory=list)
    incoming_rollovers: list[Transfer] = field(default_factory=list)


def load_month_data(
    month: str,
    session_factory: sessionmaker = SessionLocal,
    *,
    max_workers: Optional[int] = None,
) -> MonthData:
    """Load a month's categories and both rollover directions.

    The three reads are independent, so each runs on its own session in a
    worker thread.
    """

    def _categories() -> list[BudgetCategory]:
        with session_factory() as session:
            return CategoryStore(session).load_categories(month)

    def _outgoing() -> list[Transfer]:
        with session_factory() as session:
            return RolloverStore(session).load_outgoing_rollovers(month)

    def _incoming() -> list[Transfer]:
        with session_factory() as session:
            return RolloverStore(session).load_incoming_rollovers(month)

    workers = max_workers or get_settings().month_data_workers
    with ThreadPoolExecutor(max_workers=workers) as pool:
        categories = pool.submit(_categories)
        outgoing = pool.submit(_outgoing)
        incoming = pool.submit(_incoming)
        return MonthData(
            categories=categories.result(),
            outgoing_rollovers=outgoing.result(),
            incoming_rollovers=incoming.result(),
        )

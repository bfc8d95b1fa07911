from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from legacy_config import config_to_categories
from models import CategoryType, new_id
from periods import validate_month
from schemas import BudgetCategory, BudgetConfig, BudgetConfigCategory
from services import CategoryStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyConfigPreview:
    income_count: int
    expense_count: int
    has_income_order: bool
    has_expenses_order: bool
    warnings: list[str]

    @property
    def total(self) -> int:
        return self.income_count + self.expense_count


def _section_warnings(
    label: str, entries: dict[str, BudgetConfigCategory], order: Optional[list[str]]
) -> list[str]:
    if order is None:
        if len(entries) > 1:
            return [f"{label}: no explicit order, using document key order"]
        return []
    warnings: list[str] = []
    listed = set(order)
    for name in order:
        if name not in entries:
            warnings.append(f"{label}: '{name}' is ordered but not defined, skipped")
    for name in entries:
        if name not in listed:
            warnings.append(f"{label}: '{name}' is defined but not ordered, skipped")
    return warnings


def _imported_count(
    entries: dict[str, BudgetConfigCategory], order: Optional[list[str]]
) -> int:
    if order is None:
        return len(entries)
    return sum(1 for name in order if name in entries)


class LegacyConfigImportService:
    """Seeds an empty category store from a legacy config document.

    The document is a migration input only; once any month has categories
    the importer refuses to run again.
    """

    def __init__(
        self, session: Session, id_factory: Callable[[], str] = new_id
    ) -> None:
        self.session = session
        self.id_factory = id_factory

    @staticmethod
    def load_document(path: Path) -> BudgetConfig:
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Cannot read legacy config {path}: {exc}") from exc
        return LegacyConfigImportService.parse_document(raw)

    @staticmethod
    def parse_document(raw: object) -> BudgetConfig:
        if not isinstance(raw, dict):
            raise ValueError("Legacy config must be a JSON object")
        try:
            return BudgetConfig.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid legacy config: {exc}") from exc

    def preview(self, config: BudgetConfig) -> LegacyConfigPreview:
        warnings = _section_warnings(
            CategoryType.income.value, config.income, config.income_order
        )
        warnings += _section_warnings(
            CategoryType.expense.value, config.expenses, config.expenses_order
        )
        return LegacyConfigPreview(
            income_count=_imported_count(config.income, config.income_order),
            expense_count=_imported_count(config.expenses, config.expenses_order),
            has_income_order=config.income_order is not None,
            has_expenses_order=config.expenses_order is not None,
            warnings=warnings,
        )

    def run(self, config: BudgetConfig, month: str) -> list[BudgetCategory]:
        validate_month(month)
        store = CategoryStore(self.session, id_factory=self.id_factory)
        if store.has_any_categories():
            logger.info(f"legacy_config_import_skipped: month={month} reason=store_not_empty")
            return []

        for warning in self.preview(config).warnings:
            logger.warning(f"legacy_config_import_warning: {warning}")

        categories = config_to_categories(config, id_factory=self.id_factory)
        store.save_all_categories(month, categories)
        logger.info(
            f"legacy_config_imported: month={month} count={len(categories)}"
        )
        return categories

    def run_from_path(self, path: Path, month: str) -> list[BudgetCategory]:
        return self.run(self.load_document(path), month)

import itertools
import json
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from legacy_config_import import LegacyConfigImportService
from services import CategoryStore


LEGACY_DOC = {
    "income": {"Salary": {"expected": 4000, "tags": ["salary"]}},
    "expenses": {
        "Rent": {"expected": 1200, "tags": ["rent"]},
        "Food": {"expected": 450.25, "tags": ["groceries", "dining"], "require_all": True},
    },
    "incomeOrder": ["Salary"],
    "expensesOrder": ["Food", "Rent"],
}


def _ids():
    counter = itertools.count(1)
    return lambda: f"legacy-{next(counter)}"


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def test_import_seeds_empty_store_once() -> None:
    with _session() as session:
        service = LegacyConfigImportService(session, id_factory=_ids())
        config = service.parse_document(LEGACY_DOC)

        imported = service.run(config, "2025-01")

        store = CategoryStore(session)
        loaded = store.load_categories("2025-01")
        assert [c.id for c in imported] == ["legacy-1", "legacy-2", "legacy-3"]
        assert [c.category for c in loaded] == ["Salary", "Food", "Rent"]
        assert loaded[1].expected == Decimal("450.25")
        assert loaded[1].require_all is True

        again = service.run(config, "2025-02")
        assert again == []
        assert store.get_months_with_data() == ["2025-01"]


def test_preview_reports_order_mismatches() -> None:
    with _session() as session:
        service = LegacyConfigImportService(session)
        config = service.parse_document(
            {
                "income": {"Salary": {"expected": 1, "tags": []}},
                "expenses": {
                    "Rent": {"expected": 1, "tags": []},
                    "Food": {"expected": 1, "tags": []},
                },
                "expensesOrder": ["Rent", "Ghost"],
            }
        )

        preview = service.preview(config)

        assert preview.income_count == 1
        assert preview.expense_count == 1
        assert preview.total == 2
        assert not preview.has_income_order
        assert preview.has_expenses_order
        assert "expense: 'Ghost' is ordered but not defined, skipped" in preview.warnings
        assert "expense: 'Food' is defined but not ordered, skipped" in preview.warnings


def test_load_document_reads_json_file(tmp_path) -> None:
    path = tmp_path / "budget.json"
    path.write_text(json.dumps(LEGACY_DOC), encoding="utf-8")

    config = LegacyConfigImportService.load_document(path)

    assert list(config.expenses) == ["Rent", "Food"]
    assert config.expenses_order == ["Food", "Rent"]


@pytest.mark.parametrize(
    "content", ["{not json", "[1, 2]", '{"income": {"Salary": {"tags": []}}}']
)
def test_load_document_rejects_bad_input(tmp_path, content: str) -> None:
    path = tmp_path / "budget.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        LegacyConfigImportService.load_document(path)


def test_load_document_missing_file(tmp_path) -> None:
    with pytest.raises(ValueError):
        LegacyConfigImportService.load_document(tmp_path / "missing.json")

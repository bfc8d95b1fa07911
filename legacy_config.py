"""Conversion between month categories and the legacy budget config document.

Both directions are pure: nothing here touches the database.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from models import CategoryType, new_id
from schemas import BudgetCategory, BudgetConfig, BudgetConfigCategory


def categories_to_config(categories: Iterable[BudgetCategory]) -> BudgetConfig:
    config = BudgetConfig(income={}, expenses={}, income_order=[], expenses_order=[])

    for cat in categories:
        data = BudgetConfigCategory(expected=float(cat.expected), tags=list(cat.tags))
        # Defaults are signalled by omission, never by an explicit false/null.
        if cat.require_all:
            data.require_all = True
        if cat.amount_sign:
            data.amount_sign = cat.amount_sign

        if cat.type == CategoryType.income:
            entries, order = config.income, config.income_order
        else:
            entries, order = config.expenses, config.expenses_order
        # Names are map keys here: a repeated name keeps its first position
        # and the last definition.
        if cat.category not in entries:
            order.append(cat.category)
        entries[cat.category] = data

    return config


def _ordered_names(
    entries: dict[str, BudgetConfigCategory], order: Optional[list[str]]
) -> list[str]:
    if order is not None:
        return list(order)
    return list(entries.keys())


def config_to_categories(
    config: Union[BudgetConfig, dict],
    *,
    id_factory: Callable[[], str] = new_id,
) -> list[BudgetCategory]:
    if not isinstance(config, BudgetConfig):
        config = BudgetConfig.model_validate(config)

    result: list[BudgetCategory] = []
    sections = (
        (CategoryType.income, config.income, config.income_order),
        (CategoryType.expense, config.expenses, config.expenses_order),
    )
    for cat_type, entries, order in sections:
        for name in _ordered_names(entries, order):
            data = entries.get(name)
            if data is None:
                continue
            result.append(
                BudgetCategory(
                    id=id_factory(),
                    type=cat_type,
                    category=name,
                    expected=Decimal(str(data.expected)),
                    tags=data.tags,
                    require_all=bool(data.require_all),
                    amount_sign=data.amount_sign,
                )
            )
    return result

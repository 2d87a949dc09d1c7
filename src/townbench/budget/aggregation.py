"""Reduce budget line items into per-town totals and explorer trees.

All functions are pure and accept any iterable of line items; an empty
input yields zero totals or an empty tree.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from townbench.budget.models import (
    BudgetLineItem,
    CategoryGroup,
    FlatRow,
    SubcategoryGroup,
)


def total_for_town(items: Iterable[BudgetLineItem], town_id: str) -> float:
    """Signed sum of a town's line item amounts."""
    return sum(item.amount for item in items if item.town_id == town_id)


def category_totals_for_town(
    items: Iterable[BudgetLineItem], town_id: str
) -> dict[str, float]:
    totals: dict[str, float] = {}
    for item in items:
        if item.town_id != town_id:
            continue
        totals[item.category] = totals.get(item.category, 0.0) + item.amount
    return totals


def town_totals(items: Iterable[BudgetLineItem]) -> dict[str, float]:
    """Total per town across a merged peer working set.

    A town appears in the result iff it has at least one line item, so
    membership doubles as the "has budget" test.
    """
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        totals[item.town_id] += item.amount
    return dict(totals)


def town_category_totals(
    items: Iterable[BudgetLineItem],
) -> dict[str, dict[str, float]]:
    """Category totals per town; a category key exists only if tagged."""
    totals: dict[str, dict[str, float]] = defaultdict(dict)
    for item in items:
        cats = totals[item.town_id]
        cats[item.category] = cats.get(item.category, 0.0) + item.amount
    return dict(totals)


def town_subcategory_totals(
    items: Iterable[BudgetLineItem],
) -> dict[str, dict[tuple[str, str], float]]:
    totals: dict[str, dict[tuple[str, str], float]] = defaultdict(dict)
    for item in items:
        subs = totals[item.town_id]
        key = (item.category, item.subcategory)
        subs[key] = subs.get(key, 0.0) + item.amount
    return dict(totals)


def group_for_explorer(items: Iterable[BudgetLineItem]) -> list[CategoryGroup]:
    """Group items into category -> subcategory -> line items.

    Categories and subcategories are ordered by descending total; equal
    totals keep first-seen order. Line items keep source order.
    """
    tree: dict[str, dict[str, list[BudgetLineItem]]] = {}
    for item in items:
        tree.setdefault(item.category, {}).setdefault(item.subcategory, []).append(item)

    groups: list[CategoryGroup] = []
    for category, sub_map in tree.items():
        subcategories = [
            SubcategoryGroup(
                subcategory=subcategory,
                total=sum(i.amount for i in sub_items),
                items=sub_items,
            )
            for subcategory, sub_items in sub_map.items()
        ]
        subcategories.sort(key=lambda s: s.total, reverse=True)
        groups.append(
            CategoryGroup(
                category=category,
                total=sum(s.total for s in subcategories),
                subcategories=subcategories,
            )
        )

    groups.sort(key=lambda g: g.total, reverse=True)
    return groups


def flatten_groups(groups: Iterable[CategoryGroup]) -> list[FlatRow]:
    """Flatten an explorer tree into rows in display order.

    Each category row is followed by its subcategory rows, each of which is
    followed by its line item rows.
    """
    rows: list[FlatRow] = []
    for group in groups:
        rows.append(FlatRow(level="category", category=group.category, amount=group.total))
        for sub in group.subcategories:
            rows.append(
                FlatRow(
                    level="subcategory",
                    category=group.category,
                    subcategory=sub.subcategory,
                    amount=sub.total,
                )
            )
            for item in sub.items:
                rows.append(
                    FlatRow(
                        level="line_item",
                        category=group.category,
                        subcategory=sub.subcategory,
                        line_item=item.line_item,
                        amount=item.amount,
                    )
                )
    return rows

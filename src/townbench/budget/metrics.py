"""Normalize dollar amounts against a town's denominators."""

from __future__ import annotations

from townbench.budget.models import Town
from townbench.core.types import MetricType


def _per_unit(amount: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return amount / denominator


def metric_value(amount: float, metric: MetricType | str, town: Town) -> float:
    """Return ``amount`` expressed in ``metric`` for ``town``.

    Per-unit metrics resolve to 0 when the town's denominator is zero or
    negative, so the result is always finite.
    """
    metric = MetricType(metric)
    if metric is MetricType.PER_CAPITA:
        return _per_unit(amount, town.population)
    if metric is MetricType.PER_ROAD_MILE:
        return _per_unit(amount, town.road_miles)
    if metric is MetricType.PER_VALUATION:
        return _per_unit(amount, town.grand_list_valuation) * 1000
    return amount


def metric_denominator(metric: MetricType | str, town: Town) -> float | None:
    """The denominator ``metric`` divides by, or None for absolute."""
    metric = MetricType(metric)
    if metric is MetricType.PER_CAPITA:
        return town.population
    if metric is MetricType.PER_ROAD_MILE:
        return town.road_miles
    if metric is MetricType.PER_VALUATION:
        return town.grand_list_valuation
    return None


def vs_state_pct(value: float, state_average: float | None) -> float | None:
    """Percent difference of ``value`` from the state average."""
    if not state_average or state_average <= 0:
        return None
    return (value - state_average) / state_average * 100

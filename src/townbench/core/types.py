"""Core type definitions shared across all TownBench modules."""

from __future__ import annotations

from enum import StrEnum


class MetricType(StrEnum):
    """Ways to normalize a dollar amount against a town's denominators."""

    ABSOLUTE = "absolute"
    PER_CAPITA = "per_capita"
    PER_ROAD_MILE = "per_road_mile"
    PER_VALUATION = "per_valuation"


class SortDirection(StrEnum):
    """Ranking direction.

    DESCENDING ranks the highest value first (state rankings).
    ASCENDING ranks the lowest value first (comparison views, where lower
    normalized spend is better).
    """

    ASCENDING = "ascending"
    DESCENDING = "descending"


METRIC_LABELS: dict[MetricType, str] = {
    MetricType.ABSOLUTE: "Total ($)",
    MetricType.PER_CAPITA: "Per Capita ($)",
    MetricType.PER_ROAD_MILE: "Per Road Mile ($)",
    MetricType.PER_VALUATION: "Per $1K Valuation ($)",
}

METRIC_REPORT_NAMES: dict[MetricType, str] = {
    MetricType.ABSOLUTE: "Absolute Dollars",
    MetricType.PER_CAPITA: "Per Capita",
    MetricType.PER_ROAD_MILE: "Per Road Mile",
    MetricType.PER_VALUATION: "Per $1K Valuation",
}

"""CSV renderers for line item exports and the detailed town report."""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable

from townbench.budget.aggregation import flatten_groups
from townbench.budget.metrics import metric_value, vs_state_pct
from townbench.budget.models import RankingEntry, Town
from townbench.core.types import METRIC_REPORT_NAMES, MetricType
from townbench.export.models import ComprehensiveReport, ExportRow


LINE_ITEM_HEADERS = [
    "Town",
    "State",
    "Fiscal Year",
    "Category",
    "Subcategory",
    "Line Item",
    "Amount",
    "Per Capita",
    "Per Road Mile",
    "Per $1K Valuation",
]

_REPORT_LABELS = {"Valuation": "Grand List Valuation"}

# Decimal places for ranking values and averages; anything else uses 2.
_RANKING_DECIMALS = {
    "Population": 0,
    "Road Miles": 1,
    "Valuation": 0,
    "Total Budget": 0,
}


def _fmt(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}"


def _amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _or_na(value: object) -> object:
    return value if value else "N/A"


def _slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class CsvRenderer:
    """Renders export rows and comprehensive reports as CSV text."""

    line_item_filename = "townbench-export.csv"

    def render_line_items(self, rows: Iterable[ExportRow]) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(LINE_ITEM_HEADERS)
        for row in rows:
            writer.writerow([
                row.town,
                row.state,
                row.fiscal_year,
                row.category,
                row.subcategory,
                row.line_item,
                _amount(row.amount),
                _fmt(row.per_capita),
                _fmt(row.per_road_mile),
                _fmt(row.per_valuation),
            ])
        return buf.getvalue()

    @staticmethod
    def report_filename(report: ComprehensiveReport) -> str:
        if len(report.towns) == 1:
            return f"townbench-{_slug(report.primary.name)}-detailed.csv"
        return "townbench-comparison-detailed.csv"

    def render_report(self, report: ComprehensiveReport) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")

        self._write_summary(writer, report.towns)
        self._write_rankings(writer, report)
        self._write_breakdown(writer, report)
        if report.comparison is not None:
            self._write_comparison(writer, report)

        writer.writerow([])
        writer.writerow([f"Generated by TownBench on {report.generated_at.isoformat()}"])
        writer.writerow([f"Metric: {METRIC_REPORT_NAMES[report.metric]}"])
        return buf.getvalue()

    # -- Sections --

    def _write_summary(self, writer, towns: list[Town]) -> None:
        writer.writerow(["=== TOWN SUMMARY ==="])
        writer.writerow([
            "Town", "State", "County", "Population", "Population Year",
            "Road Miles", "Road Miles Year", "Grand List Valuation",
            "Valuation Year", "Fiscal Year",
        ])
        for t in towns:
            writer.writerow([
                t.name,
                t.state,
                t.county or "N/A",
                _or_na(t.population),
                _or_na(t.population_year),
                _fmt(t.road_miles or 0, 1),
                _or_na(t.road_miles_year),
                _or_na(_fmt(t.grand_list_valuation, 0) if t.grand_list_valuation else None),
                _or_na(t.valuation_year),
                _or_na(t.fiscal_year),
            ])
        writer.writerow([])

    def _ranking_row(self, entry: RankingEntry, label: str | None = None) -> list[str]:
        decimals = _RANKING_DECIMALS.get(entry.metric, 2)
        return [
            label or _REPORT_LABELS.get(entry.metric, entry.metric),
            _fmt(entry.value, decimals),
            str(entry.rank),
            str(entry.total),
            _fmt(entry.average, decimals),
            f"{_fmt(entry.percentile, 1)}%",
        ]

    def _write_rankings(self, writer, report: ComprehensiveReport) -> None:
        writer.writerow(["=== STATE RANKINGS ==="])
        writer.writerow([
            "Metric", "Town Value", "State Rank", "Total Towns", "State Average", "Percentile",
        ])
        rankings = report.rankings
        for entry in rankings.metadata_rankings + rankings.budget_rankings:
            writer.writerow(self._ranking_row(entry))
        for entry in rankings.category_rankings:
            writer.writerow(self._ranking_row(entry, label=f"{entry.metric} Per Capita"))
        writer.writerow([])

    def _write_breakdown(self, writer, report: ComprehensiveReport) -> None:
        writer.writerow(["=== BUDGET BREAKDOWN ==="])
        writer.writerow([
            "Category", "Subcategory", "Line Item", "Amount", "Per Capita",
            "Per Road Mile", "Per $1K Valuation", "vs State Avg %",
        ])
        town = report.primary
        for row in flatten_groups(report.breakdown):
            per_unit = [
                _fmt(metric_value(row.amount, MetricType.PER_CAPITA, town)),
                _fmt(metric_value(row.amount, MetricType.PER_ROAD_MILE, town)),
                _fmt(metric_value(row.amount, MetricType.PER_VALUATION, town)),
            ]
            if row.level == "category":
                delta = None
                if town.population > 0:
                    delta = vs_state_pct(
                        row.amount / town.population,
                        report.category_averages.get(row.category),
                    )
                if delta is None:
                    delta_text = "N/A"
                else:
                    delta_text = f"{'+' if delta > 0 else ''}{_fmt(delta, 1)}%"
                writer.writerow([row.category, "", "", _fmt(row.amount, 0), *per_unit, delta_text])
            elif row.level == "subcategory":
                writer.writerow(["", row.subcategory, "", _fmt(row.amount, 0), *per_unit, ""])
            else:
                writer.writerow(["", "", row.line_item, _fmt(row.amount, 0), *per_unit, ""])
        writer.writerow([])

    def _write_comparison(self, writer, report: ComprehensiveReport) -> None:
        table = report.comparison
        names = {t.id: t.name for t in report.towns}

        writer.writerow(["=== TOWN COMPARISON ==="])
        header = ["Category"]
        for town_id in table.town_ids:
            header.extend([names[town_id], f"{names[town_id]} Rank"])
        writer.writerow(header)

        for row in table.rows:
            cells = [row.category]
            for cell in row.cells:
                cells.extend([_fmt(cell.value), f"#{cell.rank}"])
            writer.writerow(cells)

        if table.total_row is not None:
            cells = [table.total_row.category]
            for cell in table.total_row.cells:
                cells.extend([_fmt(cell.value), ""])
            writer.writerow(cells)
        writer.writerow([])

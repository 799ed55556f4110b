"""Console and export formatting for stack analysis results."""

from __future__ import annotations

import csv
from dataclasses import asdict
import io
import json
from typing import Any, Collection, Dict, Mapping, Optional, Sequence

from .costs import CostInfo, normalize
from .overlap import OverlapGroup
from .rule_engine import AnalyzedItem, StackSummary
from .suggestions import Suggestion

CSV_HEADERS = ["name", "category", "cost_mo", "cost_basis", "cost_source", "action", "reason", "suggested_alt"]

CostMap = Mapping[str, Optional[CostInfo]]


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "-"
    return f"${amount:,.0f}"


def cost_details(item: AnalyzedItem, costs_by_name: Optional[CostMap]) -> Optional[CostInfo]:
    """Look up the resolved cost record behind an analyzed item."""
    if not costs_by_name:
        return None
    return costs_by_name.get(normalize(item.name))


def format_cost(item: AnalyzedItem, costs_by_name: Optional[CostMap] = None) -> str:
    """Currency plus ``(basis, source)`` when the cost record carries a basis."""
    text = format_currency(item.cost_mo)
    info = cost_details(item, costs_by_name)
    if item.cost_mo is not None and info is not None and info.cost_basis:
        text += f" ({info.cost_basis}, {info.source})"
    return text


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    align_right: Collection[int] = (),
) -> str:
    """Plain-text table; columns listed in ``align_right`` are right-justified."""
    widths = [max([len(header)] + [len(row[index]) for row in rows]) for index, header in enumerate(headers)]

    def line(cells: Sequence[str]) -> str:
        return " | ".join(
            cell.rjust(width) if index in align_right else cell.ljust(width)
            for index, (cell, width) in enumerate(zip(cells, widths))
        )

    return "\n".join([line(headers), line(["-" * width for width in widths])] + [line(row) for row in rows])


def format_analysis(items: Sequence[AnalyzedItem], costs_by_name: Optional[CostMap] = None) -> str:
    rows = [
        [
            item.name,
            item.category,
            format_cost(item, costs_by_name),
            item.action,
            item.reason,
            item.suggested_alt or "",
        ]
        for item in items
    ]
    if not rows:
        return "No tools"
    return render_table(["Tool", "Category", "Cost/mo", "Action", "Reason", "Alternative"], rows, align_right={2})


def format_summary(summary: StackSummary) -> str:
    lines = [
        f"Replace: {summary.replace_count} | Evaluate: {summary.evaluate_count} | Keep: {summary.keep_count}",
        f"Estimated monthly spend: {format_currency(summary.estimated_spend)}",
        f"Spend flagged for replacement: {format_currency(summary.replaceable_spend)}",
    ]
    if summary.unpriced:
        lines.append(f"Tools without cost data: {summary.unpriced}")
    return "\n".join(lines)


def format_overlaps(groups: Sequence[OverlapGroup]) -> str:
    if not groups:
        return "No overlapping subdomains."
    rows = [[group.subdomain, str(len(group.tools)), ", ".join(t.name for t in group.tools)] for group in groups]
    return render_table(["Subdomain", "Count", "Tools"], rows, align_right={1})


def format_suggestions(suggestions: Sequence[Suggestion]) -> str:
    if not suggestions:
        return "No gaps detected."
    return "\n".join(
        f"- {suggestion.prompt} [{', '.join(action.label for action in suggestion.actions)}]"
        for suggestion in suggestions
    )


def to_csv(items: Sequence[AnalyzedItem], costs_by_name: Optional[CostMap] = None) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in items:
        info = cost_details(item, costs_by_name)
        writer.writerow(
            [
                item.name,
                item.category,
                _exact_number(item.cost_mo),
                (info.cost_basis if info else None) or "",
                (info.source if info else None) or "",
                item.action,
                item.reason,
                item.suggested_alt or "",
            ]
        )
    return buffer.getvalue()


def to_json(
    items: Sequence[AnalyzedItem],
    summary: StackSummary,
    overlaps: Sequence[OverlapGroup] = (),
    costs_by_name: Optional[CostMap] = None,
    suggestions: Sequence[Suggestion] = (),
) -> str:
    payload: Dict[str, Any] = {
        "items": [_item_dict(item, costs_by_name) for item in items],
        "summary": asdict(summary),
        "overlaps": [asdict(group) for group in overlaps],
        "suggestions": [asdict(suggestion) for suggestion in suggestions],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _item_dict(item: AnalyzedItem, costs_by_name: Optional[CostMap]) -> Dict[str, Any]:
    data = asdict(item)
    if data["suggested_alt"] is None:
        del data["suggested_alt"]
    info = cost_details(item, costs_by_name)
    if info is not None:
        data["cost_basis"] = info.cost_basis
        data["cost_source"] = info.source
    return data


def _exact_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    number = float(value)
    return str(int(number)) if number.is_integer() else repr(number)

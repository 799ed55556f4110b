"""Entry point for the stack-mapper command line tool."""

from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .costs import CostInfo, CostResolver, CostTableError
from .formatting import (
    format_analysis,
    format_cost,
    format_currency,
    format_overlaps,
    format_suggestions,
    format_summary,
    to_csv,
    to_json,
)
from .overlap import OverlapGroup, compute_overlap
from .rule_engine import AnalyzedItem, StackSummary, ToolInput, analyze_stack, summarize
from .suggestions import Suggestion, suggest_gaps

logger = logging.getLogger(__name__)

ACTION_STYLES = {"Replace": "bold red", "Evaluate": "yellow", "Keep": "green"}


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Map a software stack and suggest consolidation opportunities.",
    )
    parser.add_argument("tools_file", nargs="?", help="CSV (name,category) or JSON list of tools")
    parser.add_argument(
        "--tool",
        action="append",
        default=[],
        metavar="NAME=CATEGORY",
        help="add a tool; may be repeated",
    )
    parser.add_argument("--costs", help="JSON cost table replacing the built-in defaults")
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="print the analysis as JSON")
    output.add_argument("--csv", action="store_true", help="print the analysis as CSV")
    output.add_argument("--ui", action="store_true", help="render tables with Rich")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        tools = load_tools(args.tools_file) if args.tools_file else []
        tools.extend(parse_tool_spec(spec) for spec in args.tool)
    except ValueError as exc:
        parser.error(str(exc))
    if not tools:
        parser.error("no tools given; pass a tools file or --tool NAME=CATEGORY")

    try:
        resolver = CostResolver.from_file(args.costs) if args.costs else CostResolver.default()
    except CostTableError as exc:
        parser.error(str(exc))

    costs_by_name = resolver.resolve_batch(tools)
    items = analyze_stack(tools, costs_by_name)
    summary = summarize(items)
    overlaps = compute_overlap(tools)
    suggestions = suggest_gaps(tools)
    logger.debug("Analyzed %d tools, %d overlapping subdomains", len(items), len(overlaps))

    if args.json:
        print(to_json(items, summary, overlaps, costs_by_name, suggestions))
        return

    if args.csv:
        print(to_csv(items, costs_by_name), end="")
        return

    if args.ui:
        _render_rich(items, summary, overlaps, costs_by_name, suggestions)
        return

    print(format_analysis(items, costs_by_name))
    print()
    print(format_summary(summary))
    print("\nOverlapping subdomains:")
    print(format_overlaps(overlaps))
    print("\nPossible gaps:")
    print(format_suggestions(suggestions))


def parse_tool_spec(spec: str) -> ToolInput:
    """Parse ``NAME=CATEGORY``; a missing category means ``Other``."""
    name, _, category = spec.partition("=")
    name = name.strip()
    if not name:
        raise ValueError(f"invalid tool {spec!r}; expected NAME=CATEGORY")
    return ToolInput(name=name, category=category.strip() or "Other")


def load_tools(path: str) -> List[ToolInput]:
    """Read tools from a JSON list or a CSV file with name and category columns."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ValueError(f"cannot read tools file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ValueError(f"tools file {path} is not UTF-8 text: {exc}") from exc

    if file_path.suffix.lower() == ".json":
        try:
            rows = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON in tools file {path}: {exc}") from exc
        if not isinstance(rows, list):
            raise ValueError(f"tools file {path} must contain a JSON list")
    else:
        rows = list(csv.DictReader(text.splitlines()))

    tools: List[ToolInput] = []
    for row in rows:
        if not isinstance(row, dict) or not str(row.get("name") or "").strip():
            logger.warning("Skipping tool row without a name: %r", row)
            continue
        tools.append(ToolInput(name=str(row["name"]).strip(), category=str(row.get("category") or "Other").strip()))
    return tools


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _render_rich(
    items: List[AnalyzedItem],
    summary: StackSummary,
    overlaps: List[OverlapGroup],
    costs_by_name: Dict[str, CostInfo],
    suggestions: List[Suggestion],
) -> None:
    console = Console()

    console.print(Panel(f"Tech stack analysis - {len(items)} tools", style="bold cyan"))

    # tool names, categories and cost bases are user input, not markup
    analysis = Table(box=box.SIMPLE_HEAD)
    analysis.add_column("Tool", style="bold")
    analysis.add_column("Category")
    analysis.add_column("Cost/mo", justify="right")
    analysis.add_column("Action")
    analysis.add_column("Reason")
    analysis.add_column("Alternative")
    for item in items:
        style = ACTION_STYLES[item.action]
        analysis.add_row(
            escape(item.name),
            escape(item.category),
            escape(format_cost(item, costs_by_name)),
            f"[{style}]{item.action}[/{style}]",
            escape(item.reason),
            escape(item.suggested_alt or ""),
        )
    console.print(analysis)

    totals = Table(show_header=False, box=box.ROUNDED)
    totals.add_row("Replace / Evaluate / Keep", f"{summary.replace_count} / {summary.evaluate_count} / {summary.keep_count}")
    totals.add_row("Estimated monthly spend", format_currency(summary.estimated_spend))
    totals.add_row("Spend flagged for replacement", format_currency(summary.replaceable_spend))
    if summary.unpriced:
        totals.add_row("Tools without cost data", str(summary.unpriced))
    console.print(totals)

    if overlaps:
        groups = Table(title="Overlapping subdomains", box=box.SIMPLE_HEAD)
        groups.add_column("Subdomain", style="bold yellow")
        groups.add_column("Tools")
        for group in overlaps:
            groups.add_row(escape(group.subdomain), escape(", ".join(tool.name for tool in group.tools)))
        console.print(groups)
    else:
        console.print(Panel("No overlapping subdomains found.", style="bold green"))

    if suggestions:
        gaps = Table(title="Possible gaps", box=box.SIMPLE_HEAD)
        gaps.add_column("Question")
        gaps.add_column("Options", style="cyan")
        for suggestion in suggestions:
            gaps.add_row(suggestion.prompt, "\n".join(action.label for action in suggestion.actions))
        console.print(gaps)


if __name__ == "__main__":
    main()

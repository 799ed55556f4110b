"""Classify each tool in a stack as Replace, Evaluate or Keep."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Literal, Mapping, Optional, Sequence, Tuple

from .costs import CostInfo, normalize

RuleAction = Literal["Replace", "Evaluate", "Keep"]

DEFAULT_REASON = "No issues detected in initial pass."


@dataclass(frozen=True)
class ToolInput:
    name: str
    category: str


@dataclass(frozen=True)
class AnalyzedItem:
    name: str
    category: str
    cost_mo: Optional[float]
    action: RuleAction
    reason: str
    suggested_alt: Optional[str] = None


@dataclass(frozen=True)
class KnownOverlap:
    """A hard-coded overlap that fires for any tool named in ``names``.

    ``reason_all`` applies when every name of the group is in the stack,
    ``reason_partial`` when only some of them are.
    """

    names: FrozenSet[str]
    suggested_alt: str
    reason_all: str
    reason_partial: str
    action: RuleAction = "Replace"


@dataclass(frozen=True)
class StackSummary:
    replace_count: int
    evaluate_count: int
    keep_count: int
    estimated_spend: float
    replaceable_spend: float
    unpriced: int


KNOWN_OVERLAPS: Tuple[KnownOverlap, ...] = (
    KnownOverlap(
        names=frozenset({"intercom", "zendesk"}),
        suggested_alt="HubSpot Service Hub",
        reason_all="Intercom and Zendesk overlap in support/messaging. Consider consolidating.",
        reason_partial="Overlaps with other service tools; consider consolidation.",
    ),
    KnownOverlap(
        names=frozenset({"marketo"}),
        suggested_alt="HubSpot Marketing Hub",
        reason_all="Marketo overlaps with full-stack marketing platforms.",
        reason_partial="Marketo overlaps with full-stack marketing platforms.",
    ),
)

KEY_CATEGORIES: FrozenSet[str] = frozenset(
    {
        "crm",
        "customer support",
        "helpdesk",
        "service",
        "marketing automation",
        "marketing",
    }
)


def analyze_stack(
    tools: Sequence[ToolInput],
    costs_by_name: Mapping[str, Optional[CostInfo]],
) -> List[AnalyzedItem]:
    """Return one recommendation per tool, in input order."""
    names = frozenset(normalize(tool.name) for tool in tools)
    category_counts = Counter(_category_key(tool.category) for tool in tools)

    items: List[AnalyzedItem] = []
    for tool in tools:
        key = normalize(tool.name)
        cost_info = costs_by_name.get(key)
        action, reason, suggested_alt = _classify(tool, key, names, category_counts)
        items.append(
            AnalyzedItem(
                name=tool.name,
                category=tool.category,
                cost_mo=cost_info.cost_mo if cost_info is not None else None,
                action=action,
                reason=reason,
                suggested_alt=suggested_alt,
            )
        )
    return items


def summarize(items: Sequence[AnalyzedItem]) -> StackSummary:
    """Count actions and total the known monthly spend.

    Spend is counted once per normalized tool name, so a tool listed twice
    does not double the estimate.
    """
    actions = Counter(item.action for item in items)
    priced: Dict[str, AnalyzedItem] = {}
    for item in items:
        if item.cost_mo is not None:
            priced.setdefault(normalize(item.name), item)
    return StackSummary(
        replace_count=actions["Replace"],
        evaluate_count=actions["Evaluate"],
        keep_count=actions["Keep"],
        estimated_spend=sum((item.cost_mo for item in priced.values()), 0.0),
        replaceable_spend=sum((item.cost_mo for item in priced.values() if item.action == "Replace"), 0.0),
        unpriced=sum(1 for item in items if item.cost_mo is None),
    )


def _classify(
    tool: ToolInput,
    key: str,
    names: FrozenSet[str],
    category_counts: Mapping[str, int],
) -> Tuple[RuleAction, str, Optional[str]]:
    for overlap in KNOWN_OVERLAPS:
        if key in overlap.names:
            reason = overlap.reason_all if overlap.names <= names else overlap.reason_partial
            return overlap.action, reason, overlap.suggested_alt

    category = _category_key(tool.category)
    count = category_counts[category]
    if count > 1:
        return "Evaluate", f'Multiple tools in category "{tool.category}" → redundancy potential', None
    if category in KEY_CATEGORIES and count == 1:
        return "Keep", f'Single tool in key category "{tool.category}"', None
    return "Keep", DEFAULT_REASON, None


def _category_key(category: str) -> str:
    return normalize(category or "other")

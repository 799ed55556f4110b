"""Suggest tools that commonly fill gaps in a stack."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .costs import normalize
from .rule_engine import ToolInput

MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class SuggestionAction:
    label: str
    name: str
    category: str


@dataclass
class Suggestion:
    id: str
    prompt: str
    actions: List[SuggestionAction] = field(default_factory=list)


@dataclass(frozen=True)
class GapRule:
    """Fires when every ``requires_*`` condition holds and no ``missing_*`` one does.

    Name conditions match when any tool name contains one of the given names;
    lane conditions match a tool category exactly, ignoring case.
    """

    id: str
    prompt: str
    actions: Tuple[SuggestionAction, ...]
    requires_names: Tuple[str, ...] = ()
    requires_lane: Optional[str] = None
    missing_names: Tuple[str, ...] = ()
    missing_lane: Optional[str] = None


GAP_RULES: Tuple[GapRule, ...] = (
    GapRule(
        id="erp-missing",
        prompt="I don't see an ERP. Are you using NetSuite, SAP, or Odoo?",
        actions=(
            SuggestionAction("Add NetSuite", "NetSuite", "ERP"),
            SuggestionAction("Add SAP", "SAP", "ERP"),
            SuggestionAction("Add Odoo", "Odoo", "ERP"),
        ),
        missing_lane="ERP",
    ),
    GapRule(
        id="cdp-segment",
        prompt="Marketing has HubSpot, do you also use a CDP (Segment)?",
        actions=(SuggestionAction("Add Segment", "Segment", "Data"),),
        requires_names=("HubSpot",),
        missing_names=("Segment",),
    ),
    GapRule(
        id="monitoring",
        prompt="Cloud is present. Do you use Datadog for monitoring?",
        actions=(SuggestionAction("Add Datadog", "Datadog", "Dev/IT"),),
        requires_names=("AWS", "Azure", "GCP", "Google Cloud"),
        missing_names=("Datadog",),
    ),
    GapRule(
        id="helpdesk",
        prompt="You have Comms tools. Do you also use a helpdesk (Zendesk)?",
        actions=(SuggestionAction("Add Zendesk", "Zendesk", "Service"),),
        requires_lane="Comms",
        missing_lane="Service",
    ),
)


def suggest_gaps(tools: Sequence[ToolInput], limit: int = MAX_SUGGESTIONS) -> List[Suggestion]:
    """Return at most ``limit`` gap suggestions, in rule order."""
    suggestions: List[Suggestion] = []
    for rule in GAP_RULES:
        if _rule_fires(rule, tools):
            suggestions.append(Suggestion(id=rule.id, prompt=rule.prompt, actions=list(rule.actions)))
    return suggestions[:limit]


def _rule_fires(rule: GapRule, tools: Sequence[ToolInput]) -> bool:
    if rule.requires_names and not _has_name(tools, rule.requires_names):
        return False
    if rule.requires_lane is not None and not _has_lane(tools, rule.requires_lane):
        return False
    if rule.missing_names and _has_name(tools, rule.missing_names):
        return False
    if rule.missing_lane is not None and _has_lane(tools, rule.missing_lane):
        return False
    return True


def _has_name(tools: Sequence[ToolInput], names: Sequence[str]) -> bool:
    wanted = [name.lower() for name in names]
    return any(needle in tool.name.lower() for tool in tools for needle in wanted)


def _has_lane(tools: Sequence[ToolInput], lane: str) -> bool:
    return any(normalize(tool.category or "") == normalize(lane) for tool in tools)

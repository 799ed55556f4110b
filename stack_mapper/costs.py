"""Resolve monthly cost estimates for tools from tool and category defaults."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class CostTableError(ValueError):
    """Raised when a cost table file cannot be loaded."""


@dataclass(frozen=True)
class CostInfo:
    cost_mo: Optional[float]
    cost_basis: Optional[str]
    source: Optional[str]  # "tool", "category" or None


UNKNOWN_COST = CostInfo(cost_mo=None, cost_basis=None, source=None)


@dataclass(frozen=True)
class ToolCostDefault:
    name: str
    category: str
    cost_mo: Optional[float]
    cost_basis: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class CategoryCostFallback:
    category: str
    default_cost_mo: Optional[float]
    cost_basis: str


DEFAULT_TOOL_COSTS: List[ToolCostDefault] = [
    ToolCostDefault("Salesforce", "Sales", 150, "per user"),
    ToolCostDefault("Pipedrive", "Sales", 25, "per user"),
    ToolCostDefault("HubSpot", "Marketing", 50, "per seat"),
    ToolCostDefault("Marketo", "Marketing", 895, "flat"),
    ToolCostDefault("Mailchimp", "Marketing", 20, "flat"),
    ToolCostDefault("Zendesk", "Service", 49, "per user"),
    ToolCostDefault("Intercom", "Service", 99, "per user"),
    ToolCostDefault("Freshdesk", "Service", 15, "per user"),
    ToolCostDefault("Slack", "Other", 8, "per user"),
    ToolCostDefault("Jira", "Other", 8, "per user"),
    ToolCostDefault("Google Analytics", "Analytics", 0, "flat", notes="Free tier"),
]

DEFAULT_CATEGORY_COSTS: List[CategoryCostFallback] = [
    CategoryCostFallback("Sales", 50, "per user"),
    CategoryCostFallback("Marketing", 100, "flat"),
    CategoryCostFallback("Service", 40, "per user"),
    CategoryCostFallback("Analytics", 30, "flat"),
    CategoryCostFallback("Other", 20, "flat"),
]


def normalize(value: str) -> str:
    return value.lower().strip()


def to_number(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings; anything else becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class CostResolver:
    """Keyed lookup of tool costs with a category fallback."""

    def __init__(
        self,
        tool_defaults: Iterable[ToolCostDefault] = (),
        category_fallbacks: Iterable[CategoryCostFallback] = (),
    ) -> None:
        self._tools: Dict[str, ToolCostDefault] = {normalize(t.name): t for t in tool_defaults}
        self._categories: Dict[str, CategoryCostFallback] = {
            normalize(c.category): c for c in category_fallbacks
        }

    @classmethod
    def default(cls) -> "CostResolver":
        return cls(DEFAULT_TOOL_COSTS, DEFAULT_CATEGORY_COSTS)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CostResolver":
        """Load a JSON cost table with ``tools`` and ``categories`` lists."""
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8-sig"))
        except OSError as exc:
            raise CostTableError(f"cannot read cost table {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CostTableError(f"cost table {path} is not UTF-8 text: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CostTableError(f"invalid JSON in cost table {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise CostTableError(f"cost table {path} must be a JSON object")

        tools = [_tool_row(row) for row in _rows(payload, "tools", path)]
        categories = [_category_row(row) for row in _rows(payload, "categories", path)]
        logger.debug("Loaded %d tool costs and %d category fallbacks from %s", len(tools), len(categories), path)
        return cls(tools, categories)

    def resolve(self, name: str, category: str) -> CostInfo:
        tool = self._tools.get(normalize(name))
        if tool is not None:
            return CostInfo(cost_mo=tool.cost_mo, cost_basis=tool.cost_basis, source="tool")
        fallback = self._categories.get(normalize(category or ""))
        if fallback is not None:
            return CostInfo(cost_mo=fallback.default_cost_mo, cost_basis=fallback.cost_basis, source="category")
        return UNKNOWN_COST

    def resolve_batch(self, tools: Sequence[Any]) -> Dict[str, CostInfo]:
        """Resolve every tool, keyed by normalized name."""
        results: Dict[str, CostInfo] = {}
        for tool in tools:
            key = normalize(str(tool.name))
            try:
                results[key] = self.resolve(tool.name, tool.category)
            except (AttributeError, TypeError) as exc:
                logger.warning("Could not resolve cost for %r: %s", tool.name, exc)
                results[key] = UNKNOWN_COST
        return results


def _tool_row(row: Mapping[str, Any]) -> ToolCostDefault:
    if not isinstance(row, Mapping):
        raise CostTableError(f"tool cost row must be an object: {row!r}")
    name = str(row.get("name") or "").strip()
    if not name:
        raise CostTableError(f"tool cost row without a name: {row!r}")
    cost = to_number(row.get("cost_mo"))
    if cost is None:
        logger.warning("Tool %r has no usable cost_mo (%r)", name, row.get("cost_mo"))
    return ToolCostDefault(
        name=name,
        category=str(row.get("category") or "Other"),
        cost_mo=cost,
        cost_basis=str(row.get("cost_basis") or "flat"),
        notes=row.get("notes"),
    )


def _category_row(row: Mapping[str, Any]) -> CategoryCostFallback:
    if not isinstance(row, Mapping):
        raise CostTableError(f"category cost row must be an object: {row!r}")
    category = str(row.get("category") or "").strip()
    if not category:
        raise CostTableError(f"category cost row without a category: {row!r}")
    return CategoryCostFallback(
        category=category,
        default_cost_mo=to_number(row.get("default_cost_mo")),
        cost_basis=str(row.get("cost_basis") or "flat"),
    )


def _rows(payload: Mapping[str, Any], key: str, path: Union[str, Path]) -> List[Any]:
    rows = payload.get(key, [])
    if not isinstance(rows, list):
        raise CostTableError(f"{key!r} in cost table {path} must be a list, not {type(rows).__name__}")
    return rows

"""Group tools that serve the same business subdomain."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from .rule_engine import ToolInput

SUBDOMAIN_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(email|newsletter|mailchimp|klaviyo|campaign|mailer|hubspot)"), "Email Marketing"),
    (re.compile(r"(crm|customer relationship|salesforce|pipedrive|hubspot\s*crm)"), "CRM"),
    (re.compile(r"(marketing automation|automation|workflow|journey|nurture)"), "Marketing Automation"),
    (re.compile(r"(support|help\s?desk|ticket|zendesk|service desk)"), "Customer Support"),
    (re.compile(r"(analytics|reporting|tracking|amplitude|mixpanel|ga4|google analytics)"), "Analytics"),
    (re.compile(r"(chat|messaging|live chat|intercom|drift)"), "Chat/Messaging"),
    (re.compile(r"(cms|content management|website builder)"), "CMS"),
    (re.compile(r"(ads|advertising|ad platform|campaign manager)"), "Advertising"),
)


@dataclass
class OverlapGroup:
    subdomain: str
    tools: List[ToolInput] = field(default_factory=list)


def derive_subdomain(tool: ToolInput, description: Optional[str] = None) -> str:
    text = f"{tool.name} {tool.category} {description or ''}".lower()
    for pattern, label in SUBDOMAIN_PATTERNS:
        if pattern.search(text):
            return label
    return tool.category or "Other"


def compute_overlap(
    tools: Sequence[ToolInput],
    descriptions: Optional[Dict[str, str]] = None,
) -> List[OverlapGroup]:
    """Return subdomains shared by two or more tools, largest group first.

    ``descriptions`` optionally maps a tool name to free text that helps the
    subdomain match.
    """
    descriptions = descriptions or {}
    groups: Dict[str, OverlapGroup] = {}
    for tool in tools:
        subdomain = derive_subdomain(tool, descriptions.get(tool.name))
        groups.setdefault(subdomain, OverlapGroup(subdomain=subdomain)).tools.append(tool)

    overlaps = [group for group in groups.values() if len(group.tools) >= 2]
    overlaps.sort(key=lambda group: (-len(group.tools), group.subdomain))
    return overlaps

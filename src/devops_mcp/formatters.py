"""Shared formatting functions for MCP responses.

This module provides consistent formatting for both stdio and HTTP tool calls.
"""
import html
import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from devops_core.models import Identity, WorkItem

DESCRIPTION_LIMIT = 500
DEFAULT_TIMEZONE = "Asia/Taipei"

_TAG_PATTERN = re.compile(r"<[^>]*>")
# Azure DevOps emits 1 to 7 fractional digits; older fromisoformat takes exactly 3 or 6
_FRACTION_PATTERN = re.compile(r"(?<=:\d\d)\.(\d+)")


def _six_digit_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def format_date(value: Optional[str], timezone: str = DEFAULT_TIMEZONE) -> str:
    """Render an ISO-8601 timestamp as 'YYYY/MM/DD HH:MM' in the display timezone."""
    if not value:
        return "N/A"
    try:
        normalized = _FRACTION_PATTERN.sub(_six_digit_fraction, value.replace("Z", "+00:00"))
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=ZoneInfo("UTC"))
        return parsed.astimezone(ZoneInfo(timezone)).strftime("%Y/%m/%d %H:%M")
    except (ValueError, ZoneInfoNotFoundError):
        return value


def format_description(description: Optional[str]) -> str:
    """Strip HTML markup and cap the length."""
    if not description:
        return "No description"

    text = html.unescape(_TAG_PATTERN.sub("", description))
    if len(text) > DESCRIPTION_LIMIT:
        return text[:DESCRIPTION_LIMIT] + "..."
    return text


def format_identity_banner(identity: Identity) -> str:
    """One line naming the validated user."""
    return f"**👤 Validated user**: {identity.display_name} ({identity.email})"


def _format_item_body(
    item: WorkItem,
    org_url: str,
    project: Optional[str],
    timezone: str,
    include_severity: bool = True,
) -> str:
    assignee = item.assignee.display_name if item.assignee else "Unassigned"
    creator = item.creator.display_name if item.creator else "Unknown"

    lines = [
        f"**📝 Title**: {item.title}",
        f"**🏷️ Type**: {item.type}",
        f"**📊 State**: {item.state}",
        f"**👤 Assigned to**: {assignee}",
        f"**👨‍💻 Created by**: {creator}",
        f"**📅 Created**: {format_date(item.created_at, timezone)}",
        f"**🔄 Last changed**: {format_date(item.changed_at, timezone)}",
    ]
    if item.priority:
        lines.append(f"**⚡ Priority**: {item.priority}")
    if include_severity and item.severity:
        lines.append(f"**🚨 Severity**: {item.severity}")
    if item.tags:
        lines.append(f"**🏷️ Tags**: {item.tags}")

    return (
        "\n".join(lines)
        + f"\n\n**📄 Description**:\n{format_description(item.description)}"
        + f"\n\n**🔗 Link**: [View in Azure DevOps]({item.web_url(org_url, project)})\n"
    )


def format_work_item(
    item: WorkItem,
    org_url: str = "",
    project: Optional[str] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """Format a work item for display."""
    header = f"**🎯 Work item #{item.id}**\n\n"
    return header + _format_item_body(item, org_url, project, timezone)


def format_parent_feature(
    feature: WorkItem,
    org_url: str = "",
    project: Optional[str] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """Format the Feature or Epic found above a work item."""
    header = f"**🎯 Parent {feature.type} found**\n\n**📝 ID**: {feature.id}\n"
    return header + _format_item_body(feature, org_url, project, timezone, include_severity=False)


def format_ancestor_section(ancestor: Optional[WorkItem], item: WorkItem) -> str:
    """Short ancestor summary appended to get_work_item output."""
    if ancestor is None:
        return "**🧭 Parent Feature/Epic**: none found"
    if ancestor.id == item.id:
        return f"**🧭 Parent Feature/Epic**: this work item is itself a {item.type}"
    return f"**🧭 Parent Feature/Epic**: #{ancestor.id} {ancestor.title} ({ancestor.type}, {ancestor.state})"


def format_no_parent(work_item_id: int) -> str:
    """Absence of a parent, reported distinctly from an error."""
    return (
        f"❌ No parent Feature or Epic found for work item {work_item_id}\n\n"
        "💡 **Possible reasons**:\n"
        "- This work item is already at the top of its hierarchy\n"
        "- No hierarchy links have been set up\n"
        "- A parent does not exist or you do not have access to it"
    )


def format_validation_report(identity: Identity, org_url: str) -> str:
    """Result of validate_azure_devops_user."""
    return (
        "**🎯 Azure DevOps user validated**\n\n"
        f"**👤 User name**: {identity.display_name}\n"
        f"**📧 Email**: {identity.email}\n"
        f"**🆔 User ID**: {identity.id}\n"
        "**🔐 Status**: ✅ PAT is valid and has access\n"
        f"**🏢 Organization**: {org_url}\n\n"
        "**💡 Note**: you can now use the other Azure DevOps tools to query work items."
    )


def format_vocabulary(vocab: dict, index: int) -> str:
    """Format one vocabulary entry."""
    lines = [f"{index}. **{vocab.get('word') or vocab.get('japanese')}**"]
    if vocab.get("hiragana"):
        lines.append(f"   Hiragana: {vocab['hiragana']}")
    if vocab.get("katakana"):
        lines.append(f"   Katakana: {vocab['katakana']}")
    meaning = vocab.get("chinese") or vocab.get("meaning")
    if meaning:
        lines.append(f"   Meaning: {meaning}")
    if vocab.get("english"):
        lines.append(f"   English: {vocab['english']}")
    if vocab.get("pronunciation"):
        lines.append(f"   Pronunciation: {vocab['pronunciation']}")
    if vocab.get("level"):
        lines.append(f"   Level: {vocab['level']}")
    if vocab.get("category"):
        lines.append(f"   Category: {vocab['category']}")
    return "\n".join(lines) + "\n"


def format_vocabulary_results(results: list[dict], prefix: str) -> str:
    """Format a vocabulary result list under a heading."""
    entries = "\n".join(format_vocabulary(vocab, i) for i, vocab in enumerate(results, start=1))
    return prefix + entries

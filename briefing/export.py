"""
Markdown export of a set of briefings.

The layout is one section per briefing: summary, numbered sources (snippets
as block quotes) and a "Social Media Ready" list, separated by rules.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Optional

from briefing.models import BriefingResult


def format_briefing_markdown(
    briefings: Sequence[BriefingResult],
    title: str,
    generated_on: Optional[date] = None,
) -> str:
    """Render *briefings* as a standalone markdown document.

    Args:
        briefings: Results to include, in display order.
        title: Document heading.
        generated_on: Date shown under the heading; defaults to today.

    Returns:
        The markdown text.
    """
    generated_on = generated_on or date.today()
    parts = [f"# {title}\n\n*Generated on {generated_on.isoformat()}*\n\n---\n\n"]

    for index, briefing in enumerate(briefings):
        parts.append(f"## {briefing.interest}\n\n")
        if briefing.error:
            parts.append(f"> **Error:** {briefing.error}\n\n")
        if briefing.summary:
            parts.append(f"{briefing.summary}\n\n")

        if briefing.sources:
            parts.append("### Sources\n\n")
            for number, source in enumerate(briefing.sources, start=1):
                parts.append(f"{number}. [{source.title}]({source.url})\n")
                if source.snippet:
                    parts.append(f"   > {source.snippet}\n")
            parts.append("\n")

        if briefing.tweets:
            parts.append("### Social Media Ready\n\n")
            for number, tweet in enumerate(briefing.tweets, start=1):
                parts.append(f"**Tweet {number}:** {tweet}\n\n")

        if index < len(briefings) - 1:
            parts.append("---\n\n")

    return "".join(parts)

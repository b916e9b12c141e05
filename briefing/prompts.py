"""
Prompt templates sent to every backend.
"""

from __future__ import annotations

from briefing.models import SummaryLength

# ── Summary ────────────────────────────────────────────────────────────────

LENGTH_INSTRUCTIONS: dict[SummaryLength, str] = {
    SummaryLength.SHORT: "Write a concise 2-3 sentence summary",
    SummaryLength.MEDIUM: "Write a comprehensive 1-2 paragraph summary",
    SummaryLength.DETAILED: (
        "Write a detailed analysis with 3-4 paragraphs including context and implications"
    ),
}


def summary_prompt(topic: str, length: SummaryLength) -> str:
    """Build the summary instruction for *topic* at the requested *length*."""
    instruction = LENGTH_INSTRUCTIONS[SummaryLength(length)]
    return (
        f'{instruction} about recent developments in "{topic}". '
        "Focus on the most important and recent news from the last 48 hours. "
        "Include specific facts, numbers, and key developments. "
        "Make it informative and engaging.\n\n"
        "Please search for current information about this topic and provide "
        "a well-sourced summary."
    )


# ── Social posts ───────────────────────────────────────────────────────────


def social_posts_prompt(summary: str) -> str:
    """Ask for three short posts grounded in *summary*."""
    return (
        "Based on this news summary, generate exactly 3 witty, satirical tweets that are:\n"
        "- Clever and humorous but not offensive\n"
        "- Under 280 characters each\n"
        "- Engaging and shareable\n"
        "- Factually grounded in the summary\n\n"
        f"Summary: {summary}\n\n"
        "Return the response as a JSON object with this exact structure:\n"
        '{\n  "tweets": ["tweet1", "tweet2", "tweet3"]\n}'
    )


# ── Trending topics ────────────────────────────────────────────────────────

TRENDING_PROMPT = (
    "Identify the top 3 most significant global news topics from the last 24 hours. "
    "Focus on major developments in technology, politics, economics, science, or "
    "significant global events. Avoid celebrity gossip, sports scores, or ephemeral "
    "social media trends.\n\n"
    "Return the response as a JSON object with this exact structure:\n"
    "{\n"
    '  "topics": [\n'
    '    {"title": "Topic Title", "description": "Brief description"},\n'
    '    {"title": "Topic Title", "description": "Brief description"},\n'
    '    {"title": "Topic Title", "description": "Brief description"}\n'
    "  ]\n"
    "}"
)

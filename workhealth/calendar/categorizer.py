"""Keyword-based meeting categorization."""

from .models import MeetingCategory

BENEFICIAL_KEYWORDS = (
    "workout", "gym", "exercise", "walk", "run", "yoga", "meditation", "break",
    "lunch", "eat", "personal", "doctor", "dentist", "therapy", "massage", "health",
)

NEUTRAL_KEYWORDS = (
    "commute", "travel", "vacation", "holiday", "sick", "pto", "personal day",
    "out of office", "not available", "busy", "blocked", "unavailable",
)

FOCUS_KEYWORDS = (
    "focus", "deep work", "coding", "writing", "research", "analysis", "strategy",
    "no meetings", "focus block", "maker time", "thinking time", "planning", "prep",
)

LIGHT_KEYWORDS = (
    "1:1", "one-on-one", "check-in", "sync", "standup", "coffee chat",
    "quick sync", "brief update", "touch base", "catch up",
)

HEAVY_KEYWORDS = (
    "presentation", "demo", "review", "interview", "all-hands", "town hall",
    "board meeting", "client presentation", "quarterly review", "training",
    "workshop", "seminar", "conference",
)

COLLABORATIVE_KEYWORDS = (
    "brainstorm", "planning", "team meeting", "retrospective", "working session",
    "design review", "project meeting", "scrum", "sprint", "kickoff",
)

# First match wins, so order matters (e.g. "lunch & learn" is BENEFICIAL).
_CATEGORY_RULES: tuple[tuple[MeetingCategory, tuple[str, ...]], ...] = (
    (MeetingCategory.BENEFICIAL, BENEFICIAL_KEYWORDS),
    (MeetingCategory.NEUTRAL, NEUTRAL_KEYWORDS),
    (MeetingCategory.FOCUS_WORK, FOCUS_KEYWORDS),
    (MeetingCategory.LIGHT_MEETINGS, LIGHT_KEYWORDS),
    (MeetingCategory.HEAVY_MEETINGS, HEAVY_KEYWORDS),
    (MeetingCategory.COLLABORATIVE, COLLABORATIVE_KEYWORDS),
)


def categorize_meeting(summary: str) -> MeetingCategory:
    """Classify a meeting by case-insensitive substring match on its title.

    Args:
        summary: Meeting title (may be empty)

    Returns:
        The first matching category, COLLABORATIVE when nothing matches
    """
    title = (summary or "").lower().strip()
    if not title:
        return MeetingCategory.COLLABORATIVE

    for category, keywords in _CATEGORY_RULES:
        if any(keyword in title for keyword in keywords):
            return category

    return MeetingCategory.COLLABORATIVE

"""
Keyword hints about filters, read from the user's own query.

These never replace what the agent sends back; they give the UI a guess
to pre-fill and let the chat service tell the agent what is active when
the user asks about it.
"""

import re
from typing import Any, Dict, Iterable, Mapping, Optional

LOCATION_KEYWORDS = (
    "remote", "onsite", "hybrid", "new york", "san francisco", "san fran", "sf", "nyc",
    "austin", "chicago", "boston", "michigan", "california", "texas", "florida", "washington",
    "seattle", "los angeles", "la", "miami", "denver", "phoenix", "atlanta", "dallas",
)
LOCATION_ALIASES = {
    "sf": "San Francisco",
    "san fran": "San Francisco",
    "nyc": "New York",
    "la": "Los Angeles",
}

JOB_TITLE_KEYWORDS = (
    "software engineer", "developer", "frontend", "backend", "full stack",
    "data scientist", "analyst", "manager", "designer", "product manager",
    "sales", "marketing", "customer support", "operations", "hr",
)

FILTER_KEYWORDS = (
    "filter", "search", "find", "show", "looking for", "want", "need",
    "remote", "onsite", "location", "full-time", "part-time", "contract",
    "entry level", "senior", "junior", "h-1b", "h1b", "visa", "sponsor",
    "recent", "new", "latest", "job", "role", "position",
    "anywhere", "work from home", "wfh", "hybrid",
)

FILTER_QUESTIONS = (
    "what filters", "current filters", "active filters", "what search",
    "what am i searching", "my filters", "current search", "what location",
    "what job type", "what experience",
)


def _mentions(text: str, keyword: str) -> bool:
    # Word boundaries keep "la" out of "salary" and "hr" out of "three"
    return re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", text) is not None


def _mentions_any(text: str, keywords: Iterable[str]) -> bool:
    return any(_mentions(text, keyword) for keyword in keywords)


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def parse_filters_from_query(query: str) -> Dict[str, Any]:
    """
    Guess filter values from keywords in a user query.

    Args:
        query: The user's chat message

    Returns:
        Partial filter dict; only keys with a detected value are present
    """
    filters: Dict[str, Any] = {}
    lowered = (query or "").lower()
    if not lowered:
        return filters

    for keyword in LOCATION_KEYWORDS:
        if _mentions(lowered, keyword):
            filters["location"] = LOCATION_ALIASES.get(keyword, _capitalize(keyword))
            break

    if _mentions_any(lowered, ("full-time", "full time")):
        filters["jobTypes"] = "Full-time"
    elif _mentions_any(lowered, ("part-time", "part time")):
        filters["jobTypes"] = "Part-time"
    elif _mentions(lowered, "contract"):
        filters["jobTypes"] = "Contract"
    elif _mentions_any(lowered, ("internship", "intern")):
        filters["jobTypes"] = "Internship"
    elif _mentions(lowered, "remote") and "location" not in filters:
        filters["jobTypes"] = "Remote"

    if _mentions_any(lowered, ("entry level", "junior", "entry")):
        filters["experienceLevels"] = "Entry Level"
    elif _mentions_any(lowered, ("mid level", "mid-level", "mid")):
        filters["experienceLevels"] = "Mid Level"
    elif _mentions_any(lowered, ("senior", "lead", "principal")):
        filters["experienceLevels"] = "Senior Level"

    if _mentions_any(lowered, ("h-1b", "h1b", "visa", "sponsor", "sponsorship")):
        filters["workAuthorization"] = True

    if _mentions_any(lowered, ("recent", "past week", "last week")):
        filters["datePosted"] = "past_week"
    elif _mentions_any(lowered, ("past month", "last month")):
        filters["datePosted"] = "past_month"
    elif _mentions_any(lowered, ("past 24", "yesterday")):
        filters["datePosted"] = "past_24_hours"
    elif _mentions_any(lowered, ("past 3 days", "last 3 days")):
        filters["datePosted"] = "past_3_days"

    for title in JOB_TITLE_KEYWORDS:
        if _mentions(lowered, title):
            filters["jobTitle"] = "HR" if title == "hr" else _capitalize(title)
            break

    return filters


def should_parse_filters_from_query(query: str) -> bool:
    """True when the query reads like a search request."""
    return _mentions_any((query or "").lower(), FILTER_KEYWORDS)


def is_asking_about_filters(query: str) -> bool:
    """True when the user asks what their current filters are."""
    lowered = (query or "").lower()
    return any(question in lowered for question in FILTER_QUESTIONS)


def _format_value(value: Any) -> str:
    if isinstance(value, Mapping):
        cities = _format_value(value.get("cities"))
        radius = value.get("radius")
        if cities and radius:
            return f"{cities} (within {radius} miles)"
        return cities
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item)
    if value is None:
        return ""
    return str(value)


def describe_filters(filters: Optional[Mapping[str, Any]]) -> str:
    """Human-readable summary of a filter state."""
    filters = filters or {}
    labels = (
        ("jobTitle", "Job Title"),
        ("jobTypes", "Job Type"),
        ("location", "Location"),
        ("experienceLevels", "Experience"),
        ("datePosted", "Date Posted"),
    )

    active = []
    for key, label in labels:
        value = _format_value(filters.get(key))
        if value:
            active.append(f"{label}: {value}")
    if filters.get("workAuthorization"):
        active.append("H-1B Friendly: Yes")
    if filters.get("searchQuery"):
        active.append(f'Search: "{filters["searchQuery"]}"')

    if not active:
        return "No active filters currently."
    return "Current active filters:\n" + "\n".join(active)

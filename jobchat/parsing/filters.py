"""
Recover dashboard filter state from an agent reply.

Filters arrive in one of several dialects, tried in this order:

1. a nested object in the normalized payload (`update_dashboard.filters`)
2. JSON inside `<update_dashboard>...</update_dashboard>`
3. XML-ish tags: `<jobTitle>`, `<jobTypes>`, `<location><cities/><radius/></location>`
4. a YAML-ish `update_dashboard:` block

Every sub-parser returns a partial dict and never raises. A FilterSet is
built fresh for each reply and never merged with an earlier one.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import yaml

from jobchat.core.config import ParsingSettings, get_settings
from jobchat.core.schemas import JobRecord, DEFAULT_LOCATION
from jobchat.parsing.agent_message import DASHBOARD_TAG_RE, YAML_DASHBOARD_RE
from jobchat.parsing.normalizer import normalize_response

logger = logging.getLogger(__name__)

DASHBOARD_UPDATED_PHRASE = "i have updated your dashboard"
LIST_KEYS = ("jobTitle", "jobTypes", "experienceLevels")
DEFAULT_RADIUS = 25

_TRUE_WORDS = {"true", "yes", "1", "y"}


# ============================================================================
# Literal Helpers
# ============================================================================

def parse_list_literal(raw: Any) -> List[str]:
    """
    Parse an array literal the agent may have mangled.

    Accepts proper JSON arrays, single-quoted items, missing brackets,
    a bare scalar, or `<item>` sub-tags.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item).strip() for item in raw if str(item).strip()]

    raw = str(raw).strip()
    if not raw:
        return []

    if "<" in raw:
        items = re.findall(r"<\w+>(.*?)</\w+>", raw, re.DOTALL)
        if items:
            return [item.strip() for item in items if item.strip()]

    try:
        value = json.loads(raw)
    except ValueError:
        value = None
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]

    inner = raw.strip().lstrip("[").rstrip("]")
    items = [item.strip().strip("\"'").strip() for item in inner.split(",")]
    return [item for item in items if item]


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().strip("\"'").lower() in _TRUE_WORDS


def _clean_scalar(raw: str) -> str:
    return raw.strip().strip("\"'").strip()


def _filters_key(data: Dict[str, Any]) -> Dict[str, Any]:
    """`{"filters": {...}}` or the object itself; `{"filters": "none"}` is empty."""
    if "filters" not in data:
        return data
    nested = data["filters"]
    return nested if isinstance(nested, dict) else {}


def _string_keys(value: Any) -> Any:
    """Stringify mapping keys; YAML turns `{2024: yes}` into an int key."""
    if isinstance(value, dict):
        return {str(key): _string_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_string_keys(item) for item in value]
    return value


# ============================================================================
# Sub-parsers
# ============================================================================

def filters_from_payload(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Filters carried as an object in the normalized agent payload."""
    if not isinstance(payload, dict):
        return {}

    dashboard = payload.get("update_dashboard")
    if isinstance(dashboard, dict):
        return dict(_filters_key(dashboard))

    if isinstance(payload.get("filters"), dict):
        return dict(payload["filters"])

    return {}


def filters_from_json_block(block: Optional[str]) -> Dict[str, Any]:
    """JSON content of an `<update_dashboard>` block."""
    if not block:
        return {}

    try:
        data = json.loads(block)
    except ValueError as e:
        logger.debug(f"Dashboard block is not strict JSON: {e}")
        data = normalize_response(block)
        if set(data) == {"response"}:
            return {}

    if not isinstance(data, dict):
        return {}
    return dict(_filters_key(data))


def filters_from_xml(text: str) -> Dict[str, Any]:
    """Hand-rolled extraction of XML-ish filter tags."""
    if not text or "<" not in text:
        return {}

    filters: Dict[str, Any] = {}

    for key in LIST_KEYS:
        match = re.search(rf"<{key}>(.*?)</{key}>", text, re.DOTALL | re.IGNORECASE)
        if match:
            values = parse_list_literal(match.group(1))
            if values:
                filters[key] = values

    match = re.search(r"<location>(.*?)</location>", text, re.DOTALL | re.IGNORECASE)
    if match:
        body = match.group(1)
        location: Dict[str, Any] = {}
        cities = re.search(r"<cities>(.*?)</cities>", body, re.DOTALL | re.IGNORECASE)
        if cities:
            location["cities"] = parse_list_literal(cities.group(1))
        elif "<" not in body and body.strip():
            location["cities"] = parse_list_literal(body)
        radius = re.search(r"<radius>\s*(\d+)", body, re.IGNORECASE)
        if radius:
            location["radius"] = int(radius.group(1))
        if location:
            filters["location"] = location

    match = re.search(r"<datePosted>(.*?)</datePosted>", text, re.DOTALL | re.IGNORECASE)
    if match and _clean_scalar(match.group(1)):
        filters["datePosted"] = _clean_scalar(match.group(1))

    match = re.search(r"<workAuthorization>(.*?)</workAuthorization>", text, re.DOTALL | re.IGNORECASE)
    if match:
        filters["workAuthorization"] = parse_bool(match.group(1))

    return filters


def _filters_from_yaml_lines(text: str) -> Dict[str, Any]:
    filters: Dict[str, Any] = {}

    for key in LIST_KEYS:
        match = re.search(rf"^\s*{key}\s*:\s*(.+?)\s*$", text, re.MULTILINE)
        if match:
            values = parse_list_literal(match.group(1))
            if values:
                filters[key] = values

    location: Dict[str, Any] = {}
    block = re.search(r"^\s*location\s*:\s*\n((?:[ \t]+.+\n?)+)", text, re.MULTILINE)
    if block:
        cities = re.search(r"^\s*cities\s*:\s*(.+?)\s*$", block.group(1), re.MULTILINE)
        radius = re.search(r"^\s*radius\s*:\s*(\d+)", block.group(1), re.MULTILINE)
        if cities:
            location["cities"] = parse_list_literal(cities.group(1))
        if radius:
            location["radius"] = int(radius.group(1))
    if location:
        filters["location"] = location

    match = re.search(r"^\s*datePosted\s*:\s*(.+?)\s*$", text, re.MULTILINE)
    if match and _clean_scalar(match.group(1)):
        filters["datePosted"] = _clean_scalar(match.group(1))

    match = re.search(r"^\s*workAuthorization\s*:\s*(\S+)", text, re.MULTILINE)
    if match:
        filters["workAuthorization"] = parse_bool(match.group(1))

    return filters


def filters_from_yaml(block: Optional[str]) -> Dict[str, Any]:
    """YAML-ish `update_dashboard:` block; PyYAML first, line patterns second."""
    if not block:
        return {}

    try:
        data = yaml.safe_load(block)
    except Exception as e:
        # YAMLError for malformed blocks, ValueError from odd implicit scalars
        logger.debug(f"Dashboard block is not valid YAML: {e}")
        data = None

    if isinstance(data, dict):
        dashboard = data.get("update_dashboard", data)
        if isinstance(dashboard, dict):
            filters = _filters_key(dashboard)
            if filters:
                return dict(filters)

    return _filters_from_yaml_lines(block)


# ============================================================================
# Fallbacks
# ============================================================================

def default_filters() -> Dict[str, Any]:
    """All-"Any" filters used when the agent claims an update it did not send."""
    return {
        "jobTitle": ["Any"],
        "jobTypes": ["Any"],
        "location": {"cities": ["Any"], "radius": DEFAULT_RADIUS},
        "experienceLevels": ["Any"],
        "datePosted": "Any",
        "workAuthorization": False,
    }


def infer_filters(text: str, jobs: Optional[List[JobRecord]] = None) -> Dict[str, Any]:
    """Guess filters from bold numbered titles and places in the message."""
    filters: Dict[str, Any] = {
        "jobTitle": [],
        "jobTypes": ["Full-time", "Part-time", "Contract"],
        "location": {"cities": [], "radius": DEFAULT_RADIUS},
        "experienceLevels": ["Entry Level", "Mid Level", "Senior Level"],
        "datePosted": "past_week",
        "workAuthorization": True,
    }
    titles = filters["jobTitle"]
    cities = filters["location"]["cities"]

    for match in re.finditer(r"\d+\.\s+\*\*(.*?)\*\*", text):
        title = match.group(1).strip()
        if title and title not in titles:
            titles.append(title)

    if jobs:
        for job in jobs:
            if job.title not in titles:
                titles.append(job.title)
            if job.location != DEFAULT_LOCATION and job.location not in cities:
                cities.append(job.location)
    else:
        for match in re.finditer(r"(?:\bin|\bat|Location:)\s+([^.\n]+)(?:\.|$)", text, re.IGNORECASE | re.MULTILINE):
            place = match.group(1).strip()
            if len(place) > 2 and place not in cities:
                cities.append(place)

    return filters


# ============================================================================
# Entry Point
# ============================================================================

def extract_filters(text: str,
                    payload: Optional[Dict[str, Any]] = None,
                    dashboard_block: Optional[str] = None,
                    yaml_block: Optional[str] = None,
                    jobs: Optional[List[JobRecord]] = None,
                    settings: Optional[ParsingSettings] = None) -> Dict[str, Any]:
    """
    Build the FilterSet for one agent reply.

    Args:
        text: Raw agent message (before dashboard blocks are stripped)
        payload: Normalized agent payload, if any
        dashboard_block: Content of `<update_dashboard>`; searched in text when None
        yaml_block: YAML-ish `update_dashboard:` block; searched in text when None
        jobs: Records already extracted, used only for inference
        settings: Parsing toggles; defaults to application settings

    Returns:
        Partial FilterSet dict, possibly empty
    """
    settings = settings or get_settings().parsing
    text = text or ""

    if dashboard_block is None:
        match = DASHBOARD_TAG_RE.search(text)
        dashboard_block = match.group(1).strip() if match else None
    if yaml_block is None:
        match = YAML_DASHBOARD_RE.search(text)
        yaml_block = match.group(0) if match else None

    sources = (
        ("payload", lambda: filters_from_payload(payload)),
        ("json", lambda: filters_from_json_block(dashboard_block)),
        ("xml", lambda: filters_from_xml(dashboard_block or text)),
        ("yaml", lambda: filters_from_yaml(yaml_block)),
    )

    for name, parse in sources:
        try:
            filters = _string_keys(parse())
        except Exception as e:
            logger.warning(f"Filter parser {name} failed: {e}")
            continue
        if filters:
            logger.info(f"Extracted filters from {name}: {sorted(filters)}")
            return filters

    if settings.default_filters_on_dashboard_phrase and DASHBOARD_UPDATED_PHRASE in text.lower():
        logger.info("Agent reported a dashboard update without filters, using defaults")
        return default_filters()

    if settings.infer_filters_from_text:
        return infer_filters(text, jobs)

    return {}

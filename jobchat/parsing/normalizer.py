"""
Best-effort coercion of raw agent payloads into a plain dict.

The agent (and the Lambda in front of it) returns whatever it likes:
a dict, a JSON string, JSON encoded twice, JSON-like text with single
quotes or unquoted keys, `{{ ... }}` template doubling, or plain prose.
`normalize_response` always hands back a dict and never raises.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Doubly (or triply) encoded payloads are unwrapped at most this many times
MAX_DECODE_DEPTH = 3

_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)")
_SINGLE_QUOTED_RE = re.compile(r"'((?:[^'\\\n]|\\.)*)'")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_VALUE_RE = re.compile(r'(:\s*)([A-Za-z][^,{}\[\]"\n]*?)(\s*[,}\]\n])')
_LITERALS = {"true", "false", "null"}


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block, if present."""
    text = text.strip()

    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]

    if text.endswith("```"):
        text = text[:-3]

    return text.strip()


def _load_lenient(text: str) -> Any:
    """JSON first, then YAML flow syntax (unquoted keys, trailing commas)."""
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass

    try:
        return yaml.safe_load(text)
    except Exception as e:
        # YAMLError, or ValueError from implicit scalars such as bad dates
        logger.debug(f"Lenient parse failed: {e}")
        return None


def _quote_bare_value(match: re.Match) -> str:
    prefix, value, suffix = match.groups()
    value = value.strip()
    if value in _LITERALS:
        return match.group(0)
    return f'{prefix}"{value}"{suffix}'


def repair_json(text: str) -> str:
    """Apply the fixed repair sequence used before the strict JSON attempt."""
    repaired = _BARE_KEY_RE.sub(r'\1"\2"\3', text)
    repaired = _SINGLE_QUOTED_RE.sub(lambda m: '"' + m.group(1).replace('"', '\\"') + '"', repaired)
    repaired = _TRAILING_COMMA_RE.sub(r"\1", repaired)

    stripped = repaired.strip()
    if stripped.startswith("{{") and stripped.endswith("}}"):
        repaired = stripped[1:-1]

    repaired = _BARE_VALUE_RE.sub(_quote_bare_value, repaired)
    return repaired


def normalize_response(raw: Any, _depth: int = 0) -> Dict[str, Any]:
    """
    Coerce a raw agent payload into a dict.

    Args:
        raw: Whatever the upstream returned

    Returns:
        A dict; unparseable text is wrapped as {"response": text}
    """
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {"response": ""}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        return {"response": str(raw)}

    original = raw
    text = strip_code_fences(raw)

    # Structured text only; prose such as "Note: ..." would load as YAML
    if text.startswith("{") or text.startswith('"'):
        parsed = _load_lenient(text)
        result = _from_parsed(parsed, text, _depth)
        if result is not None:
            return result

    if text.startswith("{") or text.startswith("'"):
        try:
            parsed = json.loads(repair_json(text))
        except (ValueError, RecursionError) as e:
            logger.debug(f"Repaired JSON still invalid: {e}")
        else:
            result = _from_parsed(parsed, text, _depth)
            if result is not None:
                return result

    return {"response": original}


def _from_parsed(parsed: Any, text: str, depth: int) -> Optional[Dict[str, Any]]:
    if isinstance(parsed, dict):
        return parsed
    if isinstance(parsed, str) and parsed.strip() != text and depth < MAX_DECODE_DEPTH:
        # A JSON string that only held prose comes back as {"response": prose}
        return normalize_response(parsed, depth + 1)
    return None


def extract_agent_message(payload: Dict[str, Any], fallback: Any = "") -> str:
    """Pick the displayable message out of a normalized payload."""
    for key in ("message", "response"):
        value = payload.get(key)
        if value:
            break
    else:
        value = fallback

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def unwrap_message(payload: Dict[str, Any], message: str, _depth: int = 0) -> Tuple[Dict[str, Any], str]:
    """
    Unwrap a message that is itself a serialized agent reply.

    The agent sometimes puts a whole `{"response": ..., "update_dashboard": ...}`
    object in its message field or inside `<response>` tags.

    Args:
        payload: Normalized payload the message came from
        message: Candidate display text

    Returns:
        (payload, message); the inner dashboard keys are merged into a copy
        of the payload and the inner message replaces the outer one
    """
    stripped = (message or "").strip()
    if not stripped.startswith("{") or _depth >= MAX_DECODE_DEPTH:
        return payload, message

    inner = normalize_response(stripped)
    inner_message = extract_agent_message(inner)
    if not inner_message or inner_message.strip() == stripped:
        return payload, message

    merged = dict(payload)
    for key in ("update_dashboard", "filters"):
        if key in inner:
            merged[key] = inner[key]

    logger.debug("Unwrapped a serialized reply nested in the agent message")
    return unwrap_message(merged, inner_message, _depth + 1)

"""
HTML/XML entity decoding for agent text.

Agent replies arrive with a mix of numeric, hex and named entities
(`&#39;`, `&#x2019;`, `&rsquo;`, `&amp;`). Decoding runs decimal, hex,
named table, then `html.unescape` for anything left, and repeats until the
text stops changing.
"""

import html
import re

_DECIMAL_RE = re.compile(r"&#(\d+);")
_HEX_RE = re.compile(r"&#[xX]([0-9a-fA-F]+);")

NAMED_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&apos;": "'",
    "&nbsp;": " ",
    "&ndash;": "–",
    "&mdash;": "—",
    "&lsquo;": "‘",
    "&rsquo;": "’",
    "&ldquo;": "“",
    "&rdquo;": "”",
    "&hellip;": "…",
    "&bull;": "•",
    "&middot;": "·",
    "&copy;": "©",
    "&reg;": "®",
    "&trade;": "™",
    "&deg;": "°",
    "&euro;": "€",
    "&pound;": "£",
    "&times;": "×",
}


def _code_point(match: re.Match, base: int) -> str:
    try:
        value = int(match.group(1), base)
    except ValueError:
        return match.group(0)
    if value <= 0 or value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        # Leave it for html.unescape, which maps invalid points to U+FFFD
        return match.group(0)
    return chr(value)


def _decode_once(text: str) -> str:
    text = _DECIMAL_RE.sub(lambda m: _code_point(m, 10), text)
    text = _HEX_RE.sub(lambda m: _code_point(m, 16), text)
    for entity, char in NAMED_ENTITIES.items():
        text = text.replace(entity, char)
    return html.unescape(text)


def decode_entities(text: str) -> str:
    """Decode every entity in `text`. Plain text comes back unchanged."""
    if not text:
        return ""

    # Every entity spans more characters than it decodes to, so each
    # changing pass shortens the text.
    while True:
        decoded = _decode_once(text)
        if decoded == text:
            return text
        text = decoded

"""
Classify final display text as job postings, an instruction list, or prose.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from jobchat.core.schemas import ContentType, InstructionItem
from jobchat.parsing.extractors import FieldBlockExtractor

logger = logging.getLogger(__name__)

LIST_MARKER_RE = re.compile(r"^\s*(?:\d+\.|\*|-)\s+", re.MULTILINE)
LIST_SPLIT_RE = re.compile(r"\n\s*(?:\d+\.|\*|-)\s+")
_LEADING_MARKER_RE = re.compile(r"\A\s*(?:\d+\.|\*|-)\s+")
_BLANK_RUN_RE = re.compile(r"(?:\r\n|\n|\r){2,}")

_field_blocks = FieldBlockExtractor()


@dataclass
class ParsedContent:
    type: ContentType
    data: Any


def parse_instruction_list(text: str) -> Optional[List[InstructionItem]]:
    """Split bulleted or numbered text into items; None when it is not a list."""
    if not LIST_MARKER_RE.search(text):
        return None

    cleaned = _BLANK_RUN_RE.sub("\n\n", text).strip()
    items = []
    for chunk in LIST_SPLIT_RE.split(cleaned):
        chunk = _LEADING_MARKER_RE.sub("", chunk).strip()
        if chunk and not chunk.lower().startswith("here are"):
            items.append(InstructionItem(text=chunk))

    return items or None


def parse_content(text: str) -> ParsedContent:
    """
    Classify display text for rendering.

    Args:
        text: Display text of an agent reply

    Returns:
        ParsedContent of type jobs, list or text
    """
    text = text or ""

    if _field_blocks.detect(text):
        jobs = _field_blocks.extract(text)
        if jobs:
            return ParsedContent(type=ContentType.JOBS, data=jobs)

    items = parse_instruction_list(text)
    if items:
        logger.debug(f"Classified content as a list of {len(items)} items")
        return ParsedContent(type=ContentType.LIST, data=items)

    return ParsedContent(type=ContentType.TEXT, data=text)

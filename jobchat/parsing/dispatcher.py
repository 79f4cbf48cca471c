"""
Pick the job-listing layout present in a message and extract it.

Strategies run in a fixed priority order, most structured first, so the
permissive link scraper never claims content a specific layout could read.
The first strategy that returns anything wins; no results are merged.
"""

import logging
import re
from typing import List, Optional, Sequence

from jobchat.core.schemas import JobRecord
from jobchat.parsing.extractors import (
    JobExtractor, SimpleNumberedExtractor, DashFormatExtractor,
    LabeledBulletExtractor, FieldBlockExtractor, MarkdownBoldExtractor,
    TitleAtCompanyExtractor, LinkFallbackExtractor
)

logger = logging.getLogger(__name__)


DEFAULT_EXTRACTORS: Sequence[JobExtractor] = (
    SimpleNumberedExtractor(),
    DashFormatExtractor(),
    LabeledBulletExtractor(),
    FieldBlockExtractor(),
    MarkdownBoldExtractor(),
    TitleAtCompanyExtractor(),
    LinkFallbackExtractor(),
)

# Conversational answers about hiring eligibility, not listings
INFORMATIONAL_PHRASES = (
    "eligible to hire in",
    "eligible to hire",
    "able to hire in",
)
NUMBERED_AT_IN_RE = re.compile(r"^\s*\d+\.\s+.+?\s+at\s+.+?\s+in\s+", re.MULTILINE)


def looks_informational(text: str) -> bool:
    """True for general information that merely mentions hiring."""
    lowered = text.lower()
    if not any(phrase in lowered for phrase in INFORMATIONAL_PHRASES):
        return False
    return not NUMBERED_AT_IN_RE.search(text)


def extract_jobs(text: str,
                 extractors: Optional[Sequence[JobExtractor]] = None) -> List[JobRecord]:
    """
    Extract job records from agent text.

    Args:
        text: Display text of the agent reply
        extractors: Strategy list override, in priority order

    Returns:
        Records from the first strategy that found any, else []
    """
    if not text or not text.strip():
        return []

    if looks_informational(text):
        logger.info("Message looks informational, skipping job extraction")
        return []

    for extractor in extractors or DEFAULT_EXTRACTORS:
        try:
            if not extractor.detect(text):
                continue
            jobs = extractor.extract(text)
        except Exception as e:
            logger.warning(f"Extractor {extractor.name} failed: {e}")
            continue

        if jobs:
            logger.info(f"Extracted {len(jobs)} jobs with {extractor.name}")
            return jobs

        logger.debug(f"Extractor {extractor.name} detected its layout but found no jobs")

    return []

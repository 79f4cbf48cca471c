"""
Test entity decoding of agent text.

Run with: python -m pytest jobchat/tests/test_entities.py -v
"""

import logging

from jobchat.parsing.entities import decode_entities

logger = logging.getLogger(__name__)


def test_numeric_and_named_entities():
    assert decode_entities("Tom&#39;s") == "Tom's"
    assert decode_entities("it&#x2019;s") == "it’s"
    assert decode_entities("R&amp;D &ndash; Remote") == "R&D – Remote"
    assert decode_entities("&lt;b&gt;") == "<b>"


def test_generic_pass_handles_unlisted_entities():
    assert decode_entities("caf&eacute;") == "café"


def test_double_escaped_input_fully_decodes():
    assert decode_entities("&amp;amp;") == "&"
    assert decode_entities("&amp;#39;") == "'"


def test_decoding_is_idempotent():
    samples = [
        "plain text",
        "&amp;amp;lt;",
        "Salary: &#36;60,000 &ndash; &#36;80,000",
        "&#99999999; out of range",
        "&unknown; entity",
        "a & b",
    ]
    for sample in samples:
        once = decode_entities(sample)
        assert decode_entities(once) == once, f"Not idempotent for {sample!r}"
    logger.info("Idempotence: PASS")


def test_empty_input():
    assert decode_entities("") == ""
    assert decode_entities(None) == ""

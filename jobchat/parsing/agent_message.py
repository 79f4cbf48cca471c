"""
Separate what the user should read from what the dashboard should consume.

The agent wraps its prose in `<response>` tags (sometimes), and appends
filter updates either as `<update_dashboard>{json}</update_dashboard>` or
as a YAML-ish `update_dashboard:` block. Neither belongs in the chat bubble.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from jobchat.parsing.entities import decode_entities

logger = logging.getLogger(__name__)

RESPONSE_TAG_RE = re.compile(r"<response>([\s\S]*?)</response>", re.IGNORECASE)
DASHBOARD_TAG_RE = re.compile(r"<update_dashboard>([\s\S]*?)</update_dashboard>", re.IGNORECASE)
# Unterminated tag: the agent was cut off mid-block
DASHBOARD_OPEN_RE = re.compile(r"<update_dashboard>[\s\S]*$", re.IGNORECASE)
# `update_dashboard:` line plus every following indented or blank line
YAML_DASHBOARD_RE = re.compile(r"(?m)^[ \t]*update_dashboard:[ \t]*\n(?:(?:[ \t]+.*|[ \t]*)(?:\n|$))*")
_STRAY_TAG_RE = re.compile(r"</?(?:response|update_dashboard)>", re.IGNORECASE)


@dataclass
class AgentMessage:
    """Display text plus the raw dashboard blocks found in an agent reply."""

    text: str
    dashboard_block: Optional[str] = None
    yaml_block: Optional[str] = None


def split_agent_message(agent_message: str) -> AgentMessage:
    """
    Split an agent reply into display text and dashboard blocks.

    Args:
        agent_message: Raw message text from the agent

    Returns:
        AgentMessage with decoded display text
    """
    agent_message = agent_message or ""

    dashboard_block = None
    dashboard_match = DASHBOARD_TAG_RE.search(agent_message)
    if dashboard_match:
        dashboard_block = dashboard_match.group(1).strip()

    yaml_block = None
    yaml_match = YAML_DASHBOARD_RE.search(agent_message)
    if yaml_match:
        yaml_block = yaml_match.group(0)

    response_match = RESPONSE_TAG_RE.search(agent_message)
    if response_match:
        text = response_match.group(1)
        logger.debug("Extracted content from <response> tags")
    else:
        text = agent_message

    text = DASHBOARD_TAG_RE.sub("", text)
    text = DASHBOARD_OPEN_RE.sub("", text)
    text = YAML_DASHBOARD_RE.sub("", text)
    text = _STRAY_TAG_RE.sub("", text)

    return AgentMessage(
        text=decode_entities(text.strip()),
        dashboard_block=dashboard_block,
        yaml_block=yaml_block,
    )

"""
Chat Service

Runs one chat turn end to end:
1. Resolve the session -> 2. Build the prompt -> 3. Invoke the agent once
-> 4. Normalize the payload -> 5. Split display text from dashboard blocks
-> 6. Extract jobs and filters -> 7. Assemble the response

The agent is never retried; an upstream failure surfaces to the caller as
AgentInvocationError.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jobchat.core.agent_client import AgentReply
from jobchat.core.config import Settings, get_settings
from jobchat.core.schemas import ChatRequest, ChatResponse, ContentType, JobRecord, UserRole
from jobchat.parsing.agent_message import AgentMessage, split_agent_message
from jobchat.parsing.content import parse_content
from jobchat.parsing.dispatcher import extract_jobs
from jobchat.parsing.filters import extract_filters
from jobchat.parsing.normalizer import extract_agent_message, normalize_response, unwrap_message
from jobchat.parsing.query_filters import describe_filters, is_asking_about_filters

logger = logging.getLogger(__name__)


@dataclass
class ParsedReply:
    """Everything the widget needs from one agent reply."""

    message: str
    jobs: List[JobRecord] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)
    content_type: ContentType = ContentType.TEXT


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_guest_session_id() -> str:
    """`guest-<epoch ms>-<random>`"""
    return f"guest-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def parse_agent_output(raw: Any, settings: Optional[Settings] = None) -> ParsedReply:
    """
    Run the extraction core over raw agent output.

    Args:
        raw: Proxy body as returned by the agent client (str, dict or bytes)
        settings: Application settings

    Returns:
        ParsedReply with display text, jobs, filters and content type
    """
    settings = settings or get_settings()

    payload = normalize_response(raw)
    fallback = raw if isinstance(raw, str) else ""
    payload, agent_message = unwrap_message(payload, extract_agent_message(payload, fallback))

    split = split_agent_message(agent_message)
    payload, display = unwrap_message(payload, split.text)
    if display != split.text:
        # JSON reply inside <response> tags; its own blocks take precedence
        inner = split_agent_message(display)
        split = AgentMessage(
            text=inner.text,
            dashboard_block=inner.dashboard_block or split.dashboard_block,
            yaml_block=inner.yaml_block or split.yaml_block,
        )

    jobs = extract_jobs(split.text)
    filters = extract_filters(
        agent_message,
        payload=payload,
        dashboard_block=split.dashboard_block,
        yaml_block=split.yaml_block,
        jobs=jobs,
        settings=settings.parsing,
    )

    if jobs:
        content_type = ContentType.JOBS
    else:
        content_type = parse_content(split.text).type

    logger.info(
        f"Parsed agent reply: {len(jobs)} jobs, "
        f"filters {'present' if filters else 'absent'}, content {content_type.value}"
    )
    return ParsedReply(message=split.text, jobs=jobs, filters=filters, content_type=content_type)


class ChatService:
    """
    Handles chat turns against the upstream agent.

    The agent client is injected so the same service runs against the Lambda
    proxy, the runtime API, the mock client or a test double.
    """

    def __init__(self, agent_client, settings: Optional[Settings] = None):
        self.agent_client = agent_client
        self.settings = settings or get_settings()

    def resolve_session(self, request: ChatRequest) -> str:
        """userId, then sessionId, then guestSessionId, then a fresh guest id."""
        session_id = request.user_id or request.session_id or request.guest_session_id
        if not session_id:
            session_id = generate_guest_session_id()
            logger.debug(f"Generated guest session {session_id}")
        return session_id

    def build_prompt(self, request: ChatRequest) -> str:
        """The user message, prefixed with the active filters when asked about them."""
        message = (request.message or "").strip()
        if request.current_filters and is_asking_about_filters(message):
            return f"{describe_filters(request.current_filters)}\n\n{message}"
        return message

    def handle(self, request: ChatRequest) -> ChatResponse:
        """
        Run one chat turn.

        Args:
            request: Validated chat request with a non-empty message

        Returns:
            ChatResponse for the widget

        Raises:
            AgentInvocationError: The agent could not be reached
        """
        session_id = self.resolve_session(request)
        prompt = self.build_prompt(request)

        logger.info(f"Invoking agent for session {session_id}")
        reply: AgentReply = self.agent_client.invoke(prompt, session_id)

        parsed = parse_agent_output(reply.body, self.settings)

        if request.user_role:
            user_role = request.user_role.value
        else:
            user_role = UserRole.SEEKER.value if request.user_id else UserRole.GUEST.value

        return ChatResponse(
            message=parsed.message,
            jobs=parsed.jobs,
            filters=parsed.filters,
            session_id=session_id,
            user_id=request.user_id or f"guest_{session_id}",
            user_role=user_role,
            timestamp=_utc_timestamp(),
        )

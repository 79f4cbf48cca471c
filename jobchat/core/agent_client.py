"""
Agent Client Wrapper for jobchat

Provides a unified interface to the upstream Bedrock conversational agent.
The agent is normally reached through a Lambda proxy; the runtime API can
be called directly, and a mock client answers without touching AWS.

Usage:
    from jobchat.core.agent_client import get_agent_client

    client = get_agent_client()
    reply = client.invoke("Find nursing jobs in Detroit", session_id="guest-1")
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from jobchat.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


# ============================================================================
# Errors
# ============================================================================

class AgentInvocationError(Exception):
    """The agent could not be reached or its proxy reported a failure."""


class ChatHistoryError(Exception):
    """Saving a chat turn failed."""

    def __init__(self, message: str, function_error: bool = False):
        super().__init__(message)
        # True when the Lambda ran and reported an error, not a transport failure
        self.function_error = function_error


@dataclass
class AgentReply:
    """Raw agent output, before any normalization."""

    body: Any
    session_id: str
    status_code: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def _read_payload(response: Dict[str, Any]) -> str:
    """Decode the streamed `Payload` of a Lambda invoke response."""
    payload = response.get("Payload")
    if payload is None:
        return "{}"
    data = payload.read() if hasattr(payload, "read") else payload
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return data or "{}"


def _load_payload(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


# ============================================================================
# Lambda Proxy
# ============================================================================

class LambdaAgentClient:
    """
    Agent client that goes through the proxy Lambda.

    The Lambda answers in API Gateway shape: `{"statusCode": ..., "body": "..."}`.
    The body is handed back untouched; callers normalize it.
    """

    def __init__(self, function_name: str, lambda_client: Any = None, region: Optional[str] = None):
        """
        Initialize the Lambda proxy client.

        Args:
            function_name: Name or ARN of the proxy Lambda
            lambda_client: Pre-built boto3 Lambda client (tests pass a fake)
            region: Region used when no client is supplied
        """
        self.function_name = function_name
        self.client = lambda_client or boto3.client("lambda", region_name=region)
        logger.info(f"Lambda agent client initialized for {function_name}")

    def invoke(self, prompt: str, session_id: str) -> AgentReply:
        """
        Send one prompt to the agent.

        Args:
            prompt: Text forwarded to the agent
            session_id: Conversation id the agent uses for memory

        Returns:
            AgentReply with the proxy's body
        """
        payload = json.dumps({"prompt": prompt, "sessionId": session_id})

        try:
            response = self.client.invoke(FunctionName=self.function_name, Payload=payload)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Agent Lambda invocation failed: {e}")
            raise AgentInvocationError(str(e)) from e

        text = _read_payload(response)
        if response.get("FunctionError"):
            error_payload = _load_payload(text)
            logger.error(f"Agent Lambda returned a function error: {error_payload}")
            raise AgentInvocationError(
                f"Lambda function returned an error: {json.dumps(error_payload, default=str)}"
            )

        gateway_response = _load_payload(text)
        if isinstance(gateway_response, dict) and "body" in gateway_response:
            body = gateway_response["body"]
            status_code = gateway_response.get("statusCode")
        else:
            logger.warning("Agent Lambda response has no body field, using the whole payload")
            body = gateway_response
            status_code = None

        return AgentReply(
            body=body,
            session_id=session_id,
            status_code=status_code,
            metadata={"executed_version": response.get("ExecutedVersion")},
        )


# ============================================================================
# Direct Runtime
# ============================================================================

class BedrockAgentClient:
    """Agent client that calls bedrock-agent-runtime `invoke_agent` directly."""

    def __init__(
        self,
        agent_id: str,
        agent_alias_id: str,
        runtime_client: Any = None,
        region: Optional[str] = None
    ):
        if not agent_id or not agent_alias_id:
            raise ValueError(
                "Bedrock agent id and alias id required. Set BEDROCK_AGENT_ID and "
                "BEDROCK_AGENT_ALIAS_ID or enable the Lambda proxy."
            )

        self.agent_id = agent_id
        self.agent_alias_id = agent_alias_id
        self.client = runtime_client or boto3.client("bedrock-agent-runtime", region_name=region)
        logger.info(f"Bedrock agent client initialized for agent {agent_id}")

    def invoke(self, prompt: str, session_id: str) -> AgentReply:
        """Invoke the agent and join the streamed completion chunks."""
        try:
            response = self.client.invoke_agent(
                agentId=self.agent_id,
                agentAliasId=self.agent_alias_id,
                sessionId=session_id,
                inputText=prompt,
            )

            parts = []
            for event in response.get("completion", []):
                chunk = event.get("chunk")
                if chunk and chunk.get("bytes"):
                    parts.append(chunk["bytes"].decode("utf-8"))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Bedrock agent invocation failed: {e}")
            raise AgentInvocationError(str(e)) from e

        return AgentReply(body="".join(parts), session_id=session_id)


# ============================================================================
# Mock
# ============================================================================

class MockAgentClient:
    """
    Mock agent client for testing without AWS calls.

    Returns canned replies based on prompt patterns.
    """

    def __init__(self):
        logger.info("Using Mock Agent Client (no AWS calls)")
        self.calls = []

    def invoke(self, prompt: str, session_id: str) -> AgentReply:
        """Return a canned reply shaped like the proxy's body."""
        self.calls.append({"prompt": prompt, "sessionId": session_id})
        prompt_lower = prompt.lower()

        if "nurse" in prompt_lower or "nursing" in prompt_lower:
            message = (
                "<response>Here are some nursing roles:\n"
                "1. Registered Nurse at Henry Ford Health in Detroit, MI\n"
                "2. ICU Nurse at Beaumont Hospital in Royal Oak, MI\n"
                "</response>"
                '<update_dashboard>{"filters": {"jobTitle": ["Nurse"], '
                '"location": {"cities": ["Detroit"], "radius": 25}}}</update_dashboard>'
            )
        elif "job" in prompt_lower or "find" in prompt_lower:
            message = (
                "1. **Software Engineer**\n"
                "   - Company: Example Corp\n"
                "   - Location: Remote\n"
                "   - Description: Build and maintain web services.\n"
                "   - [Apply here](https://example.com/jobs/1)"
            )
        else:
            message = "Thanks for chatting today! Let me know if you want me to search for jobs."

        return AgentReply(
            body=json.dumps({"message": message}),
            session_id=session_id,
            status_code=200,
        )


# ============================================================================
# Chat History
# ============================================================================

class ChatHistoryClient:
    """Forwards chat turns to the history Lambda."""

    def __init__(self, function_name: str, lambda_client: Any = None, region: Optional[str] = None):
        self.function_name = function_name
        self.client = lambda_client or boto3.client("lambda", region_name=region)

    def save(self, record: Dict[str, Any]) -> Any:
        """
        Store one chat turn.

        Args:
            record: session_id, user_id, user_input and agent_response

        Returns:
            The Lambda's decoded payload
        """
        logger.info(f"Invoking chat history Lambda {self.function_name}")

        try:
            response = self.client.invoke(
                FunctionName=self.function_name,
                Payload=json.dumps(record),
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Chat history Lambda invocation failed: {e}")
            raise ChatHistoryError(str(e)) from e

        text = _read_payload(response)
        if response.get("FunctionError"):
            logger.error(f"Chat history Lambda error payload: {text}")
            raise ChatHistoryError(
                f"Lambda function returned an error: {response['FunctionError']}",
                function_error=True,
            )

        return _load_payload(text)


class NullChatHistoryClient:
    """History client used with the mock agent; accepts and drops records."""

    def save(self, record: Dict[str, Any]) -> Any:
        logger.debug(f"Discarding chat turn for session {record.get('session_id')}")
        return {"status": "skipped", "id": str(uuid.uuid4())}


# ============================================================================
# Factory Functions
# ============================================================================

def get_agent_client(settings: Optional[Settings] = None, use_mock: Optional[bool] = None):
    """
    Get an agent client instance.

    Args:
        settings: Application settings (defaults to the global settings)
        use_mock: Override settings.use_mock_agent

    Returns:
        Agent client instance
    """
    settings = settings or get_settings()
    if use_mock is None:
        use_mock = settings.use_mock_agent

    if use_mock:
        return MockAgentClient()

    bedrock = settings.bedrock
    if bedrock.use_lambda_proxy:
        return LambdaAgentClient(bedrock.lambda_name, region=bedrock.lambda_region)

    return BedrockAgentClient(bedrock.agent_id, bedrock.agent_alias_id, region=bedrock.region)


def get_chat_history_client(settings: Optional[Settings] = None, use_mock: Optional[bool] = None):
    """Get the chat history client matching the agent client mode."""
    settings = settings or get_settings()
    if use_mock is None:
        use_mock = settings.use_mock_agent

    if use_mock:
        return NullChatHistoryClient()

    history = settings.chat_history
    return ChatHistoryClient(history.lambda_name, region=history.region)

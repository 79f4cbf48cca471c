"""
Test the chat service end to end against the mock agent.

Run with: python -m pytest jobchat/tests/test_chat_service.py -v
"""

import json
import logging

import pytest

from jobchat.core.agent_client import AgentInvocationError, AgentReply, MockAgentClient
from jobchat.core.schemas import ChatRequest, ContentType
from jobchat.services.chat_service import ChatService, parse_agent_output

logger = logging.getLogger(__name__)


class FailingAgentClient:
    def invoke(self, prompt, session_id):
        raise AgentInvocationError("Lambda function returned an error: {}")


class EchoAgentClient:
    """Answers with a fixed body and records prompts."""

    def __init__(self, body):
        self.body = body
        self.prompts = []

    def invoke(self, prompt, session_id):
        self.prompts.append(prompt)
        return AgentReply(body=self.body, session_id=session_id)


def test_session_resolution_order(settings):
    service = ChatService(MockAgentClient(), settings)

    assert service.resolve_session(ChatRequest(message="hi", userId="u", sessionId="s")) == "u"
    assert service.resolve_session(ChatRequest(message="hi", sessionId="s", guestSessionId="g")) == "s"
    assert service.resolve_session(ChatRequest(message="hi", guestSessionId="g")) == "g"
    assert service.resolve_session(ChatRequest(message="hi")).startswith("guest-")


def test_guest_chat_turn(settings):
    agent = MockAgentClient()
    service = ChatService(agent, settings)

    response = service.handle(ChatRequest(message="find nursing jobs", guestSessionId="guest-7"))

    assert len(agent.calls) == 1
    assert [job.title for job in response.jobs] == ["Registered Nurse", "ICU Nurse"]
    assert response.jobs[0].company == "Henry Ford Health"
    assert response.filters["jobTitle"] == ["Nurse"]
    assert "update_dashboard" not in response.message
    assert response.session_id == "guest-7"
    assert response.user_id == "guest_guest-7"
    assert response.user_role == "guest"
    assert response.response_type == "agent_response"
    logger.info(f"Guest chat turn: {len(response.jobs)} jobs")


def test_signed_in_user(settings):
    service = ChatService(MockAgentClient(), settings)
    response = service.handle(ChatRequest(message="hello", userId="user-1"))

    assert response.user_id == "user-1"
    assert response.user_role == "seeker"
    assert response.jobs == []


def test_explicit_role_is_kept(settings):
    service = ChatService(MockAgentClient(), settings)
    response = service.handle(ChatRequest(message="hello", userId="user-1", userRole="student"))
    assert response.user_role == "student"


def test_filter_question_carries_current_filters(settings):
    agent = EchoAgentClient('{"message": "You are searching for nurses."}')
    service = ChatService(agent, settings)

    service.handle(ChatRequest(message="What filters do I have?", currentFilters={"jobTitle": ["Nurse"]}))

    assert agent.prompts[0].startswith("Current active filters:\nJob Title: Nurse")
    assert agent.prompts[0].endswith("What filters do I have?")


def test_plain_prompt_is_untouched(settings):
    agent = EchoAgentClient("ok")
    ChatService(agent, settings).handle(ChatRequest(message="  find jobs  ", currentFilters={"jobTitle": ["Nurse"]}))
    assert agent.prompts == ["find jobs"]


def test_agent_failure_propagates(settings):
    service = ChatService(FailingAgentClient(), settings)

    with pytest.raises(AgentInvocationError):
        service.handle(ChatRequest(message="hi"))


def test_parse_agent_output_plain_text(settings):
    parsed = parse_agent_output("Thanks for chatting today!", settings)

    assert parsed.message == "Thanks for chatting today!"
    assert parsed.jobs == []
    assert parsed.filters == {}
    assert parsed.content_type == ContentType.TEXT


def test_parse_agent_output_api_gateway_body(settings, nurse_reply):
    parsed = parse_agent_output(json.dumps({"response": nurse_reply}), settings)

    assert parsed.content_type == ContentType.JOBS
    assert len(parsed.jobs) == 2
    assert parsed.filters == {"jobTitle": ["Nurse"]}
    assert parsed.message.startswith("Here are some nursing roles:")


def test_message_holding_serialized_reply(settings):
    inner = {"response": "Hi there", "update_dashboard": {"filters": {"jobTitle": ["Nurse"]}}}

    parsed = parse_agent_output(json.dumps({"message": json.dumps(inner)}), settings)

    assert parsed.message == "Hi there"
    assert parsed.filters == {"jobTitle": ["Nurse"]}


def test_json_reply_inside_response_tags(settings):
    body = '<response>{"message": "Thanks!", "filters": {"jobTitle": ["Nurse"]}}</response>'

    parsed = parse_agent_output(body, settings)

    assert parsed.message == "Thanks!"
    assert parsed.filters == {"jobTitle": ["Nurse"]}
    assert parsed.content_type == ContentType.TEXT

"""
Test the agent and chat history clients against fake boto3 clients.

Run with: python -m pytest jobchat/tests/test_agent_client.py -v
"""

import json

import pytest
from botocore.exceptions import ClientError

from jobchat.core.agent_client import (
    LambdaAgentClient, BedrockAgentClient, MockAgentClient, ChatHistoryClient,
    NullChatHistoryClient, AgentInvocationError, ChatHistoryError,
    get_agent_client, get_chat_history_client
)


def _client_error():
    return ClientError({"Error": {"Code": "AccessDeniedException", "Message": "nope"}}, "Invoke")


# ============================================================================
# Lambda proxy
# ============================================================================

def test_lambda_client_returns_gateway_body(fake_lambda):
    lambda_client = fake_lambda({"statusCode": 200, "body": json.dumps({"message": "hi"})})
    client = LambdaAgentClient("agent-proxy", lambda_client=lambda_client)

    reply = client.invoke("find jobs", "guest-1")

    assert reply.body == '{"message": "hi"}'
    assert reply.status_code == 200
    assert reply.session_id == "guest-1"

    call = lambda_client.calls[0]
    assert call["FunctionName"] == "agent-proxy"
    assert json.loads(call["Payload"]) == {"prompt": "find jobs", "sessionId": "guest-1"}


def test_lambda_client_without_body_uses_payload(fake_lambda):
    client = LambdaAgentClient("agent-proxy", lambda_client=fake_lambda({"message": "direct"}))
    assert client.invoke("hi", "s").body == {"message": "direct"}


def test_lambda_function_error(fake_lambda):
    lambda_client = fake_lambda({"errorMessage": "Task timed out"}, function_error="Unhandled")
    client = LambdaAgentClient("agent-proxy", lambda_client=lambda_client)

    with pytest.raises(AgentInvocationError) as excinfo:
        client.invoke("hi", "s")

    assert "Lambda function returned an error" in str(excinfo.value)
    assert "Task timed out" in str(excinfo.value)


def test_lambda_client_error_is_wrapped(fake_lambda):
    client = LambdaAgentClient("agent-proxy", lambda_client=fake_lambda(exc=_client_error()))

    with pytest.raises(AgentInvocationError):
        client.invoke("hi", "s")


# ============================================================================
# Direct runtime
# ============================================================================

def test_bedrock_client_joins_chunks(fake_runtime):
    runtime = fake_runtime(["Hello ", "world"])
    client = BedrockAgentClient("AGENT", "ALIAS", runtime_client=runtime)

    reply = client.invoke("hi", "session-9")

    assert reply.body == "Hello world"
    assert runtime.calls[0]["sessionId"] == "session-9"
    assert runtime.calls[0]["inputText"] == "hi"


def test_bedrock_client_requires_ids(fake_runtime):
    with pytest.raises(ValueError):
        BedrockAgentClient(None, "ALIAS", runtime_client=fake_runtime([]))


# ============================================================================
# Mock and factories
# ============================================================================

def test_mock_client_canned_replies():
    client = MockAgentClient()

    body = json.loads(client.invoke("find nursing jobs", "s").body)
    assert "Registered Nurse" in body["message"]
    assert client.calls == [{"prompt": "find nursing jobs", "sessionId": "s"}]

    body = json.loads(client.invoke("hello", "s").body)
    assert body["message"].startswith("Thanks for chatting today!")


def test_factories_honor_mock_mode(settings):
    assert isinstance(get_agent_client(settings), MockAgentClient)
    assert isinstance(get_chat_history_client(settings), NullChatHistoryClient)


# ============================================================================
# Chat history
# ============================================================================

def test_history_save(fake_lambda):
    lambda_client = fake_lambda({"status": "ok"})
    client = ChatHistoryClient("vectorize-chat", lambda_client=lambda_client)
    record = {"session_id": "s", "user_id": "guest_s", "user_input": "hi", "agent_response": "hello"}

    assert client.save(record) == {"status": "ok"}
    assert json.loads(lambda_client.calls[0]["Payload"]) == record


def test_history_function_error(fake_lambda):
    client = ChatHistoryClient("vectorize-chat", lambda_client=fake_lambda({}, function_error="Unhandled"))

    with pytest.raises(ChatHistoryError) as excinfo:
        client.save({"session_id": "s"})
    assert excinfo.value.function_error is True


def test_history_transport_error(fake_lambda):
    client = ChatHistoryClient("vectorize-chat", lambda_client=fake_lambda(exc=_client_error()))

    with pytest.raises(ChatHistoryError) as excinfo:
        client.save({"session_id": "s"})
    assert excinfo.value.function_error is False

"""
Shared fixtures for the jobchat tests.

Fake boto3 clients stand in for AWS; nothing here touches the network.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

import io
import json

import pytest

from jobchat.core.config import Settings, CorsSettings, ParsingSettings


class FakeLambdaClient:
    """Mimics boto3's Lambda client `invoke` response shape."""

    def __init__(self, payload=None, function_error=None, exc=None):
        self.payload = payload if payload is not None else {}
        self.function_error = function_error
        self.exc = exc
        self.calls = []

    def invoke(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc:
            raise self.exc

        body = self.payload
        if not isinstance(body, (str, bytes)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")

        response = {"StatusCode": 200, "Payload": io.BytesIO(body)}
        if self.function_error:
            response["FunctionError"] = self.function_error
        return response


class FakeRuntimeClient:
    """Mimics bedrock-agent-runtime `invoke_agent` with a chunk stream."""

    def __init__(self, chunks):
        self.chunks = chunks
        self.calls = []

    def invoke_agent(self, **kwargs):
        self.calls.append(kwargs)
        events = [{"chunk": {"bytes": chunk.encode("utf-8")}} for chunk in self.chunks]
        events.append({"trace": {"trace": {}}})
        return {"completion": iter(events), "sessionId": kwargs.get("sessionId")}


class FakeHistoryClient:
    """Records saved chat turns, or raises the given error."""

    def __init__(self, result=None, exc=None):
        self.result = result if result is not None else {"status": "saved"}
        self.exc = exc
        self.records = []

    def save(self, record):
        self.records.append(record)
        if self.exc:
            raise self.exc
        return self.result


@pytest.fixture
def settings():
    return Settings(
        use_mock_agent=True,
        cors=CorsSettings(
            allowed_origins="http://localhost:3000,https://app.example.com",
            default_origin="http://localhost:3000",
        ),
        parsing=ParsingSettings(
            default_filters_on_dashboard_phrase=True,
            infer_filters_from_text=False,
        ),
    )


@pytest.fixture
def parsing_settings(settings):
    return settings.parsing


@pytest.fixture
def netdirector_text():
    return (
        "1. Software Developer at NetDirector in Tampa, FL.\n"
        "   - Location: Tampa, FL\n"
        "   - Salary Range: $60,000-$80,000\n"
    )


@pytest.fixture
def nurse_reply():
    return (
        "<response>Here are some nursing roles:\n"
        "1. Registered Nurse at Henry Ford Health in Detroit, MI\n"
        "2. ICU Nurse at Beaumont Hospital in Royal Oak, MI\n"
        "</response>"
        '<update_dashboard>{"filters": {"jobTitle": ["Nurse"]}}</update_dashboard>'
    )


@pytest.fixture
def fake_lambda():
    return FakeLambdaClient


@pytest.fixture
def fake_runtime():
    return FakeRuntimeClient


@pytest.fixture
def fake_history():
    return FakeHistoryClient

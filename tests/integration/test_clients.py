"""Integration tests for the collaborator HTTP clients"""

import json
import httpx
import pytest
from negotiation_gateway.domain.exceptions import ExternalServiceFailure, ExternalServiceTimeout
from negotiation_gateway.domain.models import ChatMessage
from negotiation_gateway.infrastructure.clients.classifier import ClassifierClient
from negotiation_gateway.infrastructure.clients.model import ModelClient
from tests.fakes import make_document


def model_client(handler) -> ModelClient:
    return ModelClient(
        base_url="http://model.test/v1",
        api_key="test-key",
        model_name="test-model",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def classifier_client(handler) -> ClassifierClient:
    return ClassifierClient(base_url="http://classifier.test", timeout=1.0, transport=httpx.MockTransport(handler))


async def test_model_client_sends_context_and_history():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Hi there"}}]})

    reply = await model_client(handler).complete(
        "SYSTEM", [ChatMessage("assistant", "Hello!"), ChatMessage("user", "Hi")]
    )

    assert reply == "Hi there"
    assert seen["url"] == "http://model.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "SYSTEM"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Hi"},
    ]


async def test_model_client_maps_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow model", request=request)

    with pytest.raises(ExternalServiceTimeout):
        await model_client(handler).complete("SYSTEM", [])


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, json={"error": "overloaded"}),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {"content": None}}]}),
        httpx.Response(200, content=b"not json"),
    ],
)
async def test_model_client_maps_failures(response):
    with pytest.raises(ExternalServiceFailure):
        await model_client(lambda request: response).complete("SYSTEM", [])


async def test_model_client_maps_connection_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ExternalServiceFailure):
        await model_client(handler).complete("SYSTEM", [])


async def test_classifier_client_reads_verdict():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"approved": True, "reason_label": "qualifying_hardship"})

    result = await classifier_client(handler).classify(make_document())

    assert result.approved
    assert result.reason_label == "qualifying_hardship"
    assert seen["url"] == "http://classifier.test/classify"
    assert seen["body"]["name"] == "termination_letter.pdf"
    assert seen["body"]["type"] == "application/pdf"


async def test_classifier_client_rejects_non_boolean_verdict():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"approved": "yes"})

    with pytest.raises(ExternalServiceFailure):
        await classifier_client(handler).classify(make_document())


async def test_classifier_client_maps_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("no answer", request=request)

    with pytest.raises(ExternalServiceTimeout):
        await classifier_client(handler).classify(make_document())

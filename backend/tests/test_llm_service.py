from __future__ import annotations

import pytest

from demo_builder.errors import GenerationError
from demo_builder.services.llm_service import LLMService
from conftest import StubResponse, StubSession


def completion(content):
    return {"choices": [{"message": {"content": content}}]}


def test_missing_key_fails_without_request():
    session = StubSession()
    with pytest.raises(GenerationError):
        LLMService(None, session=session).generate_frontend_code("Acme Corp")
    assert session.requests == []


def test_frontend_prompt_carries_inputs():
    session = StubSession(StubResponse(200, completion("// app/page.tsx")))
    service = LLMService("sk-test", model="gpt-4", session=session)
    code = service.generate_frontend_code("Acme Corp", "https://acme.test/logo.png", "wk_123", "Repository: octo/shop")
    body = session.requests[0]["json"]
    prompt = body["messages"][0]["content"]
    assert code == "// app/page.tsx"
    assert session.requests[0]["url"] == "https://api.openai.com/v1/chat/completions"
    assert body["model"] == "gpt-4"
    assert "Acme Corp" in prompt and "wk_123" in prompt and "octo/shop" in prompt


def test_backend_prompt_carries_credentials():
    session = StubSession(StubResponse(200, completion("// server.js")))
    LLMService("sk-test", session=session).generate_backend_code("pt_1", "spa_1")
    prompt = session.requests[0]["json"]["messages"][0]["content"]
    assert "pt_1" in prompt and "spa_1" in prompt


@pytest.mark.parametrize("response", [
    StubResponse(500, text="upstream"),
    StubResponse(200, {"choices": []}),
    StubResponse(200, completion("   ")),
])
def test_bad_responses_raise_generation_error(response):
    with pytest.raises(GenerationError):
        LLMService("sk-test", session=StubSession(response)).generate_backend_code("pt", "space")

import json

import httpx
import pytest

from sitechat.knowledge.models import Hit
from sitechat.llm.client import GenerationError, LLMClient
from sitechat.llm.prompts import build_chat_messages, build_system_prompt, looks_hungarian


def _client(handler):
    return LLMClient(
        api_key="test-key",
        model="chat-test",
        base_url="https://ai.test",
        temperature=0.2,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_chat_returns_reply_text():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": "  Hello [S1]  "}}]},
        )

    messages = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]
    reply = await _client(handler).chat(messages)

    assert reply == "Hello [S1]"
    assert seen["url"] == "https://ai.test/v1/chat/completions"
    assert seen["payload"]["model"] == "chat-test"
    assert seen["payload"]["messages"] == messages
    assert seen["payload"]["temperature"] == 0.2


@pytest.mark.asyncio
async def test_chat_failure_raises_generation_error():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(GenerationError):
        await _client(handler).chat([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_malformed_completion_raises_generation_error():
    def handler(request):
        return httpx.Response(200, json={"choices": []})

    with pytest.raises(GenerationError):
        await _client(handler).chat([{"role": "user", "content": "hi"}])


class TestPrompts:

    def test_language_detection(self):
        assert looks_hungarian("Mennyibe kerül a szolgáltatás?")
        assert looks_hungarian("Mi a nyitvatartas es van parkolo")
        assert not looks_hungarian("What are your opening hours?")

    def test_system_prompt_language_line(self):
        assert build_system_prompt("Mikor vagytok nyitva? Kérlek").endswith("Respond in Hungarian.")
        assert build_system_prompt("When are you open?").endswith(
            "Respond in the user language (default English)."
        )

    def test_chat_messages_number_sources(self):
        hits = [
            Hit(score=0.9, chunk_text="We open at 9.", document_url="https://a.test/hours", document_title="Hours"),
            Hit(score=0.5, chunk_text="Call 123.", document_url="https://a.test/contact", document_title="Contact"),
        ]

        system, user = build_chat_messages("When do you open?", hits)

        assert system["role"] == "system"
        assert "ONLY using the provided context" in system["content"]
        assert user["role"] == "user"
        assert user["content"].startswith("User question:\nWhen do you open?")
        assert "Source 1 (Hours):\nWe open at 9.\n\nSource 2 (Contact):\nCall 123." in user["content"]
        assert "[S1] Hours - https://a.test/hours\n[S2] Contact - https://a.test/contact" in user["content"]

import asyncio
import json
from types import SimpleNamespace

from conftest import fake_client
from gemini import AdvisorService, FLASH_MODEL, PRO_MODEL

RECS = [
    {"title": "Kisan Credit Card", "description": "Short-term crop loans", "type": "LOAN", "link": "https://example.org/kcc"},
    {"title": "PM-KISAN", "description": "Income support", "type": "SCHEME", "link": "https://example.org/pmkisan"},
]


def run(coro):
    return asyncio.run(coro)


def test_recommendations_are_parsed():
    client = fake_client(json.dumps(RECS))
    recs = run(AdvisorService(client).get_recommendations("hi", "wheat rust"))

    assert [r.type for r in recs] == ["LOAN", "SCHEME"]
    call = client.aio.models.calls[0]
    assert call["model"] == PRO_MODEL
    assert "language code: hi" in call["contents"]
    assert "Context: wheat rust" in call["contents"]


def test_recommendations_fail_closed():
    assert run(AdvisorService(fake_client(RuntimeError("quota"))).get_recommendations("en")) == []
    assert run(AdvisorService(fake_client("not json")).get_recommendations("en")) == []
    assert run(AdvisorService(fake_client(json.dumps([{"title": "x"}]))).get_recommendations("en")) == []
    assert run(AdvisorService(fake_client("")).get_recommendations("en")) == []


def test_recommendations_time_out_to_empty():
    class Slow:
        async def generate_content(self, **kwargs):
            await asyncio.sleep(5)

    client = SimpleNamespace(aio=SimpleNamespace(models=Slow()))
    assert run(AdvisorService(client, timeout=0.01).get_recommendations("en")) == []


def test_voice_command_interpreted():
    client = fake_client(json.dumps({"action": "NAVIGATE_MARKET", "feedback": "Opening the market"}))
    result = run(AdvisorService(client).process_voice_command("show me the market", "en"))
    assert result.action == "NAVIGATE_MARKET"
    assert result.feedback == "Opening the market"
    assert client.aio.models.calls[0]["model"] == FLASH_MODEL


def test_voice_command_unknown_action_is_normalized():
    client = fake_client(json.dumps({"action": "DANCE", "feedback": "ok"}))
    result = run(AdvisorService(client).process_voice_command("dance", "en"))
    assert result.action == "UNKNOWN"
    assert result.feedback == "ok"


def test_voice_command_fails_closed():
    result = run(AdvisorService(fake_client(TimeoutError())).process_voice_command("hello", "pa"))
    assert result.action == "UNKNOWN"
    assert result.feedback == "I didn't quite catch that."

    result = run(AdvisorService(fake_client("")).process_voice_command("hello", "pa"))
    assert result.action == "UNKNOWN"
    assert result.feedback == "Sorry, I encountered an error."


def test_translate_falls_back_to_source_text():
    assert run(AdvisorService(fake_client("नमस्ते")).translate_text("Hello", "hi")) == "नमस्ते"
    assert run(AdvisorService(fake_client(RuntimeError())).translate_text("Hello", "hi")) == "Hello"
    assert run(AdvisorService(fake_client("")).translate_text("Hello", "hi")) == "Hello"

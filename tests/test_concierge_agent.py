import httpx
import pytest

from concierge.agents.concierge_agent import MAX_OUTPUT_TOKENS, ConciergeAgent
from concierge.errors import ConfigurationError, InputValidationError, ProviderError
from concierge.interfaces.user_config_store import AIUserConfig
from concierge.llm.intent_classifier import Intent
from concierge.llm.prompts import DEFAULT_PERSONA, fallback_reply
from concierge.schemas.concierge_schemas import ChatStyle, ChatTurn, TripContext
from tests.conftest import gemini_reply, openai_reply


ROMA = TripContext(destination="Roma", start_date="2025-05-01", end_date="2025-05-07")

RESTAURANT_REPLY = (
    "O Roscioli é uma ótima pedida!\n\n"
    "```json\n"
    '{"restaurant": {"name": "Roscioli", "cuisine": "Romana", "address": "Via dei Giubbonari 21"}}\n'
    "```"
)


def gemini_text(call):
    return [part["text"] for c in call["body"]["contents"] for part in c["parts"]]


# ============================================
# Validation & greetings
# ============================================

@pytest.mark.parametrize("utterance", [None, "", "   \n"])
async def test_missing_prompt(agent, fake_llm, utterance):
    with pytest.raises(InputValidationError) as exc_info:
        await agent.handle(utterance, trip_context=ROMA)
    assert exc_info.value.message == "Missing prompt"
    assert fake_llm.calls == []


async def test_greeting_is_answered_locally(agent, fake_llm):
    result = await agent.handle("oi!", trip_context=ROMA, style=ChatStyle(emojis=False))

    assert result.intent is Intent.GREETING
    assert "Roma" in result.clean_text
    assert result.full_response == result.clean_text
    assert result.structured_data is None
    assert fake_llm.calls == []


# ============================================
# Happy path
# ============================================

async def test_restaurant_request(agent, fake_llm):
    fake_llm.queue("gemini", gemini_reply(RESTAURANT_REPLY))
    history = [
        ChatTurn(role="user", content="onde jantar?"),
        ChatTurn(role="assistant", content="Experimente o Roscioli."),
    ]

    result = await agent.handle(
        "salvar o restaurante Roscioli", trip_context=ROMA, conversation_history=history
    )

    assert result.intent is Intent.RESTAURANT
    assert result.clean_text == "O Roscioli é uma ótima pedida!"
    assert result.full_response == RESTAURANT_REPLY
    assert result.structured_data["restaurant"]["name"] == "Roscioli"
    assert result.model == "gemini-2.5-flash"
    assert result.used_fallback is False

    call = fake_llm.calls_to("gemini")[0]
    assert "key=system-gemini-key" in call["url"]
    assert call["body"]["generationConfig"]["maxOutputTokens"] == MAX_OUTPUT_TOKENS[Intent.RESTAURANT]
    texts = gemini_text(call)
    assert texts[0].startswith(DEFAULT_PERSONA)
    assert texts[0].endswith("onde jantar?")
    assert texts[1] == "Experimente o Roscioli."
    assert '"destination": "Roma"' in texts[2]
    assert texts[2].endswith("salvar o restaurante Roscioli")


@pytest.mark.parametrize("utterance, intent", [
    ("o que fazer à noite?", Intent.GENERAL),
    ("detalhes do hotel Artemide", Intent.ACCOMMODATION),
    ("adicionar o Coliseu e o museu", Intent.ATTRACTION),
])
async def test_output_budget_per_intent(agent, fake_llm, utterance, intent):
    fake_llm.queue("gemini", gemini_reply("Claro!"))

    result = await agent.handle(utterance, trip_context=ROMA)

    assert result.intent is intent
    budget = fake_llm.calls_to("gemini")[0]["body"]["generationConfig"]["maxOutputTokens"]
    assert budget == MAX_OUTPUT_TOKENS[intent]


def test_accommodation_has_largest_budget():
    assert MAX_OUTPUT_TOKENS[Intent.ACCOMMODATION] == max(MAX_OUTPUT_TOKENS.values())


async def test_to_response_shape(agent, fake_llm):
    fake_llm.queue("gemini", gemini_reply(RESTAURANT_REPLY))
    result = await agent.handle("salvar o restaurante Roscioli", trip_context=ROMA)

    assert result.to_response() == {
        "generatedText": "O Roscioli é uma ótima pedida!",
        "fullResponse": RESTAURANT_REPLY,
        "generatedImages": [],
        "structuredData": result.structured_data,
    }


# ============================================
# Model & key resolution
# ============================================

async def test_user_settings_win(agent, store, fake_llm):
    store.save_config("u1", AIUserConfig(
        model="gpt-4.1", api_key="sk-user-key", custom_instructions="Você é um guia de Roma irreverente."
    ))
    fake_llm.queue("openai", openai_reply("Vá ao Pantheon."))

    result = await agent.handle("o que ver hoje?", user_id="u1")

    assert result.provider == "openai"
    call = fake_llm.calls_to("openai")[0]
    assert call["headers"]["authorization"] == "Bearer sk-user-key"
    assert call["body"]["model"] == "gpt-4.1-2025-04-14"
    assert call["body"]["messages"][0]["content"].startswith("Você é um guia de Roma irreverente.")


async def test_user_model_without_key_uses_system_key(agent, store, fake_llm):
    store.save_config("u1", AIUserConfig(model="gpt-5-nano"))
    fake_llm.queue("openai", openai_reply("Ok."))

    await agent.handle("o que ver hoje?", user_id="u1")

    call = fake_llm.calls_to("openai")[0]
    assert call["headers"]["authorization"] == "Bearer sk-system-openai"
    assert call["body"]["model"] == "gpt-5-nano-2025-08-07"


async def test_fallback_profile_used_for_unknown_user(agent, store, fake_llm):
    store.save_config("default", AIUserConfig(model="gpt-5-mini", api_key="sk-profile"))
    fake_llm.queue("openai", openai_reply("Ok."))

    await agent.handle("o que ver hoje?", user_id="someone-new")

    call = fake_llm.calls_to("openai")[0]
    assert call["headers"]["authorization"] == "Bearer sk-profile"
    assert call["body"]["model"] == "gpt-5-mini-2025-08-07"


async def test_no_key_for_family(settings, store, provider_client, fake_llm):
    agent = ConciergeAgent(settings.with_overrides(GEMINI_API_KEY=""), store, provider_client)

    with pytest.raises(ConfigurationError):
        await agent.handle("o que ver hoje?")
    assert fake_llm.calls == []


async def test_unknown_default_model(settings, store, provider_client):
    agent = ConciergeAgent(settings.with_overrides(DEFAULT_MODEL="llama-3"), store, provider_client)

    with pytest.raises(ConfigurationError):
        await agent.handle("o que ver hoje?")


# ============================================
# Fallback
# ============================================

async def test_empty_reply_retries_once_on_other_family(agent, fake_llm):
    fake_llm.queue("gemini", gemini_reply(""))
    fake_llm.queue("openai", openai_reply("Em Roma, prove a carbonara."))

    result = await agent.handle("salvar o restaurante Roscioli", trip_context=ROMA)

    assert result.clean_text == "Em Roma, prove a carbonara."
    assert result.used_fallback is True
    assert result.model == "gpt-4.1-nano"
    assert result.provider == "openai"

    call = fake_llm.calls_to("openai")[0]
    assert call["headers"]["authorization"] == "Bearer sk-system-openai"
    assert call["body"]["model"] == "gpt-4.1-nano-2025-04-14"
    assert call["body"]["max_completion_tokens"] == MAX_OUTPUT_TOKENS[Intent.GENERAL]
    assert "NÃO gere blocos JSON" in call["body"]["messages"][0]["content"]


async def test_empty_reply_and_empty_fallback(agent, fake_llm):
    fake_llm.queue("gemini", gemini_reply("   "))
    fake_llm.queue("openai", openai_reply(""))

    result = await agent.handle("o que fazer à noite?", trip_context=ROMA)

    assert result.clean_text == fallback_reply(ROMA)
    assert result.used_fallback is False
    assert len(fake_llm.calls_to("gemini")) == 1
    assert len(fake_llm.calls_to("openai")) == 1


async def test_empty_reply_without_alternate_key(settings, store, provider_client, fake_llm):
    agent = ConciergeAgent(settings.with_overrides(OPENAI_API_KEY=""), store, provider_client)
    fake_llm.queue("gemini", gemini_reply(""))

    result = await agent.handle("o que fazer à noite?", trip_context=ROMA)

    assert result.clean_text == fallback_reply(ROMA)
    assert len(fake_llm.calls) == 1


async def test_provider_error_without_alternate(settings, store, provider_client, fake_llm):
    agent = ConciergeAgent(settings.with_overrides(OPENAI_API_KEY=""), store, provider_client)
    fake_llm.queue("gemini", httpx.Response(500, text="backend exploded"))

    with pytest.raises(ProviderError) as exc_info:
        await agent.handle("o que fazer à noite?")

    assert exc_info.value.status == 500
    assert exc_info.value.status_code == 500
    assert len(fake_llm.calls) == 1


async def test_provider_error_recovered_by_fallback(agent, fake_llm):
    fake_llm.queue("gemini", httpx.Response(503, text="overloaded"))
    fake_llm.queue("openai", openai_reply("Sugiro o Trastevere."))

    result = await agent.handle("o que fazer à noite?")

    assert result.clean_text == "Sugiro o Trastevere."
    assert result.used_fallback is True


async def test_both_providers_fail_raises_primary_error(agent, fake_llm):
    fake_llm.queue("gemini", httpx.Response(500, text="gemini down"))
    fake_llm.queue("openai", httpx.Response(500, json={"error": {"message": "openai down"}}))

    with pytest.raises(ProviderError) as exc_info:
        await agent.handle("o que fazer à noite?")

    assert exc_info.value.provider == "Gemini"
    assert len(fake_llm.calls) == 2


async def test_openai_primary_falls_back_to_gemini(settings, store, provider_client, fake_llm):
    agent = ConciergeAgent(settings.with_overrides(DEFAULT_MODEL="gpt-4.1"), store, provider_client)
    fake_llm.queue("openai", openai_reply(None))
    fake_llm.queue("gemini", gemini_reply("Visite a Fontana di Trevi."))

    result = await agent.handle("o que fazer à noite?")

    assert result.model == "gemini-2.5-flash"
    assert result.clean_text == "Visite a Fontana di Trevi."
    assert "key=system-gemini-key" in fake_llm.calls_to("gemini")[0]["url"]


async def test_non_json_reply_recovered_by_fallback(agent, fake_llm):
    fake_llm.queue("gemini", httpx.Response(200, text="<html>proxy page</html>"))
    fake_llm.queue("openai", openai_reply("Sugiro o Trastevere."))

    result = await agent.handle("o que fazer à noite?")

    assert result.clean_text == "Sugiro o Trastevere."
    assert result.used_fallback is True
    assert len(fake_llm.calls_to("openai")) == 1


async def test_openai_non_json_reply_recovered_by_fallback(settings, store, provider_client, fake_llm):
    agent = ConciergeAgent(settings.with_overrides(DEFAULT_MODEL="gpt-4.1"), store, provider_client)
    fake_llm.queue("openai", httpx.Response(200, text="<html>proxy page</html>"))
    fake_llm.queue("gemini", gemini_reply("Visite a Fontana di Trevi."))

    result = await agent.handle("o que fazer à noite?")

    assert result.clean_text == "Visite a Fontana di Trevi."
    assert result.provider == "gemini"

# llm/prompts.py
"""
Concierge Prompt Templates
Builds the per-intent system prompt, the wrapped user turn and the canned
greeting / fallback replies.
"""

import json
from typing import Any, Dict, Optional

from langchain_core.prompts import PromptTemplate

from concierge.llm.intent_classifier import Intent
from concierge.schemas.concierge_schemas import ChatStyle, TripContext

# ============================================
# Persona, guardrails, style
# ============================================

DEFAULT_PERSONA = (
    "Você é um Concierge de viagens em português do Brasil, especialista em "
    "sugerir restaurantes, atrações e hospedagens para a viagem do usuário."
)

GUARDRAILS = """REGRAS:
- Responda SOMENTE no contexto da viagem informada (destino, datas e cidades próximas).
- Se o pedido extrapolar a viagem, explique brevemente e traga alternativas relacionadas.
- Só gere um bloco JSON quando o usuário pedir explicitamente para salvar, adicionar ou detalhar algo."""

TONES = {
    "casual": "casual e amigável",
    "neutro": "neutro e objetivo",
    "formal": "formal e cordial",
}
DEFAULT_TONE = "casual"

STYLE_PROMPT = PromptTemplate.from_template(
    """ESTILO:
- Tom: {tone_label}.
- Emojis: {emoji_rule}
- Seja breve: no máximo 2 parágrafos curtos ou uma lista enxuta.
- Termine sempre com uma pergunta empática de acompanhamento."""
)

# ============================================
# Structured suggestion skeletons
# ============================================

SUGGESTION_EXAMPLES: Dict[Intent, Dict[str, Dict[str, str]]] = {
    Intent.RESTAURANT: {
        "restaurant": {
            "name": "Nome do restaurante",
            "description": "Breve descrição do restaurante",
            "cuisine": "Tipo de culinária",
            "address": "Endereço completo",
            "link": "https://site-oficial.com",
            "tripadvisor": "https://www.tripadvisor.com/...",
            "gmap": "https://www.google.com/maps/search/?api=1&query=Nome+Endereco",
            "waze": "https://waze.com/ul?q=Endereco",
            "estimated_amount": "$$",
        }
    },
    Intent.ATTRACTION: {
        "itinerary_item": {
            "title": "Nome da atração",
            "description": "Breve descrição da atração",
            "category": "attraction",
            "location": "Cidade ou bairro",
            "address": "Endereço completo",
            "link": "https://site-oficial.com",
            "tripadvisor_link": "https://www.tripadvisor.com/...",
            "google_maps_link": "https://www.google.com/maps/search/?api=1&query=Nome+Endereco",
            "waze_link": "https://waze.com/ul?q=Endereco",
            "estimated_cost": "Valor aproximado do ingresso",
        }
    },
    Intent.ACCOMMODATION: {
        "accommodation": {
            "hotel_name": "Nome da hospedagem",
            "description": "Breve descrição da hospedagem",
            "accommodation_type": "hotel",
            "address": "Endereço completo",
            "city": "Cidade",
            "country": "País",
            "phone": "+00 00 0000-0000",
            "email": "contato@hotel.com",
            "hotel_link": "https://site-oficial.com",
            "waze_link": "https://waze.com/ul?q=Endereco",
            "estimated_amount": "Valor aproximado da diária",
            "notes": "Observações úteis (check-in, café da manhã, etc.)",
        }
    },
}

TOPIC_TASKS = {
    Intent.RESTAURANT: "o restaurante pedido pelo usuário",
    Intent.ATTRACTION: "a atração ou passeio pedido pelo usuário",
    Intent.ACCOMMODATION: "a hospedagem pedida pelo usuário",
}

TOPIC_PROMPT = PromptTemplate.from_template(
    """TAREFA:
Apresente {task} em poucas linhas e, no final da resposta, inclua um bloco JSON
exatamente neste formato:

```json
{json_example}
```

FORMATAÇÃO:
- Use URLs completas (com https://) em todos os links.
- Links do Google Maps devem seguir o formato https://www.google.com/maps/search/?api=1&query=<nome+endereço>.
- Links do Waze devem seguir o formato https://waze.com/ul?q=<endereço>.
- Deixe vazio ("") qualquer campo que você não souber.
- Não escreva nada depois do bloco JSON."""
)

GENERAL_PROMPT = """TAREFA:
Responda à pergunta do usuário em texto corrido. NÃO gere blocos JSON nem código.
Se o usuário quiser guardar uma sugestão, diga que basta pedir "detalhes de X" ou "salvar X"."""

USER_MESSAGE_PROMPT = PromptTemplate.from_template(
    "Contexto da Viagem:\n{trip_context}\n\nPergunta do usuário:\n{prompt}"
)


def _style_section(style: Optional[ChatStyle]) -> str:
    style = style or ChatStyle()
    tone = (style.tone or DEFAULT_TONE).strip().lower()
    tone_label = TONES.get(tone, TONES[DEFAULT_TONE])
    if style.emojis:
        emoji_rule = "use com moderação e apenas quando fizerem sentido no contexto."
    else:
        emoji_rule = "não use emojis."
    return STYLE_PROMPT.format(tone_label=tone_label, emoji_rule=emoji_rule)


def suggestion_example(intent: Intent) -> str:
    return json.dumps(SUGGESTION_EXAMPLES[intent], ensure_ascii=False, indent=2)


def build_system_prompt(
    intent: Intent,
    custom_instructions: Optional[str] = None,
    style: Optional[ChatStyle] = None,
) -> str:
    """
    Build the system instructions for one request.

    Sections, in order: persona, guardrails, style, then the task section
    for the intent (JSON skeleton for topic intents, no-JSON rule otherwise).

    Args:
        intent: Classified intent (never GREETING)
        custom_instructions: User persona override; blank means default persona
        style: Tone and emoji preferences

    Returns:
        System prompt string
    """
    if intent is Intent.GREETING:
        raise ValueError("greetings are answered without a system prompt")

    persona = (custom_instructions or "").strip() or DEFAULT_PERSONA
    sections = [persona, GUARDRAILS, _style_section(style)]

    if intent in TOPIC_TASKS:
        sections.append(TOPIC_PROMPT.format(
            task=TOPIC_TASKS[intent],
            json_example=suggestion_example(intent),
        ))
    else:
        sections.append(GENERAL_PROMPT)

    return "\n\n".join(sections)


def trip_context_payload(trip_context: Optional[TripContext], trip_id: Optional[str] = None) -> Dict[str, Any]:
    if trip_context is None:
        return {"id": trip_id} if trip_id else {}
    payload = trip_context.model_dump(exclude_none=True)
    if not payload.get("destinations"):
        payload.pop("destinations", None)
    if trip_id and "id" not in payload:
        payload["id"] = trip_id
    return payload


def build_user_message(
    prompt: str,
    trip_context: Optional[TripContext] = None,
    trip_id: Optional[str] = None,
) -> str:
    """Wrap the current utterance with the trip context JSON"""
    context_json = json.dumps(trip_context_payload(trip_context, trip_id), ensure_ascii=False, indent=2)
    return USER_MESSAGE_PROMPT.format(trip_context=context_json, prompt=prompt)


# ============================================
# Canned replies
# ============================================

def greeting_reply(trip_context: Optional[TripContext] = None, style: Optional[ChatStyle] = None) -> str:
    """Reply for greetings, built without calling a provider"""
    style = style or ChatStyle()
    destination = trip_context.primary_destination if trip_context else None

    if destination:
        text = (
            f"Olá! Sou seu concierge para a viagem a {destination}. "
            "Posso sugerir restaurantes, atrações ou hospedagens. Por onde começamos?"
        )
    else:
        text = (
            "Olá! Sou seu concierge de viagens. "
            "Posso sugerir restaurantes, atrações ou hospedagens. Por onde começamos?"
        )

    if style.emojis:
        text += " 👋"
    return text


def fallback_reply(trip_context: Optional[TripContext] = None) -> str:
    """Deterministic reply used when neither the model nor extraction produced text"""
    destination = trip_context.primary_destination if trip_context else None
    where = f" em {destination}" if destination else " na sua viagem"
    return (
        f"Posso ajudar com sugestões{where}! Quer dicas de comida, atrações, museus ou compras? "
        'Se quiser guardar alguma sugestão, é só pedir "detalhes de X" ou "salvar X".'
    )

# llm/extractor.py
"""
Structured Suggestion Extractor
Pulls the fenced JSON block out of a model reply:
- display text is the reply with every fenced block removed
- structured data is the first block, if it parses as a JSON object

Models are not guaranteed to emit valid JSON, so every stage degrades to
plain text instead of raising.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from loguru import logger

from concierge.llm.intent_classifier import TOPIC_INTENTS, Intent
from concierge.llm.prompts import fallback_reply
from concierge.schemas.concierge_schemas import TripContext

FENCED_BLOCK_RE = re.compile(r"```(?:json)?[ \t]*\n?([\s\S]*?)```", re.IGNORECASE)

GENERIC_FOUND_TEXT = "Encontrei uma boa opção para a sua viagem! Confira os detalhes abaixo."


@dataclass
class ExtractionResult:
    clean_text: str
    structured_data: Optional[Dict[str, Any]] = None


def _field(record: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def summarize_suggestion(data: Dict[str, Any]) -> str:
    """
    Short sentence describing a parsed suggestion.

    Example:
        >>> summarize_suggestion({"restaurant": {"name": "Roscioli", "cuisine": "Italiana"}})
        'Encontrei o restaurante Roscioli (Italiana).'
    """
    restaurant = data.get("restaurant")
    if isinstance(restaurant, dict):
        name = _field(restaurant, "name") or "sugerido"
        text = f"Encontrei o restaurante {name}"
        cuisine = _field(restaurant, "cuisine", "description")
        if cuisine:
            text += f" ({cuisine})"
        address = _field(restaurant, "address")
        if address:
            text += f", em {address}"
        return text + "."

    item = data.get("itinerary_item")
    if isinstance(item, dict):
        title = _field(item, "title", "name") or "esta atração"
        text = f"Sugiro visitar {title}"
        description = _field(item, "description")
        if description:
            text += f": {description}"
        address = _field(item, "address", "location")
        if address:
            text += f" (endereço: {address})"
        return text + "."

    accommodation = data.get("accommodation")
    if isinstance(accommodation, dict):
        name = _field(accommodation, "hotel_name", "name") or "sugerida"
        text = f"Encontrei a hospedagem {name}"
        description = _field(accommodation, "description", "accommodation_type")
        if description:
            text += f" ({description})"
        address = _field(accommodation, "address", "city")
        if address:
            text += f", em {address}"
        return text + "."

    return GENERIC_FOUND_TEXT


def extract(
    raw_text: str,
    intent: Intent,
    trip_context: Optional[TripContext] = None,
) -> ExtractionResult:
    """
    Split a model reply into display text and an optional suggestion.

    Args:
        raw_text: Full provider reply
        intent: Intent of the request; only topic intents carry suggestions
        trip_context: Used for the destination in the final fallback sentence

    Returns:
        ExtractionResult whose clean_text is never empty
    """
    raw_text = raw_text or ""

    if intent not in TOPIC_INTENTS:
        return ExtractionResult(raw_text if raw_text.strip() else fallback_reply(trip_context))

    blocks = FENCED_BLOCK_RE.findall(raw_text)
    if not blocks:
        return ExtractionResult(raw_text if raw_text.strip() else fallback_reply(trip_context))

    clean_text = FENCED_BLOCK_RE.sub("", raw_text).strip()
    structured_data = None

    try:
        parsed = json.loads(blocks[0].strip())
        if isinstance(parsed, dict):
            structured_data = parsed
        else:
            logger.warning(f"Ignoring JSON block of type {type(parsed).__name__}")
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse JSON block from model reply: {e}")

    if not clean_text and structured_data is not None:
        clean_text = summarize_suggestion(structured_data)

    if not clean_text:
        clean_text = fallback_reply(trip_context)

    return ExtractionResult(clean_text, structured_data)

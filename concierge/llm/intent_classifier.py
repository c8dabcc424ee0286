# llm/intent_classifier.py
"""
Intent Classifier for the Concierge
Maps a user utterance to one of five intents:
- greeting: short hello / thanks, answered without calling a provider
- restaurant, accommodation, attraction: user asked to save or detail something
- general: everything else

Topic keywords alone never yield a topic intent. The utterance must also carry
a request signal ("detalhes", "salvar", "nome do", ...) so that structured JSON
is only requested from the model when the user wants to keep the suggestion.
"""

import re
from enum import Enum
from typing import Pattern, Sequence, Tuple
from loguru import logger


class Intent(str, Enum):
    GREETING = "greeting"
    GENERAL = "general"
    RESTAURANT = "restaurant"
    ACCOMMODATION = "accommodation"
    ATTRACTION = "attraction"


TOPIC_INTENTS = frozenset({Intent.RESTAURANT, Intent.ACCOMMODATION, Intent.ATTRACTION})

THANKS_MAX_LENGTH = 30


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# ============================================
# Keyword tables
# ============================================

GREETING_PATTERNS = _compile(
    r"^\s*(oi+|ol[áa]|hello|hi|hey|opa|salve|e\s?a[íi]|bom\s+dia|boa\s+tarde|boa\s+noite|"
    r"buenos\s+d[íi]as|good\s+(morning|afternoon|evening))\s*[!.,?]*\s*$",
)

THANKS_PATTERNS = _compile(
    r"\b(obrigad[oa]s?|brigad[oa]|valeu|agradeço|thanks|thank\s+you|gracias)\b",
)

DETAIL_PATTERNS = _compile(
    r"\b(detalhes?|detalhar|salvar|salve|salva|guardar|adicionar|adicione|adiciona|"
    r"incluir|inclua|inclui|save|add|details?)\b",
    r"\binforma[çc](ão|ões|ao|oes)\s+complet[ao]s?\b",
    r"\b(nome|endere[çc]o|telefone|site|link)\s+d(o|a|os|as|e)\b",
)

# Evaluated in this order; the first matching set wins.
INTENT_RULES: Tuple[Tuple[Intent, Tuple[Pattern[str], ...]], ...] = (
    (Intent.ACCOMMODATION, _compile(
        r"\b(hot[ée]is|hotels?|hoteis|hospedagens?|hospedar|pousadas?|hostels?|airbnb|"
        r"acomoda[çc](ão|ões|ao|oes)|resorts?|apartamentos?|flats?|accommodations?|"
        r"lodging)\b",
    )),
    (Intent.RESTAURANT, _compile(
        r"\b(restaurantes?|restaurants?|comida|comer|jantar|almo[çc]o|almo[çc]ar|"
        r"caf[ée]\s+da\s+manh[ãa]|gastronomia|culin[áa]ria|pizzarias?|bistr[ôo]s?|"
        r"churrascarias?|trattorias?|cantinas?|food|dinner|lunch)\b",
    )),
    (Intent.ATTRACTION, _compile(
        r"\b(atra[çc](ão|ões|ao|oes)|passeios?|museus?|parques?|monumentos?|igrejas?|"
        r"teatros?|praias?|trilhas?|vin[íi]colas?|mirantes?|galerias?|tours?|"
        r"pontos?\s+tur[íi]sticos?|attractions?|museums?)\b",
    )),
)


# ============================================
# Classifier
# ============================================

def _matches(patterns: Sequence[Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def is_greeting(utterance: str) -> bool:
    """Short hello, or a short thanks-expression"""
    text = utterance.strip()
    if _matches(GREETING_PATTERNS, text):
        return True
    return len(text) < THANKS_MAX_LENGTH and _matches(THANKS_PATTERNS, text)


def wants_details(utterance: str) -> bool:
    """True when the user asks to save, add or detail something"""
    return _matches(DETAIL_PATTERNS, utterance)


def classify(utterance: str) -> Intent:
    """
    Classify an utterance.

    Args:
        utterance: Raw user text for one turn

    Returns:
        Intent for the utterance

    Example:
        >>> classify("oi")
        <Intent.GREETING: 'greeting'>
        >>> classify("restaurantes em Roma")
        <Intent.GENERAL: 'general'>
        >>> classify("salvar o restaurante Cacio e Pepe")
        <Intent.RESTAURANT: 'restaurant'>
    """
    if is_greeting(utterance):
        return Intent.GREETING

    if wants_details(utterance):
        for intent, patterns in INTENT_RULES:
            if _matches(patterns, utterance):
                logger.debug(f"Classified utterance as {intent.value}")
                return intent

    return Intent.GENERAL

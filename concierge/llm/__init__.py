# llm/__init__.py
"""
LLM Components Package

- intent_classifier: utterance -> Intent
- prompts: system prompt and canned replies
- providers: OpenAI / Gemini adapters
- extractor: structured suggestion from a model reply
"""

from .intent_classifier import Intent, TOPIC_INTENTS, classify
from .extractor import ExtractionResult, extract
from .prompts import build_system_prompt, build_user_message
from .providers import (
    MODEL_CATALOG,
    ModelSpec,
    ProviderClient,
    ProviderFamily,
    ProviderRequest,
    resolve_model,
)

__all__ = [
    "Intent",
    "TOPIC_INTENTS",
    "classify",
    "ExtractionResult",
    "extract",
    "build_system_prompt",
    "build_user_message",
    "MODEL_CATALOG",
    "ModelSpec",
    "ProviderClient",
    "ProviderFamily",
    "ProviderRequest",
    "resolve_model",
]

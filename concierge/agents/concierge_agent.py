# agents/concierge_agent.py
"""
Concierge Agent (chat-facing)
One request in, one reply out:
1. Validate the utterance
2. Resolve model + API key for the user (user -> fallback profile -> system default)
3. Classify intent; greetings are answered locally
4. Build prompt, call the provider, retry once on the other provider family
   when the reply is empty, then extract the structured suggestion

Uses:
- Intent Classifier for routing
- Prompt templates for the per-intent system prompt
- ProviderClient for OpenAI / Gemini calls
- Extractor for the fenced JSON suggestion
- UserConfigStore for per-user model and key
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from loguru import logger

from concierge.config import Settings
from concierge.errors import ConfigurationError, InputValidationError, ProviderError
from concierge.interfaces.user_config_store import AIUserConfig, UserConfigStore
from concierge.llm.extractor import extract
from concierge.llm.intent_classifier import Intent, classify
from concierge.llm.prompts import build_system_prompt, build_user_message, greeting_reply
from concierge.llm.providers import (
    ModelSpec,
    ProviderClient,
    ProviderFamily,
    ProviderRequest,
    resolve_model,
)
from concierge.schemas.concierge_schemas import ChatStyle, ChatTurn, TripContext


# Output budget per intent; accommodation has the largest JSON schema
MAX_OUTPUT_TOKENS: Dict[Intent, int] = {
    Intent.GENERAL: 1200,
    Intent.RESTAURANT: 1400,
    Intent.ACCOMMODATION: 1800,
    Intent.ATTRACTION: 1400,
}


@dataclass
class ResolvedModel:
    """Model and credential chosen for one request"""
    spec: ModelSpec
    api_key: str
    custom_instructions: str = ""
    source: str = "system"  # user | profile | system


@dataclass
class FallbackOutcome:
    """Result of the one-shot cross-provider retry. `error` is never raised."""
    text: str = ""
    model: Optional[ModelSpec] = None
    error: Optional[Exception] = None
    attempted: bool = False


@dataclass
class PipelineResult:
    """Final concierge reply"""
    clean_text: str
    full_response: str
    intent: Intent
    structured_data: Optional[Dict[str, Any]] = None
    model: Optional[str] = None
    provider: Optional[str] = None
    used_fallback: bool = False
    generated_images: List[Dict[str, Any]] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return {
            "generatedText": self.clean_text,
            "fullResponse": self.full_response,
            "generatedImages": list(self.generated_images),
            "structuredData": self.structured_data,
        }


class ModelResolver:
    """
    Picks the model and key for a user:
    user settings -> named fallback profile -> system default model/key.
    """

    def __init__(self, settings: Settings, store: UserConfigStore):
        self.settings = settings
        self.store = store

    def system_key(self, family: ProviderFamily) -> str:
        if family is ProviderFamily.OPENAI:
            return self.settings.OPENAI_API_KEY
        return self.settings.GEMINI_API_KEY

    def _lookup(self, user_id: Optional[str]) -> Tuple[Optional[AIUserConfig], str]:
        config = self.store.get_config(user_id) if user_id else None
        if config is not None:
            return config, "user"

        profile_id = self.settings.FALLBACK_PROFILE_ID
        if profile_id:
            config = self.store.get_config(profile_id)
            if config is not None:
                return config, "profile"

        return None, "system"

    def resolve(self, user_id: Optional[str]) -> ResolvedModel:
        """
        Raises:
            ConfigurationError: unknown model, or no key for its provider
        """
        config, source = self._lookup(user_id)

        model_name = (config.model if config else "") or self.settings.DEFAULT_MODEL
        spec = resolve_model(model_name)
        api_key = (config.api_key if config else "") or self.system_key(spec.family)

        if not api_key:
            raise ConfigurationError(
                f"Chave de API {spec.family.display_name} não configurada para o modelo {spec.name}."
            )

        logger.info(f"Resolved model {spec.name} ({spec.family.value}) from {source} settings")
        return ResolvedModel(
            spec=spec,
            api_key=api_key,
            custom_instructions=config.custom_instructions if config else "",
            source=source,
        )

    def alternate(self, family: ProviderFamily) -> Optional[ResolvedModel]:
        """Model + system key of the other provider family, if that family has a key"""
        other = family.other
        api_key = self.system_key(other)
        if not api_key:
            return None

        if other is ProviderFamily.OPENAI:
            model_name = self.settings.FALLBACK_OPENAI_MODEL
        else:
            model_name = self.settings.FALLBACK_GEMINI_MODEL

        try:
            spec = resolve_model(model_name)
        except ConfigurationError as e:
            logger.warning(f"Fallback model unusable: {e}")
            return None
        return ResolvedModel(spec=spec, api_key=api_key, source="system")


class ConciergeAgent:
    """
    Concierge request pipeline.
    Stateless between requests; all configuration is passed in.
    """

    def __init__(
        self,
        settings: Settings,
        store: UserConfigStore,
        providers: ProviderClient,
    ):
        self.settings = settings
        self.store = store
        self.providers = providers
        self.resolver = ModelResolver(settings, store)

    def build_request(
        self,
        intent: Intent,
        utterance: str,
        trip_context: Optional[TripContext],
        history: Sequence[ChatTurn],
        custom_instructions: str = "",
        style: Optional[ChatStyle] = None,
        trip_id: Optional[str] = None,
    ) -> ProviderRequest:
        """System prompt + prior turns + current turn wrapped with trip context"""
        messages = [{
            "role": "system",
            "content": build_system_prompt(intent, custom_instructions, style),
        }]
        for turn in history:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({
            "role": "user",
            "content": build_user_message(utterance, trip_context, trip_id),
        })
        return ProviderRequest(messages=messages, max_output_tokens=MAX_OUTPUT_TOKENS[intent])

    async def _try_fallback(
        self,
        primary: ResolvedModel,
        utterance: str,
        trip_context: Optional[TripContext],
        history: Sequence[ChatTurn],
        style: Optional[ChatStyle],
        trip_id: Optional[str],
    ) -> FallbackOutcome:
        """One retry on the other provider family with the general prompt"""
        alternate = self.resolver.alternate(primary.spec.family)
        if alternate is None:
            logger.info(f"No fallback available for {primary.spec.family.value}")
            return FallbackOutcome()

        request = self.build_request(
            Intent.GENERAL, utterance, trip_context, history,
            primary.custom_instructions, style, trip_id,
        )
        logger.info(f"Retrying on {alternate.spec.family.value} ({alternate.spec.name})")
        try:
            text = await self.providers.invoke(
                alternate.spec.family, alternate.spec.provider_model_id, alternate.api_key, request
            )
        except ProviderError as e:
            return FallbackOutcome(model=alternate.spec, error=e, attempted=True)
        return FallbackOutcome(text=text, model=alternate.spec, attempted=True)

    async def handle(
        self,
        utterance: Optional[str],
        trip_context: Optional[TripContext] = None,
        conversation_history: Optional[Sequence[ChatTurn]] = None,
        user_id: Optional[str] = None,
        style: Optional[ChatStyle] = None,
        trip_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Answer one concierge turn.

        Args:
            utterance: User text for this turn
            trip_context: Active trip snapshot
            conversation_history: Prior turns, oldest first
            user_id: Used to look up the user's model and key
            style: Tone / emoji preferences
            trip_id: Trip id, used when no trip context is sent

        Returns:
            PipelineResult with non-empty clean_text

        Raises:
            InputValidationError: empty utterance
            ConfigurationError: no usable model/key
            ProviderError: primary call failed and the fallback produced nothing
        """
        if not utterance or not utterance.strip():
            raise InputValidationError("Missing prompt")

        style = style or ChatStyle()
        history = list(conversation_history or [])

        resolved = self.resolver.resolve(user_id)

        intent = classify(utterance)
        logger.info(f"Concierge turn: intent={intent.value} user={user_id or 'anonymous'}")

        if intent is Intent.GREETING:
            text = greeting_reply(trip_context, style)
            return PipelineResult(clean_text=text, full_response=text, intent=intent)

        request = self.build_request(
            intent, utterance, trip_context, history,
            resolved.custom_instructions, style, trip_id,
        )

        model = resolved.spec
        raw_text = ""
        primary_error: Optional[ProviderError] = None
        try:
            raw_text = await self.providers.invoke(
                model.family, model.provider_model_id, resolved.api_key, request
            )
        except ProviderError as e:
            logger.error(f"Primary provider call failed: {e}")
            primary_error = e

        used_fallback = False
        if not raw_text.strip():
            if primary_error is None:
                logger.warning(f"{model.family.value} returned an empty reply")
            outcome = await self._try_fallback(resolved, utterance, trip_context, history, style, trip_id)
            if outcome.error is not None:
                logger.warning(f"Fallback provider failed: {outcome.error}")
            elif outcome.attempted and not outcome.text.strip():
                logger.warning(f"Fallback model {outcome.model.name} returned an empty reply")

            if outcome.text.strip():
                raw_text = outcome.text
                model = outcome.model
                used_fallback = True
            elif primary_error is not None:
                raise primary_error

        extraction = extract(raw_text, intent, trip_context)
        if extraction.structured_data is not None:
            logger.info(f"Extracted structured suggestion: {list(extraction.structured_data)}")

        return PipelineResult(
            clean_text=extraction.clean_text,
            full_response=raw_text,
            intent=intent,
            structured_data=extraction.structured_data,
            model=model.name,
            provider=model.family.value,
            used_fallback=used_fallback,
        )

# llm/providers.py
"""
Language-model provider adapters
Two interchangeable call shapes behind one contract:
- OPENAI: chat-completions (system/user/assistant messages)
- GEMINI: generateContent (no system role, key as query parameter)

The family of a model is decided once, by MODEL_CATALOG. Adapters never retry;
retry and fallback belong to the ConciergeAgent.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion
from loguru import logger

from concierge.errors import ConfigurationError, ProviderError


class ProviderFamily(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"

    @property
    def display_name(self) -> str:
        return "OpenAI" if self is ProviderFamily.OPENAI else "Google"

    @property
    def other(self) -> "ProviderFamily":
        return ProviderFamily.GEMINI if self is ProviderFamily.OPENAI else ProviderFamily.OPENAI


@dataclass(frozen=True)
class ModelSpec:
    """A selectable model and the provider-side identifier it is sent as"""
    name: str
    family: ProviderFamily
    provider_model_id: str
    label: str


# Short names the settings screen offers, mapped to dated provider ids
_CATALOG_ENTRIES = (
    ModelSpec("gemini-2.5-flash", ProviderFamily.GEMINI, "gemini-2.5-flash", "Gemini 2.5 Flash"),
    ModelSpec("gpt-5-nano", ProviderFamily.OPENAI, "gpt-5-nano-2025-08-07", "GPT-5 Nano"),
    ModelSpec("gpt-5-mini", ProviderFamily.OPENAI, "gpt-5-mini-2025-08-07", "GPT-5 Mini"),
    ModelSpec("gpt-4.1-nano", ProviderFamily.OPENAI, "gpt-4.1-nano-2025-04-14", "GPT-4.1 Nano"),
    ModelSpec("gpt-4.1", ProviderFamily.OPENAI, "gpt-4.1-2025-04-14", "GPT-4.1"),
)

SELECTABLE_MODELS: List[ModelSpec] = list(_CATALOG_ENTRIES)

# Both the short name and the dated id resolve to the same spec
MODEL_CATALOG: Dict[str, ModelSpec] = {}
for _spec in _CATALOG_ENTRIES:
    MODEL_CATALOG[_spec.name] = _spec
    MODEL_CATALOG[_spec.provider_model_id] = _spec


def resolve_model(name: Optional[str]) -> ModelSpec:
    """
    Look up a configured model name.

    Raises:
        ConfigurationError: if the name is not in the catalog
    """
    spec = MODEL_CATALOG.get((name or "").strip().lower())
    if spec is None:
        raise ConfigurationError(f"Modelo de IA não suportado: {name!r}")
    return spec


@dataclass
class ProviderRequest:
    """Normalized outbound request: system prompt first, then history, then the current turn"""
    messages: List[Dict[str, str]]
    max_output_tokens: int

    @property
    def system_prompt(self) -> str:
        return "\n\n".join(m["content"] for m in self.messages if m["role"] == "system")

    @property
    def chat_messages(self) -> List[Dict[str, str]]:
        return [m for m in self.messages if m["role"] != "system"]


# Names used in ProviderError messages
PROVIDER_NAMES: Dict[ProviderFamily, str] = {
    ProviderFamily.OPENAI: "OpenAI",
    ProviderFamily.GEMINI: "Gemini",
}


class ProviderClient:
    """
    Sends a ProviderRequest to the right provider and returns its raw text.
    A single httpx.AsyncClient is shared by both families.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        openai_base_url: str = "https://api.openai.com/v1",
        gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta",
    ):
        self.timeout = timeout
        self.openai_base_url = openai_base_url
        self.gemini_base_url = gemini_base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        if self._owns_client:
            await self.http_client.aclose()

    async def invoke(
        self,
        family: ProviderFamily,
        model: str,
        api_key: str,
        request: ProviderRequest,
    ) -> str:
        """
        Call a provider.

        Args:
            family: Provider family to call
            model: Provider-side model id
            api_key: Credential for that provider
            request: Normalized messages and output budget

        Returns:
            Raw response text (may be empty)

        Raises:
            ProviderError: non-2xx or non-JSON response, timeout, network failure
        """
        logger.info(
            f"Calling {family.value} model={model} "
            f"messages={len(request.messages)} max_tokens={request.max_output_tokens}"
        )
        if family is ProviderFamily.OPENAI:
            call = self._invoke_openai(model, api_key, request)
        else:
            call = self._invoke_gemini(model, api_key, request)

        # httpx timeouts are per phase; this bounds the whole call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(
                PROVIDER_NAMES[family], None, f"timeout after {self.timeout:.0f}s"
            ) from e

    # ============================================
    # OpenAI (chat completions)
    # ============================================

    async def _invoke_openai(self, model: str, api_key: str, request: ProviderRequest) -> str:
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.openai_base_url,
            http_client=self.http_client,
            timeout=self.timeout,
            max_retries=0,
        )
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=request.messages,
                max_completion_tokens=request.max_output_tokens,
            )
        except openai.APIStatusError as e:
            raise ProviderError("OpenAI", e.status_code, e.response.text) from e
        except openai.APITimeoutError as e:
            raise ProviderError("OpenAI", None, f"timeout after {self.timeout:.0f}s") from e
        except openai.APIError as e:
            raise ProviderError("OpenAI", None, str(e)) from e

        if not isinstance(response, ChatCompletion):
            raise ProviderError("OpenAI", None, f"unexpected response: {str(response)[:200]}")

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    # ============================================
    # Gemini (generateContent)
    # ============================================

    @staticmethod
    def build_gemini_contents(request: ProviderRequest) -> List[Dict[str, Any]]:
        """Gemini has no system role: the system prompt goes in front of the first user message"""
        system_prompt = request.system_prompt
        contents = []
        system_placed = not system_prompt

        for message in request.chat_messages:
            text = message["content"]
            if message["role"] == "user" and not system_placed:
                text = f"{system_prompt}\n\n{text}"
                system_placed = True
            role = "model" if message["role"] == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": text}]})

        if not system_placed:
            contents.insert(0, {"role": "user", "parts": [{"text": system_prompt}]})

        return contents

    async def _invoke_gemini(self, model: str, api_key: str, request: ProviderRequest) -> str:
        url = f"{self.gemini_base_url}/models/{model}:generateContent"
        body = {
            "contents": self.build_gemini_contents(request),
            "generationConfig": {"maxOutputTokens": request.max_output_tokens},
        }

        try:
            response = await self.http_client.post(
                url,
                params={"key": api_key},
                json=body,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError("Gemini", None, f"timeout after {self.timeout:.0f}s") from e
        except httpx.HTTPError as e:
            raise ProviderError("Gemini", None, str(e)) from e

        if not response.is_success:
            raise ProviderError("Gemini", response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Gemini", response.status_code, response.text) from e

        try:
            return data["candidates"][0]["content"]["parts"][0].get("text") or ""
        except (KeyError, IndexError, TypeError):
            logger.warning("Gemini response had no candidate text")
            return ""

# api/concierge.py
"""
Concierge API Endpoints
- POST /api/concierge/agent: one concierge chat turn
- GET/PUT /api/concierge/users/{user_id}/ai-settings: per-user model and key
- GET /api/concierge/models: selectable models
- GET /api/concierge/suggestions/{category}: quick suggestions for the chat UI
"""

import time
from typing import Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from concierge.agents.concierge_agent import ConciergeAgent
from concierge.errors import ConciergeError
from concierge.interfaces.user_config_store import AIUserConfig, UserConfigStore, mask_api_key
from concierge.llm.providers import SELECTABLE_MODELS, resolve_model
from concierge.schemas.concierge_schemas import (
    AISettingsRequest,
    AISettingsResponse,
    ConciergeRequest,
    ConciergeResponse,
    ErrorResponse,
    ModelInfo,
    ModelsResponse,
    SuggestionsResponse,
)


router = APIRouter(prefix="/api/concierge", tags=["concierge"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ============================================
# Dependencies
# ============================================

def get_agent(request: Request) -> ConciergeAgent:
    return request.app.state.concierge_agent


def get_store(request: Request) -> UserConfigStore:
    return request.app.state.user_config_store


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ============================================
# Quick suggestions per chat category
# ============================================

QUICK_SUGGESTIONS: Dict[str, List[str]] = {
    "restaurante": [
        "Restaurante italiano romântico",
        "Comida local típica",
        "Opções vegetarianas",
        "Café da manhã especial",
    ],
    "roteiro": [
        "Pontos turísticos famosos",
        "Atividades ao ar livre",
        "Museus e cultura",
        "Vida noturna",
    ],
    "hospedagem": [
        "Hotel 4 estrelas centro",
        "Opções econômicas",
        "Hotel com spa",
        "Perto de atrações",
    ],
    "diversos": [
        "Onde comprar souvenirs",
        "Farmácia 24h",
        "Shopping centers",
        "Mercados locais",
    ],
}


# ============================================
# Concierge agent
# ============================================

@router.post("/agent", response_model=ConciergeResponse, responses=ERROR_RESPONSES)
async def concierge_agent(body: ConciergeRequest, agent: ConciergeAgent = Depends(get_agent)):
    """
    One concierge turn.

    Example:
        POST /api/concierge/agent
        {
            "prompt": "salvar o restaurante Cacio e Pepe",
            "tripId": "trip-1",
            "tripContext": {"destination": "Roma"},
            "userId": "user-1",
            "style": {"tone": "casual", "emojis": true},
            "conversationHistory": []
        }
    """
    start_time = time.time()

    try:
        result = await agent.handle(
            body.prompt,
            trip_context=body.tripContext,
            conversation_history=body.conversationHistory,
            user_id=body.userId,
            style=body.style,
            trip_id=body.tripId,
        )
    except ConciergeError as e:
        logger.warning(f"Concierge request rejected ({e.status_code}): {e.message}")
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Unexpected concierge error: {e}")
        return error_response(500, str(e) or "Unexpected error")

    logger.info(
        f"Concierge reply: intent={result.intent.value} model={result.model} "
        f"fallback={result.used_fallback} structured={result.structured_data is not None} "
        f"({time.time() - start_time:.2f}s)"
    )
    return ConciergeResponse(**result.to_response())


# ============================================
# AI settings
# ============================================

def _settings_response(user_id: str, config: AIUserConfig) -> AISettingsResponse:
    spec = resolve_model(config.model)
    return AISettingsResponse(
        userId=user_id,
        model=spec.name,
        provider=spec.family.display_name,
        apiKey=mask_api_key(config.api_key),
        hasApiKey=bool(config.api_key),
        customInstructions=config.custom_instructions,
    )


@router.get("/users/{user_id}/ai-settings", response_model=AISettingsResponse, responses=ERROR_RESPONSES)
async def get_ai_settings(user_id: str, store: UserConfigStore = Depends(get_store)):
    """Get a user's AI settings (API key masked)"""
    config = store.get_config(user_id)
    if config is None:
        return error_response(404, "AI settings not found")
    try:
        return _settings_response(user_id, config)
    except ConciergeError as e:
        return error_response(e.status_code, e.message)


@router.put("/users/{user_id}/ai-settings", response_model=AISettingsResponse, responses=ERROR_RESPONSES)
async def save_ai_settings(
    user_id: str,
    body: AISettingsRequest,
    store: UserConfigStore = Depends(get_store),
):
    """Save a user's model, API key and custom instructions"""
    try:
        spec = resolve_model(body.model)
    except ConciergeError as e:
        return error_response(e.status_code, e.message)

    config = store.save_config(user_id, AIUserConfig(
        model=spec.name,
        api_key=body.apiKey.strip(),
        custom_instructions=body.customInstructions.strip(),
    ))
    return _settings_response(user_id, config)


# ============================================
# Catalog & suggestions
# ============================================

@router.get("/models", response_model=ModelsResponse)
async def list_models(agent: ConciergeAgent = Depends(get_agent)):
    """Models a user can pick on the settings screen"""
    models = [
        ModelInfo(
            value=spec.name,
            label=spec.label,
            provider=spec.family.display_name,
            family=spec.family.value,
            systemKeyConfigured=bool(agent.resolver.system_key(spec.family)),
        )
        for spec in SELECTABLE_MODELS
    ]
    return ModelsResponse(models=models, defaultModel=agent.settings.DEFAULT_MODEL)


@router.get("/suggestions/{category}", response_model=SuggestionsResponse)
async def quick_suggestions(category: str):
    """Quick suggestions for a chat category (restaurante, roteiro, hospedagem, diversos)"""
    key = category.strip().lower()
    return SuggestionsResponse(category=key, suggestions=QUICK_SUGGESTIONS.get(key, []))

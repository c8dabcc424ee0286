# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for the concierge API requests/responses.
"""

from .concierge_schemas import (
    # Trip & conversation
    TripContext, ChatTurn, ChatStyle,
    # Concierge agent
    ConciergeRequest, ConciergeResponse, ErrorResponse,
    # AI settings
    AISettingsRequest, AISettingsResponse,
    # Catalog / health
    ModelInfo, ModelsResponse, SuggestionsResponse, HealthResponse,
)

__all__ = [
    "TripContext", "ChatTurn", "ChatStyle",
    "ConciergeRequest", "ConciergeResponse", "ErrorResponse",
    "AISettingsRequest", "AISettingsResponse",
    "ModelInfo", "ModelsResponse", "SuggestionsResponse", "HealthResponse",
]

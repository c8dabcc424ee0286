# schemas/concierge_schemas.py
"""
Pydantic v2 schemas for the Concierge API
Request/response bodies keep the camelCase keys the chat UI already sends.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================
# Trip context & conversation
# ============================================

class TripContext(BaseModel):
    """Read-only snapshot of the active trip. Unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    title: Optional[str] = None
    destination: Optional[str] = None
    destinations: List[str] = Field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @property
    def primary_destination(self) -> Optional[str]:
        if self.destination:
            return self.destination
        if self.destinations:
            return self.destinations[0]
        return None


class ChatTurn(BaseModel):
    """Single prior conversation turn"""
    role: Literal["user", "assistant"]
    content: str


class ChatStyle(BaseModel):
    """Reply style chosen by the user"""
    tone: str = "casual"
    emojis: bool = True


# ============================================
# Concierge agent
# ============================================

class ConciergeRequest(BaseModel):
    """Concierge agent request. `prompt` is validated by the pipeline."""
    prompt: Optional[str] = None
    tripId: Optional[str] = None
    tripContext: Optional[TripContext] = None
    userId: Optional[str] = None
    style: ChatStyle = Field(default_factory=ChatStyle)
    conversationHistory: List[ChatTurn] = Field(default_factory=list)


class ConciergeResponse(BaseModel):
    """Concierge agent response"""
    generatedText: str
    fullResponse: str
    generatedImages: List[Dict[str, Any]] = Field(default_factory=list)
    structuredData: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Error body returned for every failed request"""
    error: str


# ============================================
# AI settings (per user)
# ============================================

class AISettingsRequest(BaseModel):
    """User AI settings update"""
    model: str = Field(..., min_length=1)
    apiKey: str = ""
    customInstructions: str = ""


class AISettingsResponse(BaseModel):
    """User AI settings, with the API key masked"""
    userId: str
    model: str
    provider: str
    apiKey: str = ""
    hasApiKey: bool = False
    customInstructions: str = ""


# ============================================
# Catalog, suggestions, health
# ============================================

class ModelInfo(BaseModel):
    """Selectable AI model"""
    value: str
    label: str
    provider: str
    family: str
    systemKeyConfigured: bool = False


class ModelsResponse(BaseModel):
    models: List[ModelInfo]
    defaultModel: str


class SuggestionsResponse(BaseModel):
    category: str
    suggestions: List[str]


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    default_model: str
    providers: Dict[str, str]
    components: Dict[str, str]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

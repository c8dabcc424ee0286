# api/__init__.py
"""
API Endpoints Package

Contains the FastAPI routers of the concierge service:
- concierge: chat turn, AI settings, model catalog, quick suggestions
"""

from typing import TYPE_CHECKING

# Lazy import; the router pulls in the whole pipeline
if TYPE_CHECKING:
    from .concierge import router as concierge_router

__all__ = [
    "concierge_router",
]

# agents/__init__.py
"""
Agents Package

- ConciergeAgent: chat-facing request pipeline
"""

from .concierge_agent import (
    MAX_OUTPUT_TOKENS,
    ConciergeAgent,
    FallbackOutcome,
    ModelResolver,
    PipelineResult,
    ResolvedModel,
)

__all__ = [
    "MAX_OUTPUT_TOKENS",
    "ConciergeAgent",
    "FallbackOutcome",
    "ModelResolver",
    "PipelineResult",
    "ResolvedModel",
]

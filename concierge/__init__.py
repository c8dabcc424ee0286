# concierge/__init__.py
"""
Trip Concierge Service Package

AI concierge for a travel-itinerary app:
- Intent routing (greeting / general / restaurant / accommodation / attraction)
- Per-intent prompts for OpenAI or Gemini
- Structured suggestion extraction from model replies
- Per-user model and API key settings
"""

__version__ = "1.0.0"

# Package structure:
# concierge/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application factory
# ├── config.py             <- Settings (environment / .env)
# ├── errors.py             <- Error types mapped to HTTP status
# │
# ├── agents/
# │   └── concierge_agent.py <- Request pipeline (ConciergeAgent)
# │
# ├── api/
# │   └── concierge.py      <- /api/concierge/* routes
# │
# ├── interfaces/
# │   └── user_config_store.py <- Per-user AI settings (Redis / memory)
# │
# ├── llm/
# │   ├── intent_classifier.py <- Utterance -> Intent
# │   ├── prompts.py        <- System prompt, user turn, canned replies
# │   ├── providers.py      <- OpenAI / Gemini adapters, model catalog
# │   └── extractor.py      <- Fenced JSON -> structured suggestion
# │
# └── schemas/
#     └── concierge_schemas.py <- Pydantic request/response models

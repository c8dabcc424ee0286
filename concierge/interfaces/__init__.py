# interfaces/__init__.py
"""
Interfaces Package

Contains data stores:
- user_config_store: per-user AI model, key and custom instructions
"""

from .user_config_store import AIUserConfig, UserConfigStore, mask_api_key

__all__ = [
    "AIUserConfig",
    "UserConfigStore",
    "mask_api_key",
]

# interfaces/user_config_store.py
"""
Per-user AI configuration
Which model, which API key and which custom persona a user picked on the
settings screen. Read once per concierge request.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import redis
from loguru import logger


@dataclass
class AIUserConfig:
    """AI settings of a single user (or of a named fallback profile)"""
    model: str = ""
    api_key: str = ""
    custom_instructions: str = ""
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "AIUserConfig":
        return cls(
            model=data.get("model") or "",
            api_key=data.get("api_key") or "",
            custom_instructions=data.get("custom_instructions") or "",
            updated_at=data.get("updated_at"),
        )

    def to_dict(self) -> Dict:
        return asdict(self)


def mask_api_key(api_key: str) -> str:
    """Show only the last 4 characters of a key"""
    if not api_key:
        return ""
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{'*' * (len(api_key) - 4)}{api_key[-4:]}"


class UserConfigStore:
    """
    Redis-backed user AI settings with an in-memory fallback.
    Keys: ai_config:{user_id} -> JSON document.
    """

    def __init__(
        self,
        redis_host: str = "localhost",
        redis_port: int = 6379,
        redis_db: int = 0,
        enabled: bool = True,
        redis_client: Optional[redis.Redis] = None,
    ):
        self.redis_client = redis_client
        self._memory_store: Dict[str, Dict] = {}

        if self.redis_client is not None or not enabled:
            if not enabled:
                logger.info("UserConfigStore: Redis disabled, using in-memory store")
            return

        try:
            self.redis_client = redis.Redis(
                host=redis_host,
                port=redis_port,
                db=redis_db,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
            )
            self.redis_client.ping()
            logger.info(f"UserConfigStore connected to Redis at {redis_host}:{redis_port}")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed, using in-memory store: {e}")
            self.redis_client = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis_client is not None else "memory"

    def _get_key(self, user_id: str) -> str:
        return f"ai_config:{user_id}"

    def get_config(self, user_id: Optional[str]) -> Optional[AIUserConfig]:
        """Get a user's AI settings, or None if the user never saved any"""
        if not user_id:
            return None

        if self.redis_client is not None:
            try:
                data = self.redis_client.get(self._get_key(user_id))
                if data:
                    return AIUserConfig.from_dict(json.loads(data))
            except redis.RedisError as e:
                logger.error(f"Redis get error: {e}")

        data = self._memory_store.get(user_id)
        return AIUserConfig.from_dict(data) if data else None

    def save_config(self, user_id: str, config: AIUserConfig) -> AIUserConfig:
        """Create or replace a user's AI settings"""
        config.updated_at = datetime.now(timezone.utc).isoformat()
        data = config.to_dict()

        if self.redis_client is not None:
            try:
                self.redis_client.set(self._get_key(user_id), json.dumps(data))
                logger.info(f"Saved AI settings for {user_id} (model={config.model})")
                return config
            except redis.RedisError as e:
                logger.error(f"Redis save error: {e}")

        self._memory_store[user_id] = data
        logger.info(f"Saved AI settings for {user_id} in memory (model={config.model})")
        return config

    def delete_config(self, user_id: str) -> bool:
        """Remove a user's AI settings"""
        deleted = self._memory_store.pop(user_id, None) is not None

        if self.redis_client is not None:
            try:
                deleted = bool(self.redis_client.delete(self._get_key(user_id))) or deleted
            except redis.RedisError as e:
                logger.error(f"Redis delete error: {e}")

        return deleted

    def health(self) -> str:
        if self.redis_client is None:
            return "memory"
        try:
            self.redis_client.ping()
            return "connected"
        except redis.RedisError:
            return "error"

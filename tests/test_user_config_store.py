import json

import pytest
import redis

from concierge.interfaces.user_config_store import AIUserConfig, UserConfigStore, mask_api_key


class FakeRedis:
    """Dict-backed stand-in for the few redis.Redis calls the store makes"""

    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("connection lost")

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        return self.data.get(key)

    def set(self, key, value):
        self._check()
        self.data[key] = value
        return True

    def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.mark.parametrize("key, masked", [
    ("", ""),
    ("short", "*****"),
    ("sk-abcdefghij1234", "*************1234"),
])
def test_mask_api_key(key, masked):
    assert mask_api_key(key) == masked


def test_memory_store_roundtrip(store):
    assert store.backend == "memory"
    assert store.get_config("u1") is None
    assert store.get_config(None) is None

    saved = store.save_config("u1", AIUserConfig(model="gpt-4.1", api_key="sk-1"))
    assert saved.updated_at is not None
    assert saved.updated_at.endswith("+00:00")

    loaded = store.get_config("u1")
    assert loaded.model == "gpt-4.1"
    assert loaded.api_key == "sk-1"
    assert loaded.custom_instructions == ""

    assert store.delete_config("u1") is True
    assert store.get_config("u1") is None
    assert store.delete_config("u1") is False


def test_redis_store_writes_json_document():
    client = FakeRedis()
    store = UserConfigStore(redis_client=client)

    store.save_config("u1", AIUserConfig(model="gemini-2.5-flash", custom_instructions="Seja breve."))

    document = json.loads(client.data["ai_config:u1"])
    assert document["model"] == "gemini-2.5-flash"
    assert document["custom_instructions"] == "Seja breve."
    assert store.get_config("u1").custom_instructions == "Seja breve."
    assert store.backend == "redis"
    assert store.health() == "connected"


def test_redis_errors_fall_back_to_memory():
    client = FakeRedis(fail=True)
    store = UserConfigStore(redis_client=client)

    store.save_config("u1", AIUserConfig(model="gpt-5-nano"))

    assert store.get_config("u1").model == "gpt-5-nano"
    assert store.health() == "error"
    assert store.delete_config("u1") is True


def test_unreachable_redis_uses_memory():
    store = UserConfigStore(redis_host="127.0.0.1", redis_port=1)
    assert store.backend == "memory"
    assert store.health() == "memory"


def test_from_dict_tolerates_missing_keys():
    config = AIUserConfig.from_dict({"model": "gpt-4.1", "api_key": None})
    assert config.api_key == ""
    assert config.custom_instructions == ""

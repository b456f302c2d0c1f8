"""Tests del session store (hash por device + clave legacy)."""
import pytest

from authapi.core.exceptions import InfrastructureError
from authapi.services.session_store import (
    DeviceScoped,
    Legacy,
    RedisSessionStore,
    device_sessions_key,
    legacy_session_key,
    session_key,
)

WEEK = 60 * 60 * 24 * 7


class TestSessionKey:
    def test_device_header_selects_device_scope(self):
        assert session_key("u1", "phone") == DeviceScoped(user_id="u1", device_id="phone")

    @pytest.mark.parametrize("device_id", [None, "", "   "])
    def test_missing_device_falls_back_to_legacy(self, device_id):
        assert session_key("u1", device_id) == Legacy(user_id="u1")


class TestRedisSessionStore:
    def test_device_put_writes_hash_and_resets_ttl(self, sessions, fake_redis):
        sessions.put(session_key("u1", "phone"), "rt-1")

        assert fake_redis.hashes[device_sessions_key("u1")] == {"phone": "rt-1"}
        assert fake_redis.ttl(device_sessions_key("u1")) == WEEK
        assert legacy_session_key("u1") not in fake_redis.strings

    def test_any_device_write_slides_whole_record(self, sessions, fake_redis):
        sessions.put(session_key("u1", "phone"), "rt-1")
        fake_redis.ttls[device_sessions_key("u1")] = 10

        sessions.put(session_key("u1", "laptop"), "rt-2")

        assert fake_redis.ttl(device_sessions_key("u1")) == WEEK

    def test_legacy_put_uses_own_key_with_ttl(self, sessions, fake_redis):
        sessions.put(session_key("u1"), "rt-legacy")

        assert fake_redis.strings[legacy_session_key("u1")] == "rt-legacy"
        assert fake_redis.ttl(legacy_session_key("u1")) == WEEK
        assert device_sessions_key("u1") not in fake_redis.hashes

    def test_put_same_device_overwrites(self, sessions):
        key = session_key("u1", "phone")
        sessions.put(key, "old")
        sessions.put(key, "new")

        assert sessions.get(key) == "new"

    def test_devices_are_independent(self, sessions):
        sessions.put(session_key("u1", "phone"), "rt-phone")
        sessions.put(session_key("u1", "laptop"), "rt-laptop")

        assert sessions.get(session_key("u1", "phone")) == "rt-phone"
        assert sessions.get(session_key("u1", "laptop")) == "rt-laptop"
        assert sessions.get(session_key("u1")) is None

    def test_get_missing_returns_none(self, sessions):
        assert sessions.get(session_key("nobody", "phone")) is None
        assert sessions.get(session_key("nobody")) is None

    def test_delete_all_removes_devices_and_legacy(self, sessions):
        sessions.put(session_key("u1", "phone"), "a")
        sessions.put(session_key("u1", "laptop"), "b")
        sessions.put(session_key("u1"), "c")
        sessions.put(session_key("u2", "phone"), "other-user")

        assert sessions.delete_all("u1") == 2
        assert sessions.get(session_key("u1", "phone")) is None
        assert sessions.get(session_key("u1", "laptop")) is None
        assert sessions.get(session_key("u1")) is None
        assert sessions.get(session_key("u2", "phone")) == "other-user"

    def test_delete_all_is_idempotent(self, sessions):
        assert sessions.delete_all("ghost") == 0
        assert sessions.delete_all("ghost") == 0

    def test_custom_ttl(self, fake_redis):
        store = RedisSessionStore(fake_redis, ttl_seconds=60)
        store.put(session_key("u1", "phone"), "rt")

        assert fake_redis.ttl(device_sessions_key("u1")) == 60

    @pytest.mark.parametrize(
        "op",
        [
            lambda s: s.put(session_key("u1", "phone"), "rt"),
            lambda s: s.put(session_key("u1"), "rt"),
            lambda s: s.get(session_key("u1", "phone")),
            lambda s: s.delete_all("u1"),
        ],
    )
    def test_redis_failure_surfaces_as_infrastructure_error(self, sessions, fake_redis, op):
        fake_redis.fail = True

        with pytest.raises(InfrastructureError):
            op(sessions)

"""Tests del store de sesiones sobre un Redis simulado."""

from unittest.mock import MagicMock

import redis

from tracker_api.auth import SessionStore


class TestSessionStore:

    def test_issue_then_resolve(self, fake_redis):
        store = SessionStore(fake_redis)

        token = store.issue("user_1")

        assert token.startswith("session_")
        assert store.resolve(token) == "user_1"
        fake_redis.set.assert_called_once_with(f"sessions/{token}", "user_1", ex=None)

    def test_ttl_applied(self, fake_redis):
        store = SessionStore(fake_redis, ttl_seconds=3600)

        token = store.issue("user_1")

        fake_redis.set.assert_called_once_with(f"sessions/{token}", "user_1", ex=3600)

    def test_unknown_or_empty_token(self, fake_redis):
        store = SessionStore(fake_redis)

        assert store.resolve("session_unknown") is None
        assert store.resolve("") is None
        assert store.resolve(None) is None

    def test_bytes_value_decoded(self):
        client = MagicMock()
        client.get.return_value = b"user_9"

        assert SessionStore(client).resolve("session_x") == "user_9"

    def test_revoke(self, fake_redis):
        store = SessionStore(fake_redis)
        token = store.issue("user_1")

        assert store.revoke(token) is True
        assert store.resolve(token) is None
        assert store.revoke(token) is False


class TestTrackWithoutRedis:
    """Si Redis cae, la telemetría sigue entrando sin sesión."""

    def test_track_continues_anonymous(self, client, signed, tracking_payload, fake_redis):
        fake_redis.get.side_effect = redis.ConnectionError("down")
        body, headers = signed(tracking_payload, Authorization="session_abc")

        resp = client.post("/track", content=body, headers=headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["device"]["user_id"] is None

    def test_user_endpoint_reports_unavailable(self, client, fake_redis):
        fake_redis.get.side_effect = redis.ConnectionError("down")

        resp = client.get("/user", headers={"Authorization": "session_abc"})

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "session_store_unavailable"

"""Fixtures compartidas: SQLite en tmp_path, Redis simulado y TestClient."""

import base64
import json
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from common.config import Settings
from common.db import build_engine, make_session_factory
from tracker_api.app import create_app
from tracker_api.auth import AuthenticatorConfig, RequestAuthenticator
from tracker_api.infrastructure.persistence import ensure_schema

SECRET = "test-signing-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tracker.db'}",
        redis_url="redis://localhost:6379/15",
        signing_secret=SECRET,
    )


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def authenticator() -> RequestAuthenticator:
    return RequestAuthenticator(AuthenticatorConfig(secret=SECRET.encode()))


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def foreign_keys(engine):
    """Activa PRAGMA foreign_keys en SQLite, como lo haría PostgreSQL."""

    @event.listens_for(engine, "connect")
    def _enable(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    # Las conexiones ya abiertas no tienen el PRAGMA
    engine.dispose()
    yield engine
    event.remove(engine, "connect", _enable)


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    """Mock de redis-py respaldado por un dict (get/set/delete)."""
    data: Dict[str, Any] = {}
    client = MagicMock()
    client.get.side_effect = lambda key: data.get(key)
    client.set.side_effect = lambda key, value, ex=None: data.__setitem__(key, value) or True
    client.delete.side_effect = lambda key: 1 if data.pop(key, None) is not None else 0
    client.ping.return_value = True
    client.data = data
    return client


@pytest.fixture
def client(settings, engine, fake_redis):
    app = create_app(settings, engine=engine, redis_client=fake_redis)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signed(authenticator):
    """Construye (body, headers) como lo hace el firmware."""

    def _signed(obj: Any, **headers: str):
        payload = json.dumps(obj).encode("utf-8")
        body = base64.b64encode(payload)
        all_headers = {"X-Signature": authenticator.sign(payload)}
        all_headers.update(headers)
        return body, all_headers

    return _signed


@pytest.fixture
def tracking_payload() -> Dict[str, Any]:
    return {
        "name": "Alice",
        "device": {
            "name": "Peak",
            "model": "pro",
            "mac": "AA:BB:CC:DD:EE:FF",
            "dob": 1672531200,
            "totalDabs": 42,
        },
    }

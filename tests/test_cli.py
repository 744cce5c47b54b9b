"""Tests de la CLI de soporte."""

import base64

import pytest
from sqlalchemy import create_engine, inspect

from tracker_api import cli
from tracker_api.auth import AuthenticatorConfig, RequestAuthenticator
from tracker_api.errors import ConfigurationError


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("TRACKER_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("DEVICE_SIGNING_SECRET", "cli-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.delenv("DEVICE_KEY_NAMESPACE", raising=False)


def _values(out: str) -> dict:
    return dict(line.split("=", 1) for line in out.strip().splitlines())


class TestCli:

    def test_derive_key(self, capsys):
        assert cli.main(["derive-key", "AA:BB:CC:DD:EE:FF"]) == 0

        values = _values(capsys.readouterr().out)
        assert values["current_key"] == "device_qrvM3e7/"
        assert values["legacy_key"] == "device_MzE1MDc2NTU1MA=="

    def test_sign_file(self, capsys, tmp_path):
        payload = b'{"message":"hola"}'
        path = tmp_path / "payload.json"
        path.write_bytes(payload)

        assert cli.main(["sign", str(path)]) == 0

        values = _values(capsys.readouterr().out)
        assert base64.b64decode(values["body"]) == payload
        authenticator = RequestAuthenticator(AuthenticatorConfig(secret=b"cli-secret"))
        assert authenticator.verify(payload, values["x-signature"]) is payload

    def test_sign_without_secret(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEVICE_SIGNING_SECRET", "")
        path = tmp_path / "payload.json"
        path.write_bytes(b"{}")

        with pytest.raises(ConfigurationError):
            cli.main(["sign", str(path)])

    def test_migrate_creates_tables(self, tmp_path):
        assert cli.main(["migrate"]) == 0

        engine = create_engine(f"sqlite:///{tmp_path / 'cli.db'}")
        tables = set(inspect(engine).get_table_names())
        engine.dispose()
        assert {"users", "leaderboard", "diagnostics", "feedback"} <= tables

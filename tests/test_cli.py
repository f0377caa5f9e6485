"""
Tests for the bloomauth command line interface.
"""

import json

import pytest
from jwcrypto.common import base64url_decode

from bloomauth.cli import main


@pytest.fixture
def env(monkeypatch, wallet):
    monkeypatch.setenv("JWT_SECRET", "cli-secret")
    monkeypatch.setenv("BLOOM_AGENT_PRIVATE_KEY", wallet.private_key)
    monkeypatch.delenv("BLOOM_JWT_ISSUER", raising=False)
    monkeypatch.delenv("BLOOM_JWT_AUDIENCE", raising=False)
    monkeypatch.delenv("BLOOM_TOKEN_TTL_SECONDS", raising=False)
    return wallet


def _issue(capsys, *args) -> str:
    assert main(["issue", *args]) == 0
    return capsys.readouterr().out.strip()


class TestInit:
    def test_prints_new_wallet(self, capsys):
        assert main(["init"]) == 0
        out = capsys.readouterr().out

        assert "Address: 0x" in out
        assert "BLOOM_AGENT_PRIVATE_KEY" in out

    def test_env_output(self, capsys):
        assert main(["init", "--env"]) == 0
        assert capsys.readouterr().out.startswith("export BLOOM_AGENT_PRIVATE_KEY='0x")


class TestIssueAndVerify:
    """Round trips through the CLI."""

    def test_issue_then_verify(self, env, capsys):
        token = _issue(capsys)

        assert main(["verify", token]) == 0
        out = capsys.readouterr().out
        assert "VALID" in out
        assert env.address in out

    def test_json_output(self, env, capsys):
        data = json.loads(_issue(capsys, "--json", "--scope", "read:identity", "--agent-id", "99"))

        assert data["address"] == env.address
        assert data["scope"] == ["read:identity"]
        assert "/dashboard?token=" in data["dashboardUrl"]

        assert main(["verify", data["token"], "--json"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is True
        assert result["session"]["scope"] == ["read:identity"]

    def test_ttl_from_environment(self, env, capsys, monkeypatch):
        """BLOOM_TOKEN_TTL_SECONDS sets both the claims and the envelope lifetime."""
        monkeypatch.setenv("BLOOM_TOKEN_TTL_SECONDS", "3600")
        token = json.loads(_issue(capsys, "--json"))["token"]

        payload = json.loads(base64url_decode(token.split(".")[1]))
        assert payload["expiresAt"] - payload["timestamp"] == 3600 * 1000
        assert payload["exp"] - payload["iat"] == 3600

    def test_ttl_hours_overrides_environment(self, env, capsys, monkeypatch):
        monkeypatch.setenv("BLOOM_TOKEN_TTL_SECONDS", "3600")
        token = _issue(capsys, "--ttl-hours", "0.5")

        payload = json.loads(base64url_decode(token.split(".")[1]))
        assert payload["expiresAt"] - payload["timestamp"] == 1800 * 1000

    def test_url_output(self, env, capsys):
        url = _issue(capsys, "--url")
        assert "/dashboard?token=" in url

    def test_verify_with_other_secret(self, env, capsys, monkeypatch):
        token = _issue(capsys)
        monkeypatch.setenv("JWT_SECRET", "rotated")

        assert main(["verify", token, "--json"]) == 1
        result = json.loads(capsys.readouterr().out)
        assert result == {"valid": False, "reason": "envelope_invalid", "error": result["error"]}

    def test_verify_garbage(self, env, capsys):
        assert main(["verify", "nope"]) == 1
        assert "INVALID (envelope_invalid)" in capsys.readouterr().out


class TestErrors:
    def test_issue_without_key(self, monkeypatch, capsys):
        monkeypatch.setenv("JWT_SECRET", "cli-secret")
        monkeypatch.delenv("BLOOM_AGENT_PRIVATE_KEY", raising=False)

        assert main(["issue"]) == 1
        assert "Missing wallet key" in capsys.readouterr().err

    def test_issue_without_secret(self, env, monkeypatch, capsys):
        monkeypatch.delenv("JWT_SECRET")

        assert main(["issue"]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_issue_with_bad_key(self, env, capsys):
        assert main(["issue", "--key", "0x1234"]) == 1
        assert "Error issuing token" in capsys.readouterr().err

    def test_config_hides_secret(self, env, capsys):
        assert main(["config"]) == 0
        out = capsys.readouterr().out

        assert "bloom-protocol" in out
        assert "cli-secret" not in out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

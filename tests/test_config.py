"""
Unit tests for configuration loading and the secret generator script.
"""

import pytest

from healthapp.config import DEV_SECRET_KEY, SECRET_KEY_BYTES, load_secret_key
from scripts.generate_secret_key import generate_secret_key, main


# ── Tests: load_secret_key ───────────────────────────────────────────

def test_production_without_secret_exits(monkeypatch, capsys):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    with pytest.raises(SystemExit) as e:
        load_secret_key(production=True)
    assert e.value.code == 1
    assert "ERROR: env var JWT_SECRET_KEY is not set" in capsys.readouterr().err


def test_production_empty_secret_exits(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "")
    with pytest.raises(SystemExit):
        load_secret_key(production=True)


def test_production_uses_configured_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "s3cret-from-env")
    assert load_secret_key(production=True) == "s3cret-from-env"


def test_development_falls_back_to_local_key(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    assert load_secret_key(production=False) == DEV_SECRET_KEY


def test_development_prefers_configured_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "local")
    assert load_secret_key(production=False) == "local"


# ── Tests: generate_secret_key ───────────────────────────────────────

def test_generated_key_length():
    key = generate_secret_key()
    assert len(key) == SECRET_KEY_BYTES * 2
    int(key, 16)
    assert generate_secret_key() != key


def test_generated_key_rejects_short_length():
    with pytest.raises(ValueError, match="at least"):
        generate_secret_key(SECRET_KEY_BYTES - 1)


def test_script_prints_env_line(capsys):
    main(["--bytes", "48"])
    line = capsys.readouterr().out.splitlines()[0]
    assert line.startswith("JWT_SECRET_KEY=")
    assert len(line.split("=", 1)[1]) == 96

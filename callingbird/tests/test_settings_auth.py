import json
import os

import jwt
import pytest

from callingbird.settings import DEFAULT_BACKEND_URL, FileTokenStore, StaticTokenProvider, load_settings
from callingbird.utils.auth import decode_token_payload, is_authenticated, is_token_expired, token_email

ENV_VARS = ["ENV_FILE", "BACKEND_URL", "LOG_LEVEL", "LOG_FILE", "CALLINGBIRD_TOKEN_FILE", "REQUEST_TIMEOUT"]
SIGNING_KEY = "callingbird-test-signing-key-0123456789"


def make_token(payload: dict) -> str:
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    for name in ENV_VARS:
        os.environ.pop(name, None)


# ======================================
# SETTINGS
# ======================================

def test_load_settings_defaults():
    settings = load_settings()
    assert settings.backend_url == DEFAULT_BACKEND_URL
    assert settings.log_level == "INFO"
    assert settings.request_timeout is None


def test_load_settings_from_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / "test.env"
    env_file.write_text("BACKEND_URL=https://api.callingbird.test/\nREQUEST_TIMEOUT=2.5\n")
    monkeypatch.setenv("ENV_FILE", str(env_file))

    settings = load_settings()

    assert settings.backend_url == "https://api.callingbird.test"
    assert settings.request_timeout == 2.5


def test_missing_env_file_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "nope.env"))
    with pytest.raises(ValueError):
        load_settings()


@pytest.mark.parametrize("raw", ["abc", "0", "-1"])
def test_invalid_timeout(raw, monkeypatch):
    monkeypatch.setenv("REQUEST_TIMEOUT", raw)
    with pytest.raises(ValueError):
        load_settings()


def test_file_token_store_round_trip(tmp_path):
    store = FileTokenStore(str(tmp_path / "nested" / "session.json"))
    assert store.get_token() is None

    store.set_token("abc")
    assert store.get_token() == "abc"
    assert json.loads((tmp_path / "nested" / "session.json").read_text()) == {"jwt": "abc"}

    store.remove_token()
    assert store.get_token() is None


def test_file_token_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("not json")
    assert FileTokenStore(str(path)).get_token() is None


def test_file_token_store_ignores_unreadable_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    assert FileTokenStore(str(path)).get_token() is None
    assert FileTokenStore(str(tmp_path)).get_token() is None


# ======================================
# AUTH
# ======================================

def test_decode_token_payload():
    assert decode_token_payload(make_token({"exp": 10}))["exp"] == 10
    signed_elsewhere = jwt.encode({"exp": 10}, "another-signing-key-with-enough-length", algorithm="HS256")
    assert decode_token_payload(signed_elsewhere)["exp"] == 10
    with pytest.raises(ValueError):
        decode_token_payload("not-a-jwt")
    with pytest.raises(ValueError):
        decode_token_payload("a.!!!.c")


def test_token_expiry():
    assert not is_token_expired(make_token({"exp": 200}), now=100)
    assert is_token_expired(make_token({"exp": 50}), now=100)
    assert is_token_expired(make_token({"sub": "x"}), now=100)
    assert is_token_expired(make_token({"exp": "200"}), now=100)
    assert is_token_expired("garbage", now=100)


def test_token_email():
    assert token_email(make_token({"email": "info@salon.be"})) == "info@salon.be"
    assert token_email(make_token({"email": ""})) is None
    assert token_email("garbage") is None


def test_is_authenticated():
    assert not is_authenticated(StaticTokenProvider(None))
    assert is_authenticated(StaticTokenProvider(make_token({"exp": 200})), now=100)
    assert not is_authenticated(StaticTokenProvider(make_token({"exp": 50})), now=100)

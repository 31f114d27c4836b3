import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

KEY_OF_TOKEN_JSON = "jwt"
DEFAULT_BACKEND_URL = "http://localhost:3002"
DEFAULT_TOKEN_FILE = os.path.join("~", ".callingbird", "session.json")


@dataclass
class Settings:
    backend_url: str = DEFAULT_BACKEND_URL
    log_level: str = "INFO"
    log_file: Optional[str] = None
    token_file: str = DEFAULT_TOKEN_FILE
    request_timeout: Optional[float] = None


def load_config() -> None:
    """Load environment configuration from the .env file named by ENV_FILE, if set."""
    env_file = os.getenv("ENV_FILE")
    if env_file is None:
        return
    if not os.path.exists(env_file):
        raise ValueError(f"ENV_FILE points to a missing file: {env_file}")
    load_dotenv(dotenv_path=env_file)


def load_settings() -> Settings:
    """
    Build Settings from the environment, after loading ENV_FILE.

    Returns:
        Settings: Resolved settings

    Raises:
        ValueError: if REQUEST_TIMEOUT is not a positive number
    """
    load_config()

    timeout_raw: Optional[str] = os.getenv("REQUEST_TIMEOUT")
    timeout: Optional[float] = None
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(f"REQUEST_TIMEOUT is not a number: {timeout_raw}")
        if timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")

    return Settings(
        backend_url=(os.getenv("BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip("/"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
        token_file=os.getenv("CALLINGBIRD_TOKEN_FILE") or DEFAULT_TOKEN_FILE,
        request_timeout=timeout,
    )


class StaticTokenProvider:
    """Token provider for a token known up front."""

    def __init__(self, token: Optional[str]):
        self.token = token

    def get_token(self) -> Optional[str]:
        return self.token


class FileTokenStore:
    """
    Token provider persisting the session token in a small JSON file.
    A missing or unreadable file means there is no token.
    """

    def __init__(self, path_of_token_json: str):
        self.path_of_token_json = Path(os.path.expanduser(path_of_token_json))

    def _read(self) -> dict:
        try:
            with open(self.path_of_token_json, "r") as f:
                data = json.load(f)
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path_of_token_json.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path_of_token_json, "w") as f:
            json.dump(data, f, indent=4)

    def get_token(self) -> Optional[str]:
        token = self._read().get(KEY_OF_TOKEN_JSON)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        data = self._read()
        data[KEY_OF_TOKEN_JSON] = token
        self._write(data)

    def remove_token(self) -> None:
        data = self._read()
        if KEY_OF_TOKEN_JSON in data:
            del data[KEY_OF_TOKEN_JSON]
            self._write(data)

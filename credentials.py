"""
API key resolution for the text and image backends.

Two explicit tiers:
  1. CredentialStore  - keys the user saved (JSON file in the user's home directory)
  2. EnvDefaults      - build-time defaults from the environment / .env

CredentialProvider.get() prefers the saved key, then the default, then "".
No validation happens here; a bad key only shows up as a failed downstream call.
"""

import json
import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

import config

load_dotenv()

GEMINI_API_KEY = "gemini_api_key"
HUGGINGFACE_API_KEY = "huggingface_api_key"
OPENAI_API_KEY = "openai_api_key"

CREDENTIAL_NAMES = [GEMINI_API_KEY, HUGGINGFACE_API_KEY, OPENAI_API_KEY]

# Environment variables consulted (in order) for each credential's default
ENV_FALLBACKS = {
    GEMINI_API_KEY: ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    HUGGINGFACE_API_KEY: ["HUGGINGFACE_API_KEY", "HF_TOKEN"],
    OPENAI_API_KEY: ["OPENAI_API_KEY"],
}

# Which credential each backend provider needs
PROVIDER_CREDENTIALS = {
    "google": GEMINI_API_KEY,
    "huggingface": HUGGINGFACE_API_KEY,
    "openai": OPENAI_API_KEY,
}


def _log(msg: str) -> None:
    print(f"[CREDENTIALS] {msg}")


def credential_for_provider(provider: str) -> str:
    """Return the credential name used by a backend provider ("google", "openai", "huggingface")."""
    try:
        return PROVIDER_CREDENTIALS[provider.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown provider '{provider}'. Must be one of: {list(PROVIDER_CREDENTIALS)}"
        )


class CredentialStore:
    """Persistent key-value store backed by a small JSON object file."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else config.CREDENTIALS_FILE

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            _log(f"WARNING: {self.path} is not valid JSON; treating it as empty")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, name: str) -> str | None:
        return self._read().get(name) or None

    def set(self, name: str, value: str) -> None:
        data = self._read()
        data[name] = value
        self._write(data)

    def delete(self, name: str) -> None:
        data = self._read()
        if name not in data:
            return
        del data[name]
        self._write(data)


class EnvDefaults:
    """Read-only default keys from environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def get(self, name: str) -> str | None:
        for var in ENV_FALLBACKS.get(name, [name.upper()]):
            value = (self.environ.get(var) or "").strip()
            if value:
                return value
        return None


class CredentialProvider:
    """Resolve API keys: saved value first, then environment default, else empty string."""

    def __init__(self, store: CredentialStore | None = None, defaults: EnvDefaults | None = None):
        self.store = store if store is not None else CredentialStore()
        self.defaults = defaults if defaults is not None else EnvDefaults()

    def get(self, name: str = GEMINI_API_KEY) -> str:
        return self.store.get(name) or self.defaults.get(name) or ""

    def has_saved(self, name: str = GEMINI_API_KEY) -> bool:
        return bool(self.store.get(name))

    def save(self, key: str, name: str = GEMINI_API_KEY) -> None:
        key = (key or "").strip()
        if not key:
            raise ValueError("API key is empty")
        self.store.set(name, key)
        _log(f"Saved {name}")

    def clear(self, name: str = GEMINI_API_KEY) -> None:
        self.store.delete(name)
        _log(f"Cleared {name}")

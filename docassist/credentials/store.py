"""Persistent key-value storage for provider credentials.

Purpose of this abstraction:
    Generation clients never read credentials from ambient global state. The
    engine and adapters receive a `CredentialStore` and read the relevant slot at
    generation time, so tests can inject an in-memory fake.

Storage backends:
    - `InMemoryCredentialStore`: process-local dict.
    - `JsonFileCredentialStore`: flat JSON object on disk, lock-guarded writes.
    - `EnvOverrideCredentialStore`: environment variables take precedence over a
      wrapped store (same resolution order as key files elsewhere: env first).

Lifecycle:
    A credential is created/overwritten by `set`, destroyed by `clear`, and read
    by `get`. An empty string means "not configured".
"""

import json
import logging
import os
import threading
from typing import Protocol

from docassist.llm.provider_config import CREDENTIAL_ENV_VARS, CREDENTIAL_SLOTS, IMAGE_CREDENTIAL, TEXT_CREDENTIAL


logger = logging.getLogger(__name__)

SLOT_ALIASES = {
    "text": TEXT_CREDENTIAL,
    "image": IMAGE_CREDENTIAL,
}


def resolve_slot(name: str) -> str | None:
    """Map a short alias (`text`, `image`) or full slot name to a slot name."""
    name = (name or "").strip().lower()
    if name in CREDENTIAL_SLOTS:
        return name
    return SLOT_ALIASES.get(name)


class CredentialStore(Protocol):
    """Minimal key-value capability consumed by the generation pipeline."""

    def get(self, name: str) -> str:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def clear(self, name: str) -> None:
        ...


def mask_credential(value: str) -> str:
    """Return a display-safe form of a credential (`abcd...wxyz`).

    Values of eight characters or fewer are fully masked.
    """
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


class InMemoryCredentialStore:
    """Dict-backed store with no persistence."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values = dict(initial or {})

    def get(self, name: str) -> str:
        return self._values.get(name, "")

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def clear(self, name: str) -> None:
        self._values.pop(name, None)


class JsonFileCredentialStore:
    """Credential store persisted as a single JSON object file.

    Failure handling:
        - Missing file reads as an empty store.
        - Unreadable/corrupt file is logged and read as an empty store; the next
          write replaces it.
        - Write failures propagate to the caller.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to load credentials from %s", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object credential file %s", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, name: str) -> str:
        return self._load().get(name, "")

    def set(self, name: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[name] = value
            self._write(data)
        logger.info("Saved credential %s (%s)", name, mask_credential(value))

    def clear(self, name: str) -> None:
        with self._lock:
            data = self._load()
            if name not in data:
                return
            del data[name]
            self._write(data)
        logger.info("Cleared credential %s", name)


class EnvOverrideCredentialStore:
    """Reads environment variables before delegating to a wrapped store.

    Writes and clears always go to the wrapped store; an environment override
    stays in effect until the variable is unset.
    """

    def __init__(self, inner: CredentialStore, env_vars: dict[str, str] | None = None):
        self.inner = inner
        self.env_vars = dict(CREDENTIAL_ENV_VARS if env_vars is None else env_vars)

    def get(self, name: str) -> str:
        env_name = self.env_vars.get(name)
        if env_name:
            env_value = os.getenv(env_name, "").strip()
            if env_value:
                return env_value
        return self.inner.get(name)

    def set(self, name: str, value: str) -> None:
        self.inner.set(name, value)

    def clear(self, name: str) -> None:
        self.inner.clear(name)


def default_store(path: str) -> CredentialStore:
    """File-backed store at `path` with environment overrides."""
    return EnvOverrideCredentialStore(JsonFileCredentialStore(path))

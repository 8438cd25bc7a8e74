"""Credential storage package.

Provides the `CredentialStore` capability injected into the engine and adapters,
plus file, in-memory, and environment-override implementations.
"""

from docassist.credentials.store import (
    CredentialStore,
    EnvOverrideCredentialStore,
    InMemoryCredentialStore,
    JsonFileCredentialStore,
    default_store,
    mask_credential,
    resolve_slot,
)

__all__ = [
    "CredentialStore",
    "EnvOverrideCredentialStore",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    "default_store",
    "mask_credential",
    "resolve_slot",
]

"""Credential providers for group system adapters.

Adapters that talk to remote systems obtain tokens and signing keys through
the OrgTokenSource and KeyProvider ports. The sync engine never looks at the
credentials themselves.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from pydantic import SecretStr

from groupsync.domain.exceptions import ConfigurationError


class StaticTokenSource:
    """OrgTokenSource returning the same token for every organization."""

    def __init__(self, token: SecretStr | str):
        if isinstance(token, str):
            token = SecretStr(token)
        if not token.get_secret_value():
            raise ConfigurationError("token must not be empty")
        self._token = token

    @classmethod
    def from_environment(cls, variable: str) -> StaticTokenSource:
        """Read the token from an environment variable.

        Raises:
            ConfigurationError: If the variable is unset or empty
        """
        value = os.environ.get(variable, "")
        if not value:
            raise ConfigurationError(f"environment variable {variable} is not set")
        return cls(value)

    async def token_for_org(self, org_id: str) -> str:
        return self._token.get_secret_value()


class FileKeyProvider:
    """KeyProvider reading a private key from a file.

    The key is read on first use and kept for the lifetime of the provider.
    """

    def __init__(self, path: Path):
        self._path = path
        self._key: bytes | None = None

    async def key(self) -> bytes:
        """Return the key bytes.

        Raises:
            ConfigurationError: If the file cannot be read or is empty
        """
        if self._key is None:
            try:
                key = await asyncio.to_thread(self._path.read_bytes)
            except OSError as e:
                raise ConfigurationError(
                    f"failed to read key file {self._path}: {e}"
                ) from e
            if not key.strip():
                raise ConfigurationError(f"key file {self._path} is empty")
            self._key = key
        return self._key

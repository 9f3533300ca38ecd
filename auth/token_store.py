from __future__ import annotations

import asyncio
import json
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path

from auth.x_oauth2 import TokenResponse


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    refresh_token: str
    expires_at: float
    scope: str = ""

    def is_expired(self, *, margin_seconds: float = 0, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at - margin_seconds

    @classmethod
    def from_token_response(cls, response: TokenResponse) -> "TokenSet":
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            expires_at=response.expires_at,
            scope=response.scope,
        )


class CredentialStore(ABC):
    """Holds the single X credential the bot acts with.

    Reads and writes are serialized by one lock, so ``replace`` can compare
    and swap without another writer slipping in between.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    async def get(self) -> TokenSet | None:
        async with self._lock:
            return self._read()

    async def set(self, token_set: TokenSet) -> None:
        _require_refresh_token(token_set)
        async with self._lock:
            self._write(token_set)

    async def replace(self, expected: TokenSet, token_set: TokenSet) -> bool:
        """Store ``token_set`` only if the held credential is still ``expected``."""
        _require_refresh_token(token_set)
        async with self._lock:
            if self._read() != expected:
                return False
            self._write(token_set)
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._delete()

    @abstractmethod
    def _read(self) -> TokenSet | None:
        raise NotImplementedError

    @abstractmethod
    def _write(self, token_set: TokenSet) -> None:
        raise NotImplementedError

    @abstractmethod
    def _delete(self) -> None:
        raise NotImplementedError


def _require_refresh_token(token_set: TokenSet) -> None:
    if not token_set.refresh_token:
        raise ValueError("Refusing to store a credential without a refresh_token.")


class MemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        super().__init__()
        self._token_set: TokenSet | None = None

    def _read(self) -> TokenSet | None:
        return self._token_set

    def _write(self, token_set: TokenSet) -> None:
        self._token_set = token_set

    def _delete(self) -> None:
        self._token_set = None


class FileCredentialStore(CredentialStore):
    def __init__(self, path: str | Path = ".tokens.json") -> None:
        super().__init__()
        self._path = Path(path)

    def _read(self) -> TokenSet | None:
        if not self._path.exists():
            return None

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise RuntimeError("Token store file is invalid; expected top-level JSON object.")
        return TokenSet(**raw)

    def _write(self, token_set: TokenSet) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(asdict(token_set), handle, indent=2, sort_keys=True)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def _delete(self) -> None:
        if self._path.exists():
            self._path.unlink()

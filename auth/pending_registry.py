from __future__ import annotations

import threading
import time

from auth.models import PendingAuth

PENDING_AUTH_TTL_SECONDS = 3600


class PendingAuthRegistry:
    def __init__(self, ttl_seconds: int = PENDING_AUTH_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._pending: dict[str, PendingAuth] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def __contains__(self, state: object) -> bool:
        with self._lock:
            return state in self._pending

    def add(self, state: str, code_verifier: str) -> PendingAuth:
        pending = PendingAuth(state=state, code_verifier=code_verifier, created_at=time.time())
        with self._lock:
            self._pending[state] = pending
        return pending

    def put(self, pending: PendingAuth) -> None:
        with self._lock:
            self._pending[pending.state] = pending

    def pop(self, state: str) -> PendingAuth | None:
        """Remove and return the entry for ``state`` if it is still within the TTL."""
        with self._lock:
            pending = self._pending.pop(state, None)
        if pending is None or self._is_expired(pending, time.time()):
            return None
        return pending

    def purge_expired(self) -> int:
        now = time.time()
        with self._lock:
            expired_states = [
                state for state, pending in self._pending.items() if self._is_expired(pending, now)
            ]
            for state in expired_states:
                del self._pending[state]
        return len(expired_states)

    def _is_expired(self, pending: PendingAuth, now: float) -> bool:
        return now - pending.created_at > self.ttl_seconds

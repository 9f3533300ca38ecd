import time

from auth.models import PendingAuth
from auth.pending_registry import PENDING_AUTH_TTL_SECONDS, PendingAuthRegistry


def test_default_ttl_is_one_hour() -> None:
    assert PendingAuthRegistry().ttl_seconds == PENDING_AUTH_TTL_SECONDS == 3600


def test_add_and_pop() -> None:
    registry = PendingAuthRegistry()
    registry.add("state-1", "verifier-1")

    pending = registry.pop("state-1")

    assert pending is not None
    assert pending.code_verifier == "verifier-1"
    assert "state-1" not in registry


def test_pop_is_single_use() -> None:
    registry = PendingAuthRegistry()
    registry.add("state-1", "verifier-1")

    assert registry.pop("state-1") is not None
    assert registry.pop("state-1") is None


def test_pop_unknown_state() -> None:
    assert PendingAuthRegistry().pop("never-issued") is None


def test_pop_rejects_entry_past_ttl() -> None:
    registry = PendingAuthRegistry()
    registry.put(PendingAuth("stale", "verifier", created_at=time.time() - 3601))

    assert registry.pop("stale") is None
    assert "stale" not in registry


def test_purge_expired_keeps_fresh_entries() -> None:
    registry = PendingAuthRegistry()
    registry.put(PendingAuth("stale", "verifier", created_at=time.time() - 9999))
    registry.add("fresh", "verifier")

    assert registry.purge_expired() == 1
    assert "stale" not in registry
    assert "fresh" in registry
    assert len(registry) == 1

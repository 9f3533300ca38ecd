from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PendingAuth:
    state: str
    code_verifier: str
    created_at: float

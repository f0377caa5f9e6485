"""
Agent sessions - the verified projection of an agent token.

A Session is created fresh by every successful verification and is never
persisted. Authorization is the consumer's job: check ``has_scope`` against
the permission a request needs.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Session:
    """Minimal-trust view of a verified agent token. Times are epoch milliseconds."""

    session_id: str
    address: str
    scope: Tuple[str, ...]
    created_at: int
    expires_at: int

    @classmethod
    def create(cls, address: str, scope, created_at: int, expires_at: int) -> "Session":
        return cls(
            session_id=str(uuid.uuid4()),
            address=address.lower(),
            scope=tuple(scope),
            created_at=created_at,
            expires_at=expires_at,
        )

    def has_scope(self, scope: str) -> bool:
        # exact match only; unknown scope strings never authorize anything
        return scope in self.scope

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "address": self.address,
            "scope": list(self.scope),
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

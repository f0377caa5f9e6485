"""Permission scopes an agent token can grant."""

from enum import Enum
from typing import List


class AgentScope(str, Enum):
    """Recognized scopes. Write permissions would require a fresh signature."""

    READ_IDENTITY = "read:identity"
    READ_SKILLS = "read:skills"
    READ_WALLET = "read:wallet"


DEFAULT_SCOPES: List[str] = [scope.value for scope in AgentScope]


def is_known_scope(scope: str) -> bool:
    return scope in DEFAULT_SCOPES

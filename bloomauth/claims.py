"""
Bloom Agent Auth Claims - what an agent token asserts about its subject.

Claims are the pre-signature facts (address, nonce, validity window, scope).
A ``SignedPayload`` adds the wallet signature and the exact message that was
signed, and is what travels inside the HS256 envelope.
"""

import math
import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bloomauth.config import token_ttl_seconds
from bloomauth.errors import InvalidClaims, MalformedPayload
from bloomauth.scopes import DEFAULT_SCOPES

TOKEN_TYPE = "agent"
TOKEN_VERSION = "1.0"

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Largest integer a JSON number carries exactly (2**53 - 1)
MAX_TIMESTAMP_MS = 9007199254740991


class PersonalityType(str, Enum):
    """Personality archetypes shown on Bloom identity cards."""

    THE_VISIONARY = "The Visionary"
    THE_EXPLORER = "The Explorer"
    THE_CULTIVATOR = "The Cultivator"
    THE_OPTIMIZER = "The Optimizer"
    THE_INNOVATOR = "The Innovator"


@dataclass(frozen=True)
class IdentityProfile:
    """
    Derived profile embedded in a token for the dashboard to render.

    The profile rides inside the envelope, so it is protected by the HMAC
    but is not part of the message the wallet signs.
    """

    personality_type: PersonalityType
    tagline: str = ""
    description: str = ""
    main_categories: List[str] = field(default_factory=list)
    sub_categories: List[str] = field(default_factory=list)
    confidence: Optional[int] = None
    mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "personalityType": self.personality_type.value,
            "tagline": self.tagline,
            "description": self.description,
            "mainCategories": list(self.main_categories),
            "subCategories": list(self.sub_categories),
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.mode is not None:
            data["mode"] = self.mode
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdentityProfile":
        """
        Parse a profile from its wire form.

        Accepts the older ``customTagline``/``customDescription`` keys.

        Raises:
            ValueError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("identity must be an object")

        personality = PersonalityType(data.get("personalityType"))
        tagline = data.get("tagline", data.get("customTagline", ""))
        description = data.get("description", data.get("customDescription", ""))
        main_categories = data.get("mainCategories", [])
        sub_categories = data.get("subCategories", [])
        confidence = data.get("confidence")
        mode = data.get("mode")

        if not isinstance(tagline, str) or not isinstance(description, str):
            raise ValueError("identity tagline/description must be strings")
        for name, values in (("mainCategories", main_categories), ("subCategories", sub_categories)):
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ValueError(f"identity {name} must be a list of strings")
        if confidence is not None and (isinstance(confidence, bool) or not isinstance(confidence, int)):
            raise ValueError("identity confidence must be an integer")
        if mode is not None and not isinstance(mode, str):
            raise ValueError("identity mode must be a string")

        return cls(
            personality_type=personality,
            tagline=tagline,
            description=description,
            main_categories=list(main_categories),
            sub_categories=list(sub_categories),
            confidence=confidence,
            mode=mode,
        )


@dataclass(frozen=True)
class Claims:
    """
    Facts an agent token asserts before cryptographic binding.

    Attributes:
        address: Agent wallet address (0x-prefixed hex).
        nonce: Random, single-use value per token.
        timestamp: Issuance instant in milliseconds since the epoch.
        expires_at: Instant after which the token is void, in milliseconds.
        scope: Ordered permission strings. Order is part of the signed message.
        identity: Optional derived profile for the dashboard.
        agent_id: Optional platform account id for the agent.
    """

    address: str
    nonce: str
    timestamp: int
    expires_at: int
    scope: List[str]
    identity: Optional[IdentityProfile] = None
    agent_id: Optional[str] = None

    def validate(self) -> None:
        """
        Check the issuance invariants.

        Raises:
            InvalidClaims: If any invariant does not hold.
        """
        if not ADDRESS_PATTERN.match(self.address or ""):
            raise InvalidClaims(f"Invalid wallet address: {self.address!r}")
        if not self.nonce:
            raise InvalidClaims("Claims require a non-empty nonce")
        if self.expires_at <= self.timestamp:
            raise InvalidClaims("expiresAt must be later than timestamp")
        if not self.scope:
            raise InvalidClaims("Claims require at least one scope")
        if not all(isinstance(s, str) and s for s in self.scope):
            raise InvalidClaims("Scopes must be non-empty strings")


def new_claims(
    address: str,
    scope: Optional[List[str]] = None,
    ttl_seconds: Optional[int] = None,
    identity: Optional[IdentityProfile] = None,
    agent_id: Optional[str] = None,
    now: Optional[float] = None,
) -> Claims:
    """
    Build fresh claims for an agent wallet.

    Args:
        address: Wallet address; stored lowercase.
        scope: Requested scopes. Defaults to every recognized scope.
        ttl_seconds: Validity window from now. Defaults to BLOOM_TOKEN_TTL_SECONDS.
        identity: Optional profile to embed.
        agent_id: Optional platform account id.
        now: Current unix time in seconds (defaults to ``time.time()``).

    Returns:
        Claims with a random UUID4 nonce.
    """
    if ttl_seconds is None:
        ttl_seconds = token_ttl_seconds()
    timestamp = int((time.time() if now is None else now) * 1000)
    return Claims(
        address=address.lower(),
        nonce=str(uuid.uuid4()),
        timestamp=timestamp,
        expires_at=timestamp + ttl_seconds * 1000,
        scope=list(scope) if scope is not None else list(DEFAULT_SCOPES),
        identity=identity,
        agent_id=agent_id,
    )


@dataclass(frozen=True)
class SignedPayload:
    """Claims plus the wallet's proof over their canonical message."""

    claims: Claims
    signature: str
    signed_message: str

    def to_dict(self) -> Dict[str, Any]:
        """Render the payload with its wire keys."""
        claims = self.claims
        data: Dict[str, Any] = {
            "type": TOKEN_TYPE,
            "version": TOKEN_VERSION,
            "address": claims.address,
            "nonce": claims.nonce,
            "timestamp": claims.timestamp,
            "expiresAt": claims.expires_at,
            "scope": list(claims.scope),
            "signature": self.signature,
            "signedMessage": self.signed_message,
        }
        if claims.identity is not None:
            data["identity"] = claims.identity.to_dict()
        if claims.agent_id is not None:
            data["agentId"] = claims.agent_id
        return data


def _require_number(data: Dict[str, Any], key: str):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedPayload(f"{key} must be a finite number")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedPayload(f"{key} must be a finite number")
    if abs(value) > MAX_TIMESTAMP_MS:
        raise MalformedPayload(f"{key} is out of range")
    # JSON writers may emit 1000.0 for 1000; keep the integer rendering
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_utf8(value: str) -> bool:
    # JSON may decode lone surrogates ("\ud800") that have no UTF-8 form
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _require_string(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedPayload(f"{key} must be a non-empty string")
    if not _is_utf8(value):
        raise MalformedPayload(f"{key} is not valid UTF-8")
    return value


def parse_signed_payload(data: Dict[str, Any]) -> SignedPayload:
    """
    Validate the shape of a decoded token payload.

    An empty scope list is accepted here; rejecting it is a separate
    pipeline step.

    Raises:
        MalformedPayload: If a required field is missing or mistyped.
    """
    if data.get("type") != TOKEN_TYPE:
        raise MalformedPayload(f"Unexpected token type: {data.get('type')!r}")
    if data.get("version") != TOKEN_VERSION:
        raise MalformedPayload(f"Unsupported token version: {data.get('version')!r}")

    address = data.get("address")
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise MalformedPayload("address is not a wallet address")

    nonce = _require_string(data, "nonce")
    timestamp = _require_number(data, "timestamp")
    expires_at = _require_number(data, "expiresAt")

    scope = data.get("scope")
    if not isinstance(scope, list) or not all(isinstance(s, str) and _is_utf8(s) for s in scope):
        raise MalformedPayload("scope must be a list of strings")

    signature = _require_string(data, "signature")
    signed_message = _require_string(data, "signedMessage")

    identity = None
    if data.get("identity") is not None:
        try:
            identity = IdentityProfile.from_dict(data["identity"])
        except ValueError as e:
            raise MalformedPayload(f"identity is malformed: {e}")

    agent_id = data.get("agentId")
    if agent_id is not None and not isinstance(agent_id, str):
        raise MalformedPayload("agentId must be a string")

    claims = Claims(
        address=address,
        nonce=nonce,
        timestamp=timestamp,
        expires_at=expires_at,
        scope=list(scope),
        identity=identity,
        agent_id=agent_id,
    )
    return SignedPayload(claims=claims, signature=signature, signed_message=signed_message)

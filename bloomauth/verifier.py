"""
Bloom Agent Token Verifier - turns an agent token into a Session.

The pipeline runs in a fixed order and stops at the first failure:

1. envelope   - JWS structure, HS256 pin, HMAC, ``iss``/``aud``/``exp``
2. schema     - every claim present and well-typed
3. message    - canonical message re-rendered from the claims must equal
                the ``signedMessage`` carried in the token
4. wallet     - ``signature`` must recover to ``address``
5. expiry     - now strictly before the claims' ``expiresAt``
6. scope      - at least one scope granted

Nothing is cached and no nonce is consumed: the same token verifies again on
every call until it expires.
"""

import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from jwcrypto import jws
from jwcrypto.common import JWException, base64url_decode

from bloomauth.claims import MAX_TIMESTAMP_MS, IdentityProfile, SignedPayload, parse_signed_payload
from bloomauth.config import AuthConfig
from bloomauth.errors import (
    ERRORS_BY_REASON,
    EnvelopeInvalid,
    Expired,
    FailureReason,
    MessageMismatch,
    NoScope,
    SignatureInvalid,
    VerificationError,
)
from bloomauth.message import build_canonical_message
from bloomauth.session import Session
from bloomauth.signer import ENVELOPE_ALGORITHM, envelope_key
from bloomauth.wallet import verify_wallet_signature

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Outcome of verifying one agent token."""

    ok: bool
    session: Optional[Session] = None
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    identity: Optional[IdentityProfile] = None
    agent_id: Optional[str] = None


class Verifier:
    """
    Verifies agent tokens issued by ``AgentTokenIssuer``.

    Example:
        >>> verifier = Verifier(AuthConfig.from_env())
        >>> result = verifier.verify(token)
        >>> if result.ok and result.session.has_scope("read:identity"):
        ...     ...
    """

    def __init__(self, config: AuthConfig, clock: Callable[[], float] = time.time):
        """
        Args:
            config: Secret, issuer, audience and envelope clock skew.
            clock: Returns the current unix time in seconds.
        """
        self._config = config
        self._clock = clock
        self._key = envelope_key(config.secret)

    def verify(self, token: str) -> VerificationResult:
        """
        Run the full pipeline. Never raises for a bad token.

        Returns:
            A VerificationResult with a Session on success, or the
            FailureReason of the first failing step.
        """
        try:
            session, signed = self._verify(token)
        except VerificationError as e:
            logger.debug(f"Agent token rejected ({e.reason.value}): {e}")
            return VerificationResult(ok=False, reason=e.reason, error=str(e))

        return VerificationResult(
            ok=True,
            session=session,
            identity=signed.claims.identity,
            agent_id=signed.claims.agent_id,
        )

    def authenticate(self, token: str) -> Session:
        """
        Verify a token and return its Session.

        Raises:
            VerificationError: The subclass matching the failing step.
        """
        result = self.verify(token)
        if not result.ok:
            raise ERRORS_BY_REASON[result.reason](result.error or "")
        return result.session

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _verify(self, token: str) -> Tuple[Session, SignedPayload]:
        now = self._clock()
        envelope, envelope_exp_ms = self._open_envelope(token, now)

        signed = parse_signed_payload(envelope)
        claims = signed.claims

        expected = build_canonical_message(claims)
        if not hmac.compare_digest(expected.encode("utf-8"), signed.signed_message.encode("utf-8")):
            raise MessageMismatch("Signed message does not match the token claims")

        if not verify_wallet_signature(signed.signed_message, signed.signature, claims.address):
            raise SignatureInvalid("Wallet signature does not match the token address")

        now_ms = int(now * 1000)
        if now_ms >= claims.expires_at:
            raise Expired(f"Token expired at {claims.expires_at}")

        if not claims.scope:
            raise NoScope("Token grants no scope")

        # the earlier of the two expiries bounds the session
        expires_at = min(claims.expires_at, envelope_exp_ms)
        session = Session.create(
            address=claims.address,
            scope=claims.scope,
            created_at=now_ms,
            expires_at=expires_at,
        )
        return session, signed

    def _open_envelope(self, token: str, now: float) -> Tuple[Dict[str, Any], int]:
        """Check the HS256 envelope and return its decoded payload and expiry in ms."""
        if not token or not isinstance(token, str):
            raise EnvelopeInvalid("Empty token")

        parts = token.split(".")
        if len(parts) != 3:
            raise EnvelopeInvalid("Invalid token format")

        try:
            header = json.loads(base64url_decode(parts[0]).decode("utf-8"))
        except (ValueError, TypeError) as e:
            raise EnvelopeInvalid(f"Unreadable envelope header: {e}")
        if not isinstance(header, dict) or header.get("alg") != ENVELOPE_ALGORITHM:
            alg = header.get("alg") if isinstance(header, dict) else None
            raise EnvelopeInvalid(f"Unsupported envelope algorithm: {alg!r}")

        try:
            jws_token = jws.JWS()
            jws_token.deserialize(token)
            jws_token.verify(self._key, alg=ENVELOPE_ALGORITHM)
        except (JWException, ValueError, TypeError):
            raise EnvelopeInvalid("Envelope signature verification failed")

        payload_bytes = jws_token.objects.get("payload", b"")
        if isinstance(payload_bytes, str):
            payload_bytes = payload_bytes.encode("utf-8")
        try:
            payload = json.loads(payload_bytes.decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            raise EnvelopeInvalid("Envelope payload is not JSON")
        if not isinstance(payload, dict):
            raise EnvelopeInvalid("Envelope payload is not an object")

        if payload.get("iss") != self._config.issuer:
            raise EnvelopeInvalid("Unexpected token issuer")

        aud = payload.get("aud")
        if aud != self._config.audience and not (isinstance(aud, list) and self._config.audience in aud):
            raise EnvelopeInvalid("Unexpected token audience")

        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise EnvelopeInvalid("Envelope has no expiry")
        try:
            exp_ms = int(exp * 1000)
        except (OverflowError, ValueError):
            raise EnvelopeInvalid("Envelope expiry out of range")
        if exp_ms > MAX_TIMESTAMP_MS:
            raise EnvelopeInvalid("Envelope expiry out of range")
        if now > exp + self._config.clock_skew_seconds:
            raise EnvelopeInvalid(f"Envelope expired at {exp}")

        return payload, exp_ms


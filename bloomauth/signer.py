"""
Bloom Agent Token Signer - wraps wallet-signed claims in an HS256 envelope.

Issuing a token is a two-layer operation:

1. The agent wallet signs the canonical message rendered from the claims.
2. The claims, the signature and the signed message are placed in a JWS
   signed with the shared symmetric secret, together with ``iss``, ``aud``,
   ``iat`` and ``exp``.

The envelope algorithm is fixed to HS256; there is no negotiation.
"""

import json
import logging
import time
from typing import Any, Callable, Dict

from jwcrypto import jwa, jwk, jws
from jwcrypto.common import json_encode

from bloomauth.claims import Claims, SignedPayload
from bloomauth.config import AuthConfig
from bloomauth.errors import InvalidClaims, SignerUnavailable
from bloomauth.message import build_canonical_message
from bloomauth.wallet import WalletSigner

logger = logging.getLogger(__name__)

ENVELOPE_ALGORITHM = "HS256"

# HS256 secrets of any length sign and verify; no RFC 7518 minimum.
jwa.default_enforce_hmac_key_length = False


def envelope_key(secret: str) -> jwk.JWK:
    """Build the symmetric JWK for an HS256 secret (UTF-8 bytes of the string)."""
    return jwk.JWK.from_password(secret)


class TokenEncoder:
    """
    Encodes signed payloads into agent tokens (JWS compact serialization).

    Example:
        >>> encoder = TokenEncoder(AuthConfig(secret="s3cret"))
        >>> token = encoder.encode(signed_payload)
    """

    def __init__(self, config: AuthConfig, clock: Callable[[], float] = time.time):
        """
        Args:
            config: Secret, issuer, audience and TTL.
            clock: Returns the current unix time in seconds.
        """
        self._config = config
        self._clock = clock
        self._key = envelope_key(config.secret)

    def encode(self, signed_payload: SignedPayload) -> str:
        """
        Encode a signed payload as an agent token.

        The envelope expires ``ttl_seconds`` after issuance regardless of the
        claims' own ``expiresAt``; the verifier enforces both.

        Returns:
            A ``header.payload.signature`` token string.
        """
        return self.encode_dict(signed_payload.to_dict())

    def encode_dict(self, payload: Dict[str, Any]) -> str:
        """Encode a raw payload mapping. No claims validation is applied."""
        now = int(self._clock())
        claims = dict(payload)
        claims.update(
            {
                "iss": self._config.issuer,
                "aud": self._config.audience,
                "iat": now,
                "exp": now + self._config.ttl_seconds,
            }
        )

        token = jws.JWS(json.dumps(claims, sort_keys=True, separators=(",", ":")))
        protected_header = {"alg": ENVELOPE_ALGORITHM, "typ": "JWT"}
        token.add_signature(self._key, None, json_encode(protected_header), None)
        return token.serialize(compact=True)


class AgentTokenIssuer:
    """
    Issues agent tokens: canonical message -> wallet signature -> envelope.

    Example:
        >>> issuer = AgentTokenIssuer(config, LocalWalletSigner(private_key))
        >>> token = await issuer.issue(new_claims(issuer.address))
    """

    def __init__(
        self,
        config: AuthConfig,
        wallet_signer: WalletSigner,
        clock: Callable[[], float] = time.time,
    ):
        self._signer = wallet_signer
        self._encoder = TokenEncoder(config, clock=clock)

    @property
    def address(self) -> str:
        """Address of the wallet this issuer signs with."""
        return self._signer.address

    async def sign_claims(self, claims: Claims) -> SignedPayload:
        """
        Validate claims and have the wallet sign their canonical message.

        Raises:
            InvalidClaims: If the claims break an issuance invariant or name
                a different wallet than the signer's.
            SignerUnavailable: If the wallet signer fails. Not retried.
        """
        claims.validate()
        if claims.address.lower() != self._signer.address.lower():
            raise InvalidClaims("Claims address does not match the signing wallet")

        message = build_canonical_message(claims)
        try:
            signature = await self._signer.sign_message(message)
        except Exception as e:
            logger.warning(f"Wallet signer failed for {claims.address[:10]}...: {type(e).__name__}")
            raise SignerUnavailable(f"Wallet signer failed: {e}") from e

        return SignedPayload(claims=claims, signature=signature, signed_message=message)

    async def issue(self, claims: Claims) -> str:
        """
        Issue an agent token for ``claims``.

        Returns:
            The encoded token string.
        """
        signed = await self.sign_claims(claims)
        token = self._encoder.encode(signed)
        logger.info(
            f"Issued agent token for {claims.address[:10]}... scope={','.join(claims.scope)}"
        )
        return token


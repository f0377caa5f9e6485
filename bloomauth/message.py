"""
Canonical message rendering.

The wallet signs the UTF-8 bytes of this text and the verifier re-renders it
from the token payload, so the layout below is part of the wire contract.
Changing the label, field order or separators requires a new token version.
"""

from bloomauth.claims import Claims

AUTH_MESSAGE_LABEL = "Bloom Agent Authentication"


def build_canonical_message(claims: Claims) -> str:
    """
    Render the exact text an agent wallet must sign for these claims.

    Example:
        >>> print(build_canonical_message(claims))
        Bloom Agent Authentication
        Address: 0xabc...
        Nonce: n1
        Timestamp: 1000
        Expires: 86401000
        Scope: read:identity,read:skills
    """
    return "\n".join(
        [
            AUTH_MESSAGE_LABEL,
            f"Address: {claims.address}",
            f"Nonce: {claims.nonce}",
            f"Timestamp: {claims.timestamp}",
            f"Expires: {claims.expires_at}",
            f"Scope: {','.join(claims.scope)}",
        ]
    )

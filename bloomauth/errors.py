"""
Bloom Agent Auth Errors.

Exception taxonomy for token issuance and verification. Configuration and
issuance errors are raised to the caller; verification errors are raised
inside the pipeline and reported by ``Verifier.verify`` as a
``VerificationResult`` carrying the matching ``FailureReason``.
"""

from enum import Enum


class FailureReason(str, Enum):
    """Why a token failed verification."""

    ENVELOPE_INVALID = "envelope_invalid"
    MALFORMED_PAYLOAD = "malformed_payload"
    MESSAGE_MISMATCH = "message_mismatch"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    NO_SCOPE = "no_scope"


class AgentAuthError(Exception):
    """Base class for all Bloom agent auth errors."""


class ConfigurationError(AgentAuthError):
    """Missing or invalid secret, issuer, audience or TTL."""


class InvalidClaims(AgentAuthError, ValueError):
    """Claims rejected before signing."""


class SignerUnavailable(AgentAuthError):
    """The wallet signer failed while producing a signature."""


class VerificationError(AgentAuthError):
    """A token was rejected by the verification pipeline."""

    reason: FailureReason

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason.value)


class EnvelopeInvalid(VerificationError):
    reason = FailureReason.ENVELOPE_INVALID


class MalformedPayload(VerificationError):
    reason = FailureReason.MALFORMED_PAYLOAD


class MessageMismatch(VerificationError):
    reason = FailureReason.MESSAGE_MISMATCH


class SignatureInvalid(VerificationError):
    reason = FailureReason.SIGNATURE_INVALID


class Expired(VerificationError):
    reason = FailureReason.EXPIRED


class NoScope(VerificationError):
    reason = FailureReason.NO_SCOPE


ERRORS_BY_REASON = {
    cls.reason: cls
    for cls in (EnvelopeInvalid, MalformedPayload, MessageMismatch, SignatureInvalid, Expired, NoScope)
}

"""
Bloom Agent Auth - wallet-backed agent tokens for the Bloom dashboard.

This package issues and verifies short-lived tokens that let the dashboard
act for an agent identity: the agent wallet signs a canonical message, and
the signed claims travel inside an HS256 envelope.
"""

__version__ = "1.0.0"

# Core issuance/verification
from .claims import Claims, IdentityProfile, PersonalityType, SignedPayload, new_claims
from .config import AuthConfig, dashboard_url
from .errors import (
    AgentAuthError,
    ConfigurationError,
    EnvelopeInvalid,
    Expired,
    FailureReason,
    InvalidClaims,
    MalformedPayload,
    MessageMismatch,
    NoScope,
    SignatureInvalid,
    SignerUnavailable,
    VerificationError,
)
from .message import build_canonical_message
from .scopes import AgentScope, DEFAULT_SCOPES
from .session import Session
from .signer import AgentTokenIssuer, TokenEncoder
from .verifier import Verifier, VerificationResult
from .wallet import LocalWalletSigner, WalletSigner, generate_wallet


# Storage and framework adapters (lazy imports to avoid requiring optional deps)
def __getattr__(name):
    """Lazy loading of storage and integrations."""
    if name in (
        "UserWalletRecord",
        "WalletStorageInterface",
        "MemoryWalletStorage",
        "FileWalletStorage",
        "claims_for_user",
    ):
        from . import storage

        return getattr(storage, name)
    elif name == "AgentTokenAuth":
        from .integrations.fastapi import AgentTokenAuth

        return AgentTokenAuth
    raise AttributeError(f"module 'bloomauth' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Claims
    "Claims",
    "IdentityProfile",
    "PersonalityType",
    "SignedPayload",
    "new_claims",
    "build_canonical_message",
    "AgentScope",
    "DEFAULT_SCOPES",
    # Config
    "AuthConfig",
    "dashboard_url",
    # Issuance
    "WalletSigner",
    "LocalWalletSigner",
    "generate_wallet",
    "TokenEncoder",
    "AgentTokenIssuer",
    # Verification
    "Verifier",
    "VerificationResult",
    "Session",
    # Errors
    "AgentAuthError",
    "ConfigurationError",
    "InvalidClaims",
    "SignerUnavailable",
    "VerificationError",
    "FailureReason",
    "EnvelopeInvalid",
    "MalformedPayload",
    "MessageMismatch",
    "SignatureInvalid",
    "Expired",
    "NoScope",
    # Storage (lazy loaded)
    "UserWalletRecord",
    "WalletStorageInterface",
    "MemoryWalletStorage",
    "FileWalletStorage",
    "claims_for_user",
    # Integrations (lazy loaded)
    "AgentTokenAuth",
]

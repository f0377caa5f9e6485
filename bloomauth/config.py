# bloomauth/config.py
"""
Centralized configuration for Bloom agent auth.

Deployment values are read from environment variables with sensible defaults.
The token secret has no default: a process that issues or verifies tokens
must refuse to start without one.

Usage:
    from bloomauth.config import AuthConfig

    config = AuthConfig.from_env()   # raises ConfigurationError without JWT_SECRET
    verifier = Verifier(config)

Environment Variables:
    JWT_SECRET: HS256 secret shared by the issuer and the dashboard (required)
    BLOOM_JWT_ISSUER: Envelope issuer (default: bloom-protocol)
    BLOOM_JWT_AUDIENCE: Envelope audience (default: bloom-dashboard)
    BLOOM_TOKEN_TTL_SECONDS: Token lifetime (default: 86400)
    BLOOM_CLOCK_SKEW_SECONDS: Envelope expiry tolerance (default: 30)
    DASHBOARD_URL: Dashboard base URL (default: https://preview.bloomprotocol.ai)
"""

import os
from dataclasses import dataclass
from typing import Final, Mapping, Optional
from urllib.parse import urlencode

from bloomauth.errors import ConfigurationError

# =============================================================================
# Envelope Configuration
# =============================================================================

DEFAULT_ISSUER: Final[str] = "bloom-protocol"
DEFAULT_AUDIENCE: Final[str] = "bloom-dashboard"
DEFAULT_TTL_SECONDS: Final[int] = 24 * 60 * 60
DEFAULT_CLOCK_SKEW_SECONDS: Final[int] = 30

# =============================================================================
# Dashboard Configuration
# =============================================================================

# Dashboard that consumes agent tokens via ?token=
DASHBOARD_URL: Final[str] = os.getenv(
    "DASHBOARD_URL",
    "https://preview.bloomprotocol.ai"
)

# Where per-user wallet records are kept by FileWalletStorage
WALLET_STORAGE_PATH: Final[str] = os.getenv(
    "BLOOM_WALLET_STORAGE",
    os.path.join(".wallet-storage", "user-wallets.json")
)


@dataclass(frozen=True)
class AuthConfig:
    """
    Immutable token configuration shared by the encoder and the verifier.

    Attributes:
        secret: HS256 secret for the envelope.
        issuer: Value written to and required in ``iss``.
        audience: Value written to and required in ``aud``.
        ttl_seconds: Envelope lifetime from issuance.
        clock_skew_seconds: Tolerance applied to the envelope ``exp`` check.
    """

    secret: str
    issuer: str = DEFAULT_ISSUER
    audience: str = DEFAULT_AUDIENCE
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    clock_skew_seconds: int = DEFAULT_CLOCK_SKEW_SECONDS

    def __post_init__(self):
        if not self.secret:
            raise ConfigurationError("JWT secret is required (set JWT_SECRET)")
        if not self.issuer or not self.audience:
            raise ConfigurationError("Token issuer and audience must be non-empty")
        if self.ttl_seconds <= 0:
            raise ConfigurationError(f"Token TTL must be positive, got {self.ttl_seconds}")
        if self.clock_skew_seconds < 0:
            raise ConfigurationError("Clock skew cannot be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthConfig":
        """
        Load configuration from the environment.

        Raises:
            ConfigurationError: If JWT_SECRET is missing or a number is invalid.
        """
        env = os.environ if environ is None else environ
        ttl = token_ttl_seconds(env)
        try:
            skew = int(env.get("BLOOM_CLOCK_SKEW_SECONDS", str(DEFAULT_CLOCK_SKEW_SECONDS)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

        return cls(
            secret=env.get("JWT_SECRET", ""),
            issuer=env.get("BLOOM_JWT_ISSUER", DEFAULT_ISSUER),
            audience=env.get("BLOOM_JWT_AUDIENCE", DEFAULT_AUDIENCE),
            ttl_seconds=ttl,
            clock_skew_seconds=skew,
        )

    def __repr__(self) -> str:
        return (
            f"AuthConfig(secret='***', issuer={self.issuer!r}, audience={self.audience!r}, "
            f"ttl_seconds={self.ttl_seconds}, clock_skew_seconds={self.clock_skew_seconds})"
        )


# =============================================================================
# Helper Functions
# =============================================================================

def token_ttl_seconds(environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Token lifetime from BLOOM_TOKEN_TTL_SECONDS, used for both the envelope
    and the claims' ``expiresAt``.

    Raises:
        ConfigurationError: If the value is not a positive integer.
    """
    env = os.environ if environ is None else environ
    try:
        ttl = int(env.get("BLOOM_TOKEN_TTL_SECONDS", str(DEFAULT_TTL_SECONDS)))
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}")
    if ttl <= 0:
        raise ConfigurationError(f"Token TTL must be positive, got {ttl}")
    return ttl


def dashboard_url(token: str, base_url: Optional[str] = None) -> str:
    """
    Build the dashboard link that hands a token to the dashboard.

    Args:
        token: An issued agent token.
        base_url: Dashboard root (defaults to DASHBOARD_URL).

    Returns:
        URL like "https://preview.bloomprotocol.ai/dashboard?token=eyJ..."
    """
    domain = (base_url or DASHBOARD_URL).rstrip("/")
    return f"{domain}/dashboard?{urlencode({'token': token})}"


def print_config(config: Optional[AuthConfig] = None) -> None:
    """Print current configuration (useful for debugging). Never prints the secret."""
    print("Bloom Agent Auth Configuration:")
    if config is not None:
        print(f"  ISSUER:          {config.issuer}")
        print(f"  AUDIENCE:        {config.audience}")
        print(f"  TTL_SECONDS:     {config.ttl_seconds}")
        print(f"  CLOCK_SKEW:      {config.clock_skew_seconds}")
    print(f"  DASHBOARD_URL:   {DASHBOARD_URL}")
    print(f"  WALLET_STORAGE:  {WALLET_STORAGE_PATH}")

"""
Shared pytest fixtures for Bloom agent auth tests.
"""

from typing import Callable, Optional

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from bloomauth import (
    AgentTokenIssuer,
    AuthConfig,
    Claims,
    LocalWalletSigner,
    SignedPayload,
    TokenEncoder,
    Verifier,
    build_canonical_message,
    generate_wallet,
)
from bloomauth.wallet import WalletKeyPair

# Fixed "now" for deterministic expiry checks (unix seconds)
NOW = 1_700_000_000.0
NOW_MS = int(NOW * 1000)
DAY_MS = 24 * 60 * 60 * 1000


def fixed_clock(at: float = NOW) -> Callable[[], float]:
    return lambda: at


def sign_claims(claims: Claims, private_key: str) -> SignedPayload:
    """Sign claims synchronously, bypassing issuance validation."""
    message = build_canonical_message(claims)
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return SignedPayload(
        claims=claims,
        signature="0x" + bytes(signed.signature).hex(),
        signed_message=message,
    )


@pytest.fixture
def auth_config() -> AuthConfig:
    """Configuration used by both the encoder and the verifier."""
    return AuthConfig(secret="s3cret", issuer="bloom-protocol", audience="bloom-dashboard")


@pytest.fixture
def wallet() -> WalletKeyPair:
    """Generate a fresh agent wallet for testing."""
    return generate_wallet()


@pytest.fixture
def other_wallet() -> WalletKeyPair:
    return generate_wallet()


@pytest.fixture
def wallet_signer(wallet: WalletKeyPair) -> LocalWalletSigner:
    return LocalWalletSigner(wallet.private_key)


@pytest.fixture
def claims(wallet: WalletKeyPair) -> Claims:
    """Valid claims for the test wallet, issued at NOW for one day."""
    return Claims(
        address=wallet.address,
        nonce="n1",
        timestamp=NOW_MS,
        expires_at=NOW_MS + DAY_MS,
        scope=["read:identity", "read:skills"],
    )


@pytest.fixture
def encoder(auth_config: AuthConfig) -> TokenEncoder:
    return TokenEncoder(auth_config, clock=fixed_clock())


@pytest.fixture
def issuer(auth_config: AuthConfig, wallet_signer: LocalWalletSigner) -> AgentTokenIssuer:
    return AgentTokenIssuer(auth_config, wallet_signer, clock=fixed_clock())


@pytest.fixture
def verifier(auth_config: AuthConfig) -> Verifier:
    return Verifier(auth_config, clock=fixed_clock())


@pytest.fixture
def make_token(encoder: TokenEncoder, wallet: WalletKeyPair) -> Callable[..., str]:
    """Build a token from claims signed by the test wallet."""

    def _make(claims: Claims, private_key: Optional[str] = None) -> str:
        return encoder.encode(sign_claims(claims, private_key or wallet.private_key))

    return _make

"""
Bloom Agent Auth Wallet Signing - EIP-191 signatures for agent wallets.

The agent's wallet is held by an external custody layer; this module only
defines the signing interface the issuer calls and the recovery check the
verifier runs. ``LocalWalletSigner`` signs with an in-process key and is meant
for development, tests and the CLI.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)


class WalletSigner(ABC):
    """Signing capability bound to one agent wallet address."""

    @property
    @abstractmethod
    def address(self) -> str:
        """The wallet address signatures are produced for."""
        pass

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        """
        Sign ``message`` with EIP-191 ``personal_sign`` semantics.

        Returns:
            The 0x-prefixed hex signature.
        """
        pass


class LocalWalletSigner(WalletSigner):
    """
    Signs with a private key held in this process.

    Example:
        >>> wallet = generate_wallet()
        >>> signer = LocalWalletSigner(wallet.private_key)
        >>> signature = await signer.sign_message("hello")
    """

    def __init__(self, private_key: str):
        if not private_key:
            raise ValueError("LocalWalletSigner requires 'private_key' (hex string)")
        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            raise ValueError(f"Invalid wallet private key: {e}")

    @property
    def address(self) -> str:
        return self._account.address.lower()

    async def sign_message(self, message: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()


@dataclass(frozen=True)
class WalletKeyPair:
    """A freshly generated local wallet."""

    address: str
    private_key: str


def generate_wallet() -> WalletKeyPair:
    """Generate a throwaway wallet for local signing."""
    account = Account.create()
    return WalletKeyPair(
        address=account.address.lower(),
        private_key="0x" + bytes(account.key).hex(),
    )


def recover_signer(message: str, signature: str) -> Optional[str]:
    """
    Recover the lowercase address that produced an EIP-191 signature.

    Returns:
        The signer address, or None if the signature cannot be decoded.
    """
    try:
        address = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        logger.debug(f"Wallet signature recovery failed: {e}")
        return None
    return address.lower()


def verify_wallet_signature(message: str, signature: str, address: str) -> bool:
    """Check that ``signature`` over ``message`` was made by ``address``."""
    recovered = recover_signer(message, signature)
    return recovered is not None and recovered == address.lower()

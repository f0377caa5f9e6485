"""
Unit tests for wallet signing and signature recovery.
"""

import pytest

from bloomauth import LocalWalletSigner, generate_wallet
from bloomauth.wallet import recover_signer, verify_wallet_signature


class TestGenerateWallet:
    def test_address_format(self):
        wallet = generate_wallet()

        assert wallet.address.startswith("0x")
        assert len(wallet.address) == 42
        assert wallet.address == wallet.address.lower()

    def test_private_key_format(self):
        wallet = generate_wallet()
        assert wallet.private_key.startswith("0x")
        assert len(wallet.private_key) == 66

    def test_wallets_are_unique(self):
        assert generate_wallet().address != generate_wallet().address


class TestLocalWalletSigner:
    """Tests for LocalWalletSigner."""

    def test_address_matches_key(self, wallet):
        assert LocalWalletSigner(wallet.private_key).address == wallet.address

    def test_missing_key(self):
        with pytest.raises(ValueError, match="private_key"):
            LocalWalletSigner("")

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="Invalid wallet private key"):
            LocalWalletSigner("not-a-key")

    @pytest.mark.asyncio
    async def test_signature_recovers_to_address(self, wallet_signer, wallet):
        signature = await wallet_signer.sign_message("hello bloom")

        assert signature.startswith("0x")
        assert len(signature) == 132  # 65 bytes: r, s, v
        assert recover_signer("hello bloom", signature) == wallet.address


class TestVerifyWalletSignature:
    """Tests for verify_wallet_signature()."""

    @pytest.mark.asyncio
    async def test_valid(self, wallet_signer, wallet):
        signature = await wallet_signer.sign_message("msg")
        assert verify_wallet_signature("msg", signature, wallet.address) is True

    @pytest.mark.asyncio
    async def test_case_insensitive_address(self, wallet_signer, wallet):
        signature = await wallet_signer.sign_message("msg")
        assert verify_wallet_signature("msg", signature, "0x" + wallet.address[2:].upper())

    @pytest.mark.asyncio
    async def test_other_message(self, wallet_signer, wallet):
        signature = await wallet_signer.sign_message("msg")
        assert verify_wallet_signature("msg2", signature, wallet.address) is False

    @pytest.mark.asyncio
    async def test_other_address(self, wallet_signer, other_wallet):
        signature = await wallet_signer.sign_message("msg")
        assert verify_wallet_signature("msg", signature, other_wallet.address) is False

    @pytest.mark.parametrize("signature", ["", "0x", "0xdeadbeef", "zz" * 65])
    def test_undecodable_signature(self, wallet, signature):
        assert recover_signer("msg", signature) is None
        assert verify_wallet_signature("msg", signature, wallet.address) is False

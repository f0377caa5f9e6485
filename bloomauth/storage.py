"""
Bloom Wallet Storage.

Per-user wallet records kept by the wallet-management layer. The auth core
never reads these directly; ``claims_for_user`` is the one bridge, so that a
token's ``address`` always comes from the wallet record backing the user.

Supports in-memory storage (tests, single process) and a JSON file.
"""

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from bloomauth.claims import Claims, IdentityProfile, new_claims
from bloomauth.config import WALLET_STORAGE_PATH

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UserWalletRecord:
    """A user's agent wallet as persisted by the wallet layer."""

    user_id: str
    wallet_address: str
    network: str
    wallet_data: str = ""  # opaque, serialized by the custody provider
    created_at: str = ""
    last_used_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserWalletRecord":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class WalletStorageInterface(ABC):
    """Abstract interface for wallet record storage."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserWalletRecord]:
        """Return the wallet record for a user, or None."""
        pass

    @abstractmethod
    async def save(self, record: UserWalletRecord) -> UserWalletRecord:
        """Insert or replace a record. Keeps the original created_at."""
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Remove a user's record. Returns True if one existed."""
        pass

    @abstractmethod
    async def list_users(self) -> List[str]:
        """Return every user id with a stored wallet."""
        pass

    async def update_last_used(self, user_id: str) -> None:
        record = await self.get(user_id)
        if record is not None:
            await self.save(record)

    async def count(self) -> int:
        return len(await self.list_users())


def _stamp(record: UserWalletRecord, existing: Optional[UserWalletRecord]) -> UserWalletRecord:
    now = _utc_now()
    record.created_at = (existing.created_at if existing else None) or record.created_at or now
    record.last_used_at = now
    return record


class MemoryWalletStorage(WalletStorageInterface):
    """
    In-memory wallet storage.

    Suitable for tests and single-process tools. Records are lost on exit.
    """

    def __init__(self):
        self._records: Dict[str, UserWalletRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: str) -> Optional[UserWalletRecord]:
        async with self._lock:
            return self._records.get(user_id)

    async def save(self, record: UserWalletRecord) -> UserWalletRecord:
        async with self._lock:
            stored = _stamp(record, self._records.get(record.user_id))
            self._records[record.user_id] = stored
            return stored

    async def delete(self, user_id: str) -> bool:
        async with self._lock:
            return self._records.pop(user_id, None) is not None

    async def list_users(self) -> List[str]:
        async with self._lock:
            return list(self._records.keys())


class FileWalletStorage(WalletStorageInterface):
    """
    JSON-file wallet storage keyed by user id.

    The file and its directory are created on first write with owner-only
    permissions, since ``wallet_data`` may hold custody material.

    Example:
        >>> storage = FileWalletStorage(".wallet-storage/user-wallets.json")
        >>> await storage.save(UserWalletRecord("user-1", "0xabc...", "base-mainnet"))
        >>> record = await storage.get("user-1")
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path or WALLET_STORAGE_PATH)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, user_id: str) -> Optional[UserWalletRecord]:
        async with self._lock:
            return self._load().get(user_id)

    async def save(self, record: UserWalletRecord) -> UserWalletRecord:
        async with self._lock:
            records = self._load()
            stored = _stamp(record, records.get(record.user_id))
            records[record.user_id] = stored
            self._flush(records)
            return stored

    async def delete(self, user_id: str) -> bool:
        async with self._lock:
            records = self._load()
            if records.pop(user_id, None) is None:
                return False
            self._flush(records)
            return True

    async def list_users(self) -> List[str]:
        async with self._lock:
            return list(self._load().keys())

    def _load(self) -> Dict[str, UserWalletRecord]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read wallet storage {self._path}: {e}")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"Could not read wallet storage {self._path}: expected a JSON object")
            return {}
        return {
            user_id: UserWalletRecord.from_dict(data)
            for user_id, data in raw.items()
            if isinstance(data, dict)
        }

    def _flush(self, records: Dict[str, UserWalletRecord]) -> None:
        # written to an owner-only temp file, then swapped in
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        if tmp_path.exists():
            tmp_path.unlink()
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump({uid: r.to_dict() for uid, r in records.items()}, f, indent=2)
        os.replace(tmp_path, self._path)


async def claims_for_user(
    storage: WalletStorageInterface,
    user_id: str,
    scope: Optional[List[str]] = None,
    ttl_seconds: Optional[int] = None,
    identity: Optional[IdentityProfile] = None,
    agent_id: Optional[str] = None,
) -> Claims:
    """
    Build fresh claims for the wallet stored for ``user_id``.

    ``ttl_seconds`` defaults to BLOOM_TOKEN_TTL_SECONDS.

    Raises:
        LookupError: If the user has no stored wallet.
    """
    record = await storage.get(user_id)
    if record is None:
        raise LookupError(f"No wallet stored for user {user_id!r}")

    await storage.update_last_used(user_id)
    return new_claims(
        record.wallet_address,
        scope=scope,
        ttl_seconds=ttl_seconds,
        identity=identity,
        agent_id=agent_id,
    )

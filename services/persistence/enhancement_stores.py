"""
Enhancement history backends.

The durable store and the local-only cache expose the same interface; which
one the gateway uses is decided once, from configuration.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List

from infrastructure.cache.local_cache import LocalCache
from infrastructure.database.sqlite_store import SQLiteStore
from services.chat_service.models import Enhancement, utc_now
from services.errors import StoreError
from utils.logging_config import get_logger


class EnhancementStore(ABC):
    """Owner-scoped enhancement history"""

    name = "abstract"

    @abstractmethod
    async def list(self, owner_id: str) -> List[Enhancement]:
        """Newest first"""

    @abstractmethod
    async def create(self, owner_id: str, original: str, enhanced: str, provider: str) -> Enhancement:
        ...

    @abstractmethod
    async def delete(self, enhancement_id: str, owner_id: str) -> None:
        """Raises StoreError when the id is unknown"""


class DatabaseEnhancementStore(EnhancementStore):
    """Enhancements kept in the backend store"""

    name = "database"

    def __init__(self, store: SQLiteStore):
        self.store = store

    async def list(self, owner_id: str) -> List[Enhancement]:
        return await asyncio.to_thread(self.store.select_enhancements, owner_id)

    async def create(self, owner_id: str, original: str, enhanced: str, provider: str) -> Enhancement:
        return await asyncio.to_thread(self.store.insert_enhancement, owner_id, original, enhanced, provider)

    async def delete(self, enhancement_id: str, owner_id: str) -> None:
        await asyncio.to_thread(self.store.delete_enhancement, enhancement_id, owner_id)


class LocalCacheEnhancementStore(EnhancementStore):
    """Degraded mode: enhancements kept in the local cache under `enhancements_<owner>`"""

    name = "local_cache"

    def __init__(self, cache: LocalCache, clock: Callable[[], datetime] = utc_now):
        self.logger = get_logger(__name__)
        self.cache = cache
        self.clock = clock

    @staticmethod
    def cache_key(owner_id: str) -> str:
        return f"enhancements_{owner_id}"

    def _read(self, owner_id: str) -> List[Enhancement]:
        enhancements = []
        for item in self.cache.get_all(self.cache_key(owner_id)):
            try:
                enhancements.append(Enhancement.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping malformed cached enhancement: {e}")
        return enhancements

    def _write(self, owner_id: str, enhancements: List[Enhancement]) -> None:
        try:
            self.cache.set_all(self.cache_key(owner_id), [e.to_dict() for e in enhancements])
        except OSError as e:
            raise StoreError(f"Failed to write local cache: {e}") from e

    async def list(self, owner_id: str) -> List[Enhancement]:
        return self._read(owner_id)

    async def create(self, owner_id: str, original: str, enhanced: str, provider: str) -> Enhancement:
        enhancement = Enhancement(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            original_prompt=original,
            enhanced_prompt=enhanced,
            provider=provider,
            created_at=self.clock(),
        )
        self._write(owner_id, [enhancement] + self._read(owner_id))
        return enhancement

    async def delete(self, enhancement_id: str, owner_id: str) -> None:
        current = self._read(owner_id)
        remaining = [e for e in current if e.id != enhancement_id]
        if len(remaining) == len(current):
            raise StoreError(f"Enhancement not found: {enhancement_id}")
        self._write(owner_id, remaining)

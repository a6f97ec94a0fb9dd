"""
Persistence gateway - async create/read/update/delete for conversations,
messages and enhancements.
"""

import asyncio
from typing import Any, Callable, List, Optional, Sequence

from config.app_config import AppConfig, get_config
from infrastructure.cache.local_cache import LocalCache
from infrastructure.database.sqlite_store import SQLiteStore
from services.chat_service.models import (
    Conversation,
    ConversationSummary,
    Enhancement,
    Message,
    Role,
)
from services.errors import StoreError
from services.persistence.enhancement_stores import (
    DatabaseEnhancementStore,
    EnhancementStore,
    LocalCacheEnhancementStore,
)
from utils.logging_config import get_logger, log_execution_time

DEFAULT_CONVERSATION_TITLE = "New Conversation"


class PersistenceGateway:
    """
    Single-attempt access to the backend store. Every operation either returns
    its value or raises StoreError; nothing is retried here.
    """

    def __init__(self, store: SQLiteStore, enhancements: EnhancementStore):
        self.logger = get_logger(__name__)
        self.store = store
        self.enhancements = enhancements

    async def _run(self, operation: str, func: Callable[..., Any], *args) -> Any:
        with log_execution_time(self.logger, operation):
            try:
                return await asyncio.to_thread(func, *args)
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(f"{operation} failed: {e}") from e

    # Conversations

    async def create_conversation(self, owner_id: str, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        return await self._run("create_conversation", self.store.insert_conversation, owner_id, title)

    async def list_conversations(self, owner_id: str) -> List[ConversationSummary]:
        return await self._run("list_conversations", self.store.select_conversations, owner_id)

    async def update_conversation(
        self,
        conversation_id: str,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Conversation:
        return await self._run(
            "update_conversation", self.store.update_conversation, conversation_id, title, summary, tags
        )

    async def delete_conversation(self, conversation_id: str, owner_id: str) -> None:
        await self._run("delete_conversation", self.store.delete_conversation, conversation_id, owner_id)

    # Messages

    async def list_messages(self, conversation_id: str) -> List[Message]:
        return await self._run("list_messages", self.store.select_messages, conversation_id)

    async def append_message(self, conversation_id: str, role: Role, content: str) -> Message:
        return await self._run("append_message", self.store.insert_message, conversation_id, role, content)

    # Enhancements

    async def list_enhancements(self, owner_id: str) -> List[Enhancement]:
        return await self._guard("list_enhancements", self.enhancements.list(owner_id))

    async def create_enhancement(self, owner_id: str, original: str, enhanced: str, provider: str) -> Enhancement:
        return await self._guard(
            "create_enhancement", self.enhancements.create(owner_id, original, enhanced, provider)
        )

    async def delete_enhancement(self, enhancement_id: str, owner_id: str) -> None:
        await self._guard("delete_enhancement", self.enhancements.delete(enhancement_id, owner_id))

    async def _guard(self, operation: str, awaitable) -> Any:
        with log_execution_time(self.logger, operation, backend=self.enhancements.name):
            try:
                return await awaitable
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(f"{operation} failed: {e}") from e


def create_enhancement_store(config: AppConfig, store: SQLiteStore) -> EnhancementStore:
    """Pick the enhancement backend named in the configuration"""
    if config.storage.uses_local_cache():
        return LocalCacheEnhancementStore(LocalCache(config.storage.local_cache_dir))
    return DatabaseEnhancementStore(store)


def create_persistence_gateway(config: Optional[AppConfig] = None) -> PersistenceGateway:
    config = config or get_config()
    store = SQLiteStore(config.storage.db_path)
    gateway = PersistenceGateway(store, create_enhancement_store(config, store))
    gateway.logger.info(f"Persistence gateway ready (enhancements: {gateway.enhancements.name})")
    return gateway


# Global gateway instance
_gateway: Optional[PersistenceGateway] = None


def get_persistence_gateway() -> PersistenceGateway:
    """Get the global persistence gateway instance"""
    global _gateway
    if _gateway is None:
        _gateway = create_persistence_gateway()
    return _gateway

"""
Tests for the conversation history listing
"""

import os
import shutil
import tempfile

import pytest
from unittest.mock import AsyncMock, Mock

from infrastructure.database.sqlite_store import SQLiteStore
from services.chat_service.conversation_history import ConversationHistory
from services.chat_service.models import Conversation, ConversationSummary, Role
from services.errors import StoreError
from services.notifications import NotificationCenter
from services.persistence.enhancement_stores import DatabaseEnhancementStore
from services.persistence.gateway import PersistenceGateway
from utils.logging_config import ErrorTracker


class TestConversationHistory:
    """Test listing and deleting conversations"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = SQLiteStore(os.path.join(self.temp_dir, "history.db"))
        self.gateway = PersistenceGateway(self.store, DatabaseEnhancementStore(self.store))
        self.notifications = NotificationCenter()
        self.history = ConversationHistory("owner-1", self.gateway, self.notifications, Mock(spec=ErrorTracker))

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @pytest.mark.asyncio
    async def test_load_with_message_counts(self):
        """Test that conversations are listed with their message counts"""
        conversation = await self.gateway.create_conversation("owner-1", "Trip planning")
        await self.gateway.append_message(conversation.id, Role.USER, "hello")
        await self.gateway.append_message(conversation.id, Role.ASSISTANT, "Hi there!")
        await self.gateway.create_conversation("owner-2", "Not mine")

        conversations = await self.history.load()

        assert [(c.title, c.message_count) for c in conversations] == [("Trip planning", 2)]
        assert self.history.loading is False

    @pytest.mark.asyncio
    async def test_summary_and_tag_labels(self):
        """Test that listings carry the summary and shortened tag labels"""
        conversation = await self.gateway.create_conversation("owner-1", "Trip planning")
        await self.gateway.update_conversation(
            conversation.id, summary="Ten days in Japan", tags=["travel", "japan", "budget", "food"]
        )

        summary, = await self.history.load()

        assert summary.conversation.summary == "Ten days in Japan"
        assert summary.tag_labels() == ["travel", "japan", "+2"]

    def test_tag_labels_without_overflow(self):
        """Test tag labels when every tag fits"""
        two_tags = ConversationSummary(Conversation("c1", "owner-1", "Trip", tags=("travel", "japan")))

        assert two_tags.tag_labels() == ["travel", "japan"]
        assert ConversationSummary(Conversation("c2", "owner-1", "Empty")).tag_labels() == []

    @pytest.mark.asyncio
    async def test_load_failure_keeps_previous_list(self):
        """Test that a failed refresh reports and keeps the last known list"""
        await self.gateway.create_conversation("owner-1", "Kept")
        await self.history.load()
        self.gateway.list_conversations = AsyncMock(side_effect=StoreError("offline"))

        conversations = await self.history.load()

        assert [c.title for c in conversations] == ["Kept"]
        assert self.notifications.last.message == "Failed to load conversations."

    @pytest.mark.asyncio
    async def test_delete(self):
        """Test that a confirmed delete removes the conversation"""
        conversation = await self.gateway.create_conversation("owner-1", "Temporary")
        await self.history.load()

        assert await self.history.delete(conversation.id) is True

        assert self.history.conversations == []
        assert self.notifications.last.level == "info"
        assert self.notifications.last.message == "Conversation deleted"
        assert await self.gateway.list_conversations("owner-1") == []

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_list(self):
        """Test that the list only changes after the store confirms"""
        conversation = await self.gateway.create_conversation("owner-1", "Stays")
        await self.history.load()
        self.gateway.delete_conversation = AsyncMock(side_effect=StoreError("locked"))

        assert await self.history.delete(conversation.id) is False

        assert [c.id for c in self.history.conversations] == [conversation.id]
        assert self.notifications.last.level == "error"

    @pytest.mark.asyncio
    async def test_without_owner(self):
        """Test that history is empty when nobody is signed in"""
        history = ConversationHistory(None, self.gateway, self.notifications)

        assert await history.load() == []
        assert await history.delete("anything") is False
        assert self.notifications.pending == []


if __name__ == "__main__":
    pytest.main([__file__])

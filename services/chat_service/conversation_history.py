"""
Conversation history - the owner's conversations, newest activity first.
"""

from typing import List, Optional

from services.chat_service.models import ConversationSummary
from services.errors import as_session_error
from services.notifications import NotificationCenter
from services.persistence.gateway import PersistenceGateway
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger, log_conversation_event


class ConversationHistory:
    """Lists and deletes conversations; the list is replaced only by store results"""

    def __init__(
        self,
        owner_id: Optional[str],
        gateway: PersistenceGateway,
        notifications: Optional[NotificationCenter] = None,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        self.logger = get_logger(__name__)
        self.owner_id = owner_id
        self.gateway = gateway
        self.notifications = notifications or NotificationCenter()
        self.error_tracker = error_tracker or get_error_tracker()
        self.conversations: List[ConversationSummary] = []
        self.loading = False
        self.last_error: Optional[Exception] = None

    def _fail(self, error: Exception, action: str) -> None:
        failure = as_session_error(error)
        self.last_error = failure
        self.error_tracker.track_error(failure, context=f"conversation_history.{action}")
        self.notifications.failure(failure, action)

    async def load(self) -> List[ConversationSummary]:
        if self.owner_id is None:
            self.conversations = []
            return []

        self.loading = True
        try:
            self.conversations = await self.gateway.list_conversations(self.owner_id)
            self.last_error = None
        except Exception as e:
            self._fail(e, "load conversations")
        finally:
            self.loading = False
        return list(self.conversations)

    async def delete(self, conversation_id: str) -> bool:
        """Delete remotely, then drop from the list once confirmed"""
        if self.owner_id is None:
            return False

        try:
            await self.gateway.delete_conversation(conversation_id, self.owner_id)
        except Exception as e:
            self._fail(e, "delete conversation")
            return False

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        log_conversation_event(self.logger, "deleted", conversation_id)
        self.notifications.info("Success", "Conversation deleted")
        return True

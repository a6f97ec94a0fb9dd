"""
Conversation session - sends user messages, reveals assistant replies and
keeps the view-state in step with the store.
"""

from dataclasses import replace
from datetime import timedelta
from typing import Callable, List, Optional

from services.ai_service.llm_client import AssistantService
from services.chat_service.identity import IdentityAllocator
from services.chat_service.models import (
    Message,
    Pending,
    Role,
    SessionSnapshot,
    SessionState,
)
from services.chat_service.reconciliation import DEFAULT_WINDOW, reconcile
from services.chat_service.reveal import RevealScheduler
from services.errors import ValidationError, as_session_error
from services.notifications import NotificationCenter
from services.persistence.gateway import DEFAULT_CONVERSATION_TITLE, PersistenceGateway
from utils.logging_config import (
    ErrorTracker,
    get_error_tracker,
    get_logger,
    log_conversation_event,
)

TITLE_PREVIEW_LENGTH = 50

StateListener = Callable[[SessionState], None]
ChangeListener = Callable[[SessionSnapshot], None]


def title_from_message(content: str, length: int = TITLE_PREVIEW_LENGTH) -> str:
    """Conversation title derived from its first user message"""
    text = " ".join(content.split())
    return text[:length] + "..." if len(text) > length else text


class ConversationSession:
    """
    One user's view of one conversation at a time.

    Steps of a send run to completion (or to their failure point) before the
    next send is accepted. Every view mutation is tagged with the generation it
    belongs to; `open`, `new_conversation` and `close` start a new generation,
    after which output of an older flow is no longer applied.
    """

    def __init__(
        self,
        owner_id: str,
        gateway: PersistenceGateway,
        assistant: AssistantService,
        reveal: Optional[RevealScheduler] = None,
        allocator: Optional[IdentityAllocator] = None,
        notifications: Optional[NotificationCenter] = None,
        error_tracker: Optional[ErrorTracker] = None,
        reconcile_window: timedelta = DEFAULT_WINDOW,
    ):
        self.logger = get_logger(__name__)
        self.owner_id = owner_id
        self.gateway = gateway
        self.assistant = assistant
        self.reveal = reveal or RevealScheduler()
        self.allocator = allocator or IdentityAllocator()
        self.notifications = notifications or NotificationCenter()
        self.error_tracker = error_tracker or get_error_tracker()
        self.reconcile_window = reconcile_window

        self.conversation_id: Optional[str] = None
        self.draft = ""
        self.last_error: Optional[Exception] = None

        self._conversation_title: Optional[str] = None
        self._messages: List[Message] = []
        self._state = SessionState.IDLE
        self._in_flight = False
        self._is_revealing = False
        self._generation = 0
        self._closed = False

        self._state_listeners: List[StateListener] = []
        self._change_listeners: List[ChangeListener] = []

    # Observation

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            conversation_id=self.conversation_id,
            messages=tuple(self._messages),
            state=self._state,
            is_revealing=self._is_revealing,
            in_flight=self._in_flight,
            draft=self.draft,
            last_error=self.last_error,
        )

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        self._state_listeners.append(listener)
        return lambda: self._state_listeners.remove(listener)

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a view listener; returns a function that unregisters it"""
        self._change_listeners.append(listener)
        return lambda: self._change_listeners.remove(listener)

    def _owns(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _set_state(self, state: SessionState, generation: int) -> None:
        if not self._owns(generation) or state == self._state:
            return
        self.logger.debug(f"Session state {self._state.value} -> {state.value}")
        self._state = state
        for listener in self._state_listeners:
            listener(state)

    def _changed(self, generation: int) -> None:
        if not self._owns(generation):
            return
        snapshot = self.snapshot()
        for listener in self._change_listeners:
            listener(snapshot)

    def _shows(self, message_id: str, generation: int) -> bool:
        return self._owns(generation) and any(m.id == message_id for m in self._messages)

    def _update_message(self, message_id: str, generation: int, **changes) -> None:
        if not self._owns(generation):
            return
        self._messages = [
            replace(m, **changes) if m.id == message_id else m for m in self._messages
        ]
        self._changed(generation)

    def _remove_message(self, message_id: str, generation: int) -> None:
        if not self._owns(generation):
            return
        self._messages = [m for m in self._messages if m.id != message_id]
        self._changed(generation)

    def _append_pending(self, role: Role, content: str, conversation_id: str, generation: int) -> Message:
        message = Message(
            identity=Pending(self.allocator.allocate(role.value)),
            conversation_id=conversation_id,
            role=role,
            content=content,
        )
        if self._owns(generation):
            self._messages.append(message)
            self._changed(generation)
        return message

    def _fail(self, error: Exception, action: str, generation: int) -> None:
        failure = as_session_error(error)
        self.last_error = failure
        self.error_tracker.track_error(
            failure,
            context=f"conversation_session.{action}",
            conversation_id=self.conversation_id,
        )
        self._set_state(SessionState.FAILED, generation)
        self.notifications.failure(failure, action)

    # Navigation

    def _reset_view(self, conversation_id: Optional[str], title: Optional[str]) -> int:
        self._generation += 1
        self.conversation_id = conversation_id
        self._conversation_title = title
        self._messages = []
        self._in_flight = False
        self._is_revealing = False
        self._state = SessionState.IDLE
        self.last_error = None
        return self._generation

    def new_conversation(self) -> None:
        """Start over; the conversation is created with the next message"""
        generation = self._reset_view(None, None)
        self.draft = ""
        self._changed(generation)

    async def open(self, conversation_id: str, title: Optional[str] = None) -> bool:
        """Select an existing conversation and load its messages"""
        generation = self._reset_view(conversation_id, title)
        self._changed(generation)
        return await self._load(conversation_id, generation, quiet=False)

    async def reload(self) -> bool:
        """Re-fetch the current conversation and reconcile the view"""
        if self.conversation_id is None:
            return True
        return await self._load(self.conversation_id, self._generation, quiet=False)

    def close(self) -> None:
        """Tear the session down; in-flight output is no longer applied"""
        self._generation += 1
        self._closed = True
        self._change_listeners.clear()
        self._state_listeners.clear()

    async def _load(self, conversation_id: str, generation: int, quiet: bool) -> bool:
        try:
            settled = await self.gateway.list_messages(conversation_id)
        except Exception as e:
            if quiet:
                self.logger.warning(f"Could not reconcile conversation {conversation_id}: {e}")
            else:
                self._fail(e, "load messages", generation)
            return False

        if not self._owns(generation):
            return False

        self._messages = reconcile(self._messages, settled, self.reconcile_window)
        log_conversation_event(
            self.logger, "reconciled", conversation_id,
            settled=len(settled), pending=sum(1 for m in self._messages if m.is_pending),
        )
        self._changed(generation)
        return True

    # Sending

    async def send(self, text: str) -> bool:
        """
        Send a user message and reveal the assistant's reply.

        Returns:
            True when both messages were stored and the view reconciled
        """
        user_text = (text or "").strip()
        if not user_text:
            error = ValidationError("Please type a message first.")
            self.last_error = error
            self.notifications.failure(error, "send message")
            return False

        if self._closed or self._in_flight or self._state != SessionState.IDLE:
            self.logger.debug("Send ignored, session busy")
            return False

        generation = self._generation
        self._in_flight = True
        self.last_error = None
        self.draft = ""
        try:
            return await self._send(user_text, generation)
        finally:
            if self._owns(generation):
                self._in_flight = False
                self._is_revealing = False
                self._set_state(SessionState.IDLE, generation)
                self._changed(generation)

    async def _send(self, user_text: str, generation: int) -> bool:
        self._set_state(SessionState.AWAITING_CONVERSATION, generation)
        conversation_id = self.conversation_id
        if conversation_id is None:
            try:
                conversation = await self.gateway.create_conversation(self.owner_id)
            except Exception as e:
                self.draft = user_text
                self._fail(e, "create conversation", generation)
                return False

            conversation_id = conversation.id
            if self._owns(generation):
                self.conversation_id = conversation_id
                self._conversation_title = conversation.title
            log_conversation_event(self.logger, "created", conversation_id, owner_id=self.owner_id)

        self._set_state(SessionState.SENDING, generation)
        pending_user = self._append_pending(Role.USER, user_text, conversation_id, generation)
        try:
            await self.gateway.append_message(conversation_id, Role.USER, user_text)
        except Exception as e:
            self._remove_message(pending_user.id, generation)
            self.draft = user_text
            self._fail(e, "send message", generation)
            return False

        log_conversation_event(self.logger, "message_added", conversation_id, role=Role.USER.value)
        await self._retitle_if_new(conversation_id, user_text, generation)

        history = self.snapshot().settled_messages
        pending_reply = self._append_pending(Role.ASSISTANT, "", conversation_id, generation)
        if self._owns(generation):
            self._is_revealing = True
        self._set_state(SessionState.REVEALING, generation)

        try:
            reply = await self.assistant.generate_reply(history, user_text)
        except Exception as e:
            if self._owns(generation):
                self._is_revealing = False
            self._remove_message(pending_reply.id, generation)
            self._fail(e, "get a reply from the assistant", generation)
            # The user message is stored; settle it
            await self._load(conversation_id, generation, quiet=True)
            return False

        completed = await self.reveal.reveal(
            reply,
            on_partial=lambda partial: self._update_message(pending_reply.id, generation, content=partial),
            should_continue=lambda: self._shows(pending_reply.id, generation),
        )
        if self._owns(generation):
            self._is_revealing = False

        try:
            await self.gateway.append_message(conversation_id, Role.ASSISTANT, reply)
        except Exception as e:
            # Keep the revealed turn on screen, flagged as not stored
            self._update_message(pending_reply.id, generation, content=reply, unsaved=True)
            self._fail(e, "save the assistant reply", generation)
            await self._load(conversation_id, generation, quiet=True)
            return False

        log_conversation_event(self.logger, "message_added", conversation_id, role=Role.ASSISTANT.value)

        if not completed:
            self.logger.info(f"Reply for {conversation_id} stored after the view moved on")
            return False

        return await self._load(conversation_id, generation, quiet=False)

    async def _retitle_if_new(self, conversation_id: str, user_text: str, generation: int) -> None:
        if not self._owns(generation) or self._conversation_title != DEFAULT_CONVERSATION_TITLE:
            return

        title = title_from_message(user_text)
        try:
            await self.gateway.update_conversation(conversation_id, title=title)
        except Exception as e:
            self.logger.warning(f"Could not retitle conversation {conversation_id}: {e}")
            return

        if self._owns(generation):
            self._conversation_title = title

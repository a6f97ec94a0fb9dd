"""
Enhancement session - prompt enhancement with a browsable, deletable history.
"""

from dataclasses import dataclass
from typing import List, Optional

from services.ai_service.llm_client import PromptEnhancerClient
from services.chat_service.models import Enhancement
from services.errors import ValidationError, as_session_error
from services.notifications import NotificationCenter
from services.persistence.gateway import PersistenceGateway
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger

UNKNOWN_PROVIDER = "unknown"


@dataclass(frozen=True)
class EnhancementOutcome:
    """What `enhance` hands back to the caller"""
    original_prompt: str
    enhanced_prompt: str
    provider: str
    enhancement: Optional[Enhancement] = None

    @property
    def recorded(self) -> bool:
        """False when the text was produced but not stored in history"""
        return self.enhancement is not None


class EnhancementSession:
    """
    Owner-scoped enhancement workflow. Without an owner identity the history
    operations do nothing and enhancements are returned without being stored.
    """

    def __init__(
        self,
        owner_id: Optional[str],
        gateway: PersistenceGateway,
        enhancer: PromptEnhancerClient,
        notifications: Optional[NotificationCenter] = None,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        self.logger = get_logger(__name__)
        self.owner_id = owner_id
        self.gateway = gateway
        self.enhancer = enhancer
        self.notifications = notifications or NotificationCenter()
        self.error_tracker = error_tracker or get_error_tracker()

        self.history: List[Enhancement] = []
        self.loading = False
        self.in_flight = False
        self.original_prompt = ""
        self.enhanced_prompt = ""
        self.last_error: Optional[Exception] = None

        self._latest_load = 0

    def _fail(self, error: Exception, action: str) -> None:
        failure = as_session_error(error)
        self.last_error = failure
        if not isinstance(failure, ValidationError):
            self.error_tracker.track_error(failure, context=f"enhancement_session.{action}")
        self.notifications.failure(failure, action)

    async def load_history(self) -> List[Enhancement]:
        """
        Fetch the owner's history. A later call supersedes an earlier one
        still in flight; on failure the history is shown empty.
        """
        if self.owner_id is None:
            self.history = []
            return []

        self._latest_load += 1
        ticket = self._latest_load
        self.loading = True
        try:
            enhancements = await self.gateway.list_enhancements(self.owner_id)
        except Exception as e:
            if ticket == self._latest_load:
                self.history = []
                self._fail(e, "load enhancement history")
            else:
                self.logger.debug(f"Ignoring failure of superseded history load: {e}")
            return list(self.history)
        finally:
            if ticket == self._latest_load:
                self.loading = False

        if ticket != self._latest_load:
            self.logger.debug("Discarding superseded history load")
            return list(self.history)

        self.history = list(enhancements)
        self.last_error = None
        return list(self.history)

    async def enhance(self, original_prompt: str) -> Optional[EnhancementOutcome]:
        """
        Enhance `original_prompt` and record the result.

        Returns:
            The outcome, or None when validation or the enhancement service failed
        """
        if not (original_prompt or "").strip():
            self._fail(ValidationError("Please enter a prompt to enhance first."), "enhance prompt")
            return None

        if self.in_flight:
            self.logger.debug("Enhance ignored, already running")
            return None

        self.in_flight = True
        self.last_error = None
        try:
            try:
                result = await self.enhancer.enhance(original_prompt)
            except Exception as e:
                self._fail(e, "enhance prompt")
                return None

            provider = result.provider or UNKNOWN_PROVIDER
            self.original_prompt = original_prompt
            self.enhanced_prompt = result.enhanced_prompt

            enhancement = await self._record(original_prompt, result.enhanced_prompt, provider)
            if enhancement is not None:
                self.notifications.info("Success!", "Your prompt has been enhanced! Check the result below.")

            return EnhancementOutcome(
                original_prompt=original_prompt,
                enhanced_prompt=result.enhanced_prompt,
                provider=provider,
                enhancement=enhancement,
            )
        finally:
            self.in_flight = False

    async def _record(self, original: str, enhanced: str, provider: str) -> Optional[Enhancement]:
        if self.owner_id is None:
            self.logger.info("No owner identity, enhancement not recorded")
            return None

        try:
            enhancement = await self.gateway.create_enhancement(self.owner_id, original, enhanced, provider)
        except Exception as e:
            # The enhanced text stays on screen, only history misses it
            self._fail(e, "save the enhancement to history")
            return None

        self.history.insert(0, enhancement)
        return enhancement

    async def delete(self, enhancement_id: str) -> bool:
        """Delete remotely; the entry leaves the history only after confirmation"""
        if self.owner_id is None:
            return False

        try:
            await self.gateway.delete_enhancement(enhancement_id, self.owner_id)
        except Exception as e:
            self._fail(e, "delete enhancement")
            return False

        self.history = [e for e in self.history if e.id != enhancement_id]
        return True

    def select(self, enhancement_id: str) -> Optional[Enhancement]:
        """Load a history entry back into the editor"""
        enhancement = next((e for e in self.history if e.id == enhancement_id), None)
        if enhancement is not None:
            self.original_prompt = enhancement.original_prompt
            self.enhanced_prompt = enhancement.enhanced_prompt
        return enhancement

    def clear_editor(self) -> None:
        self.original_prompt = ""
        self.enhanced_prompt = ""

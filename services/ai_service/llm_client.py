"""
LLM clients - assistant replies and prompt enhancement over ChatOpenAI.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from config.app_config import AppConfig, get_config
from services.ai_service.models import EnhancementResult
from services.chat_service.models import Message, Role
from services.errors import ServiceError
from utils.logging_config import get_logger, log_execution_time


def _service_error(action: str, error: Exception) -> ServiceError:
    if isinstance(error, openai.AuthenticationError):
        user_message = "The AI service rejected the API key. Check your configuration."
    elif isinstance(error, openai.RateLimitError):
        user_message = "The AI service is busy right now. Please try again in a moment."
    elif isinstance(error, (openai.APIConnectionError, openai.APITimeoutError)):
        user_message = "Could not reach the AI service. Check your connection and try again."
    else:
        user_message = f"Failed to {action}."
    return ServiceError(f"{action} failed: {type(error).__name__}: {error}", user_message)


class AssistantService(ABC):
    """Produces the full assistant reply for the latest user text"""

    @abstractmethod
    async def generate_reply(self, history: Sequence[Message], user_text: str) -> str:
        ...


class OpenAIAssistantClient(AssistantService):
    """
    Assistant backed by ChatOpenAI.
    The reply is requested in one piece; the session reveals it locally.
    """

    def __init__(self, config: Optional[AppConfig] = None, llm: Optional[ChatOpenAI] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self._llm = llm

    def get_llm(self) -> ChatOpenAI:
        if self._llm is None:
            api_key = self.config.api.openai_api_key
            if not api_key:
                raise ServiceError("OpenAI API key not configured", "The assistant is not configured.")

            self._llm = ChatOpenAI(
                model=self.config.llm.model_name,
                temperature=self.config.llm.temperature,
                max_tokens=self.config.llm.max_tokens,
                api_key=api_key,
                base_url=self.config.api.openai_base_url or None,
            )
            self.logger.info(f"Assistant LLM initialized: {self.config.llm.model_name}")

        return self._llm

    def build_messages(self, history: Sequence[Message], user_text: str) -> List[BaseMessage]:
        messages: List[BaseMessage] = [SystemMessage(content=self.config.llm.system_prompt)]

        recent = [m for m in history if m.content][-self.config.llm.history_limit:]
        for message in recent:
            if message.role == Role.USER:
                messages.append(HumanMessage(content=message.content))
            else:
                messages.append(AIMessage(content=message.content))

        messages.append(HumanMessage(content=user_text))
        return messages

    async def generate_reply(self, history: Sequence[Message], user_text: str) -> str:
        llm = self.get_llm()

        try:
            with log_execution_time(self.logger, "assistant_reply", model=self.config.llm.model_name):
                response = await llm.ainvoke(self.build_messages(history, user_text))
        except Exception as e:
            raise _service_error("get a reply from the assistant", e) from e

        content = response.content if isinstance(response.content, str) else str(response.content)
        if not content.strip():
            raise ServiceError("Assistant returned an empty reply", "The assistant returned an empty reply.")
        return content


class PromptEnhancerClient:
    """Rewrites a prompt through ChatOpenAI"""

    def __init__(self, config: Optional[AppConfig] = None, llm: Optional[ChatOpenAI] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self._llm = llm

    def get_llm(self) -> ChatOpenAI:
        if self._llm is None:
            api_key = self.config.api.openai_api_key
            if not api_key:
                raise ServiceError("OpenAI API key not configured", "The prompt enhancer is not configured.")

            self._llm = ChatOpenAI(
                model=self.config.enhancer.model_name,
                temperature=self.config.enhancer.temperature,
                max_tokens=self.config.enhancer.max_tokens,
                api_key=api_key,
                base_url=self.config.api.openai_base_url or None,
            )

        return self._llm

    async def enhance(self, prompt: str) -> EnhancementResult:
        llm = self.get_llm()
        messages = [
            SystemMessage(content=self.config.enhancer.instructions),
            HumanMessage(content=prompt),
        ]

        try:
            with log_execution_time(self.logger, "enhance_prompt", model=self.config.enhancer.model_name):
                response = await llm.ainvoke(messages)
        except Exception as e:
            raise _service_error("enhance prompt", e) from e

        try:
            return EnhancementResult(
                enhanced_prompt=str(response.content),
                provider=self.config.enhancer.get_provider_label(),
            )
        except PydanticValidationError as e:
            raise ServiceError(f"Invalid enhancement reply: {e}", "Failed to enhance prompt.") from e

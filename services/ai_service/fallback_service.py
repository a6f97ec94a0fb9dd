"""
AI service fallback - simulated assistant used when no model is configured,
and the factories that choose between it and the real clients.
"""

from typing import Optional, Sequence

from config.app_config import AppConfig, get_config
from services.ai_service.llm_client import AssistantService, OpenAIAssistantClient, PromptEnhancerClient
from services.chat_service.models import Message
from utils.logging_config import get_logger

SIMULATED_REPLY_TEMPLATE = (
    'I understand you\'re asking about: "{question}". This is a simulated AI response. '
    "In a real implementation, you would connect this to your AI service endpoint "
    "to get actual intelligent responses."
)


class SimulatedAssistantClient(AssistantService):
    """
    Answers without any network call. Keeps the chat usable in development
    and when the OpenAI key is missing.
    """

    def __init__(self, template: str = SIMULATED_REPLY_TEMPLATE):
        self.logger = get_logger(__name__)
        self.template = template

    async def generate_reply(self, history: Sequence[Message], user_text: str) -> str:
        self.logger.info(f"Generating simulated reply ({len(history)} prior messages)")
        return self.template.format(question=user_text)


def create_assistant_service(config: Optional[AppConfig] = None) -> AssistantService:
    """Real assistant when a key is configured, simulated otherwise"""
    config = config or get_config()
    if config.api.openai_api_key:
        return OpenAIAssistantClient(config)

    get_logger(__name__).warning("No OpenAI API key configured, using the simulated assistant")
    return SimulatedAssistantClient()


def create_prompt_enhancer(config: Optional[AppConfig] = None) -> PromptEnhancerClient:
    return PromptEnhancerClient(config or get_config())

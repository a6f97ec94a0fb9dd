"""
AI service - assistant replies and prompt enhancement.
"""

from .models import EnhancementResult
from .llm_client import AssistantService, OpenAIAssistantClient, PromptEnhancerClient
from .fallback_service import (
    SimulatedAssistantClient,
    create_assistant_service,
    create_prompt_enhancer
)

__all__ = [
    'EnhancementResult',
    'AssistantService',
    'OpenAIAssistantClient',
    'PromptEnhancerClient',
    'SimulatedAssistantClient',
    'create_assistant_service',
    'create_prompt_enhancer'
]

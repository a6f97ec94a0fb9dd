"""
AI service data models.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class EnhancementResult(BaseModel):
    """Reply of the enhancement service"""
    enhanced_prompt: str = Field(min_length=1)
    provider: Optional[str] = None

    @field_validator("enhanced_prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("enhanced prompt is blank")
        return value.strip()

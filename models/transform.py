from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum


class PromptVariant(str, Enum):
    """Which transform prompt rules to send to the LLM"""
    FLEXIBLE = "flexible"  # summary may be 1-3 lines, ideas may be empty
    STRICT = "strict"  # always three summary lines and three ideas


class LLMCredentials(BaseModel):
    api_key: str
    model: str = "claude-sonnet-4-5"

    def __repr__(self) -> str:
        return f"LLMCredentials(model={self.model!r}, api_key='***')"

    __str__ = __repr__


class Entities(BaseModel):
    people: List[str] = Field(default_factory=list)
    places: List[str] = Field(default_factory=list)
    deadlines: List[str] = Field(default_factory=list)
    amounts: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    organizations: List[str] = Field(default_factory=list)


ENTITY_BUCKETS = list(Entities.model_fields.keys())


class TransformResult(BaseModel):
    """Normalized output of one Transform Engine call"""
    clean_text: str
    intent: List[str]
    entities: Entities
    summary_3lines: str
    ideas: List[str]
    next_action: str
    confidence: float
    context: str
    confirm_question: Optional[str] = None  # shown transiently, never stored

    def to_record_fields(self) -> dict:
        """Derived fields as written to the record store"""
        return {
            "clean_text": self.clean_text,
            "intent": self.intent,
            "entities": self.entities.model_dump(),
            "summary_3lines": self.summary_3lines,
            "ideas": self.ideas,
            "next_action": self.next_action,
            "confidence": self.confidence,
            "context": self.context,
        }

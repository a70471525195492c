from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum
from models.transform import Entities


class IntentTag(str, Enum):
    PROBLEM = "Problem"
    DESIRE = "Desire"
    INSIGHT = "Insight"
    DECISION = "Decision"
    NOTE = "Note"


INTENT_TAGS = [tag.value for tag in IntentTag]


class RecordStatus(str, Enum):
    PROCESSING = "processing"  # transform in flight
    DONE = "done"
    PENDING = "pending"  # no LLM credentials configured
    ERROR = "error"  # transform call failed


class Feedback(str, Enum):
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


class FeedbackDetail(str, Enum):
    """Which part of a thumbs-down result was off"""
    INTENT = "intent"
    SUMMARY = "summary"
    SUGGESTION = "suggestion"
    IDEA = "idea"


# Fields written by a successful transform
DERIVED_FIELDS = [
    "clean_text",
    "intent",
    "entities",
    "summary_3lines",
    "ideas",
    "next_action",
    "confidence",
    "context",
]


class TubuyakiRecord(BaseModel):
    id: str
    raw_text: str = Field(serialization_alias="rawText")
    clean_text: Optional[str] = Field(default=None, serialization_alias="cleanText")
    intent: List[str] = Field(default_factory=list)
    entities: Optional[Entities] = None
    summary_3lines: Optional[str] = Field(default=None, serialization_alias="summary3lines")
    ideas: List[str] = Field(default_factory=list)
    next_action: Optional[str] = Field(default=None, serialization_alias="nextAction")
    confidence: Optional[float] = None
    context: Optional[str] = None
    feedback: Optional[Feedback] = None
    feedback_detail: Optional[FeedbackDetail] = Field(default=None, serialization_alias="feedbackDetail")
    status: RecordStatus
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    class Config:
        from_attributes = True

    def to_api(self) -> dict:
        """Wire representation (camelCase keys, ISO timestamps)"""
        return self.model_dump(mode="json", by_alias=True)


class ProcessingOutcome(BaseModel):
    """Result of a create/reprocess call on the lifecycle manager"""
    record: TubuyakiRecord
    warning: Optional[str] = None
    confirm_question: Optional[str] = None

    def to_api(self) -> dict:
        payload = self.record.to_api()
        if self.warning:
            payload["warning"] = self.warning
        if self.confirm_question:
            payload["confirmQuestion"] = self.confirm_question
        return payload


class RecordFilter(BaseModel):
    """Store-level filter; every supplied criterion must match"""
    created_from: Optional[datetime] = None  # inclusive
    created_before: Optional[datetime] = None  # exclusive
    text: Optional[str] = None  # substring over the text-bearing fields
    intent: Optional[str] = None
    statuses: Optional[List[RecordStatus]] = None


class TubuyakiCreateRequest(BaseModel):
    raw_text: Optional[str] = Field(default=None, alias="rawText")

    class Config:
        populate_by_name = True


class TubuyakiUpdateRequest(BaseModel):
    """PATCH body: feedback mode, or reprocess mode when `reprocess` is true"""
    feedback: Optional[str] = None
    feedback_detail: Optional[str] = Field(default=None, alias="feedbackDetail")
    reprocess: bool = False
    raw_text: Optional[str] = Field(default=None, alias="rawText")

    class Config:
        populate_by_name = True

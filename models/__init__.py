# Models module - Pydantic models for tubuyaki records and transform results
from models.transform import Entities, LLMCredentials, PromptVariant, TransformResult
from models.tubuyaki import (
    DERIVED_FIELDS,
    INTENT_TAGS,
    Feedback,
    FeedbackDetail,
    IntentTag,
    ProcessingOutcome,
    RecordFilter,
    RecordStatus,
    TubuyakiCreateRequest,
    TubuyakiRecord,
    TubuyakiUpdateRequest,
)

__all__ = [
    "Entities",
    "LLMCredentials",
    "PromptVariant",
    "TransformResult",
    "DERIVED_FIELDS",
    "INTENT_TAGS",
    "Feedback",
    "FeedbackDetail",
    "IntentTag",
    "ProcessingOutcome",
    "RecordFilter",
    "RecordStatus",
    "TubuyakiCreateRequest",
    "TubuyakiRecord",
    "TubuyakiUpdateRequest",
]

from services.database import DatabaseService
from models.tubuyaki import Feedback, FeedbackDetail, TubuyakiRecord
from utils.errors import NotFoundError, ValidationError
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class FeedbackProcessor:
    """
    Records user feedback (thumbs up / thumbs down) on a tubuyaki.

    A thumbs down may carry a detail naming what was off
    (intent, summary, suggestion, idea). A detail is never stored
    next to a thumbs up.
    """

    def __init__(self, db: DatabaseService = None):
        self.db = db or DatabaseService()

    @staticmethod
    def _parse_feedback(value) -> Optional[Feedback]:
        if value is None:
            return None
        try:
            return Feedback(value)
        except ValueError:
            raise ValidationError("feedback must be thumbs_up or thumbs_down") from None

    @staticmethod
    def _parse_detail(value) -> Optional[FeedbackDetail]:
        if value is None:
            return None
        try:
            return FeedbackDetail(value)
        except ValueError:
            raise ValidationError("feedbackDetail must be intent, summary, suggestion, or idea") from None

    def set_feedback(
        self,
        record_id: str,
        feedback: Optional[str] = None,
        feedback_detail: Optional[str] = None
    ) -> TubuyakiRecord:
        """
        Store feedback on a tubuyaki

        Args:
            record_id: UUID of the tubuyaki
            feedback: 'thumbs_up' or 'thumbs_down'
            feedback_detail: 'intent', 'summary', 'suggestion' or 'idea';
                only valid with a thumbs down (given now or already stored)

        Returns:
            Updated record

        Raises:
            ValidationError: invalid values, nothing to update, or a detail
                without a thumbs down
            NotFoundError: record does not exist
        """
        # Enum validation happens before any store access
        feedback = self._parse_feedback(feedback)
        detail = self._parse_detail(feedback_detail)

        if feedback is None and detail is None:
            raise ValidationError("feedback or feedbackDetail is required")

        if feedback == Feedback.THUMBS_UP and detail is not None:
            raise ValidationError("feedbackDetail is only allowed with thumbs_down")

        if feedback is None:
            # Detail only: refines an existing thumbs down
            record = self.db.get_tubuyaki(record_id)
            if not record:
                raise NotFoundError(record_id)
            if record.feedback != Feedback.THUMBS_DOWN:
                raise ValidationError("feedbackDetail is only allowed with thumbs_down")
            updates = {"feedback_detail": detail}
        elif feedback == Feedback.THUMBS_UP:
            updates = {"feedback": feedback, "feedback_detail": None}
        else:
            updates = {"feedback": feedback, "feedback_detail": detail}

        updated = self.db.update_tubuyaki(record_id, updates)
        if updated is None:
            raise NotFoundError(record_id)

        logger.info(
            f"Feedback recorded for tubuyaki {record_id}: "
            f"{updated.feedback.value if updated.feedback else None}"
            f"{f' ({updated.feedback_detail.value})' if updated.feedback_detail else ''}"
        )
        return updated

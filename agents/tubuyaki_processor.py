from services.database import DatabaseService
from processors.transform_engine import TransformEngine
from models.transform import LLMCredentials
from models.tubuyaki import ProcessingOutcome, RecordFilter, RecordStatus, TubuyakiRecord
from utils.errors import NotFoundError, ValidationError
from typing import Dict, Optional
import logging
import time

logger = logging.getLogger(__name__)

NO_CREDENTIALS_WARNING = "ANTHROPIC_API_KEY not configured. Raw text saved without LLM processing."
TRANSFORM_FAILED_WARNING = "LLM processing failed. Raw text saved."


class TubuyakiProcessor:
    """Record lifecycle manager - runs create/reprocess through the Transform Engine

    State machine per record:
        processing -> done     transform succeeded
        processing -> pending  no LLM credentials configured
        processing -> error    transform failed or threw

    The processing write always lands before the LLM call, so a crash
    mid-call leaves a visible record instead of losing the user's text.
    Concurrent reprocess calls on the same id are not coordinated; the
    last store write wins.
    """

    def __init__(
        self,
        db: DatabaseService = None,
        engine: TransformEngine = None,
        credentials: Optional[LLMCredentials] = None,
    ):
        self.db = db or DatabaseService()
        self.engine = engine or TransformEngine()
        self.credentials = credentials

        logger.info(
            f"TubuyakiProcessor initialized (llm={'configured' if credentials else 'not configured'})"
        )

    @staticmethod
    def _validate_raw_text(raw_text) -> str:
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ValidationError("rawText is required")
        return raw_text.strip()

    def create(self, raw_text: str) -> ProcessingOutcome:
        """Store a new tubuyaki and run the transform on it

        Raises:
            ValidationError: raw_text is empty or missing
        """
        raw_text = self._validate_raw_text(raw_text)

        record = self.db.create_tubuyaki(raw_text, RecordStatus.PROCESSING)
        logger.info(f"Created tubuyaki {record.id} ({len(raw_text)} chars)")

        return self._run_transform(record.id, raw_text, reprocess=False)

    def reprocess(self, record_id: str, raw_text: str) -> ProcessingOutcome:
        """Replace the raw text of an existing tubuyaki and transform it again

        On success the derived fields are overwritten and feedback is cleared.
        On failure or missing credentials the previous derived fields stay.

        Raises:
            ValidationError: raw_text is empty or missing
            NotFoundError: record does not exist
        """
        raw_text = self._validate_raw_text(raw_text)

        if not self.db.get_tubuyaki(record_id):
            raise NotFoundError(record_id)

        self._write(record_id, {"raw_text": raw_text, "status": RecordStatus.PROCESSING})
        logger.info(f"Reprocessing tubuyaki {record_id} ({len(raw_text)} chars)")

        return self._run_transform(record_id, raw_text, reprocess=True)

    def delete(self, record_id: str) -> None:
        """Delete a tubuyaki in any state

        Raises:
            NotFoundError: record does not exist
        """
        if not self.db.delete_tubuyaki(record_id):
            raise NotFoundError(record_id)
        logger.info(f"Deleted tubuyaki {record_id}")

    def _run_transform(self, record_id: str, raw_text: str, reprocess: bool) -> ProcessingOutcome:
        if self.credentials is None:
            record = self._write(record_id, {"status": RecordStatus.PENDING})
            logger.info(f"No LLM credentials, tubuyaki {record_id} left pending")
            return ProcessingOutcome(record=record, warning=NO_CREDENTIALS_WARNING)

        start_time = time.time()
        try:
            result = self.engine.transform(raw_text, self.credentials)
        except Exception as e:
            logger.error(f"Transform failed for tubuyaki {record_id}: {e}", exc_info=True)
            record = self._write(record_id, {"status": RecordStatus.ERROR})
            return ProcessingOutcome(record=record, warning=TRANSFORM_FAILED_WARNING)

        fields = result.to_record_fields()
        fields["status"] = RecordStatus.DONE
        if reprocess:
            # Feedback rated the previous output, not this one
            fields["feedback"] = None
            fields["feedback_detail"] = None

        record = self._write(record_id, fields)
        logger.info(f"Transformed tubuyaki {record_id} in {time.time() - start_time:.2f}s")

        return ProcessingOutcome(record=record, confirm_question=result.confirm_question)

    def _write(self, record_id: str, fields: Dict) -> TubuyakiRecord:
        record = self.db.update_tubuyaki(record_id, fields)
        if record is None:
            # Deleted while the transform was running
            logger.warning(f"Tubuyaki {record_id} disappeared before update")
            raise NotFoundError(record_id)
        return record

    def reprocess_unprocessed(self, limit: int = 10) -> Dict:
        """Reprocess pending/error tubuyaki with their current raw text, oldest first

        Args:
            limit: Maximum number of records to reprocess in this batch

        Returns:
            Dictionary with batch processing results
        """
        if self.credentials is None:
            logger.warning("No LLM credentials configured, nothing reprocessed")
            return {
                'status': 'skipped',
                'records_processed': 0,
                'records_succeeded': 0,
                'records_failed': 0,
                'results': []
            }

        records = self.db.list_tubuyaki(
            RecordFilter(statuses=[RecordStatus.PENDING, RecordStatus.ERROR]),
            limit=limit,
            descending=False,
        )
        logger.info(f"Reprocessing batch of {len(records)} unprocessed tubuyaki")

        results = []
        succeeded = 0
        failed = 0

        for record in records:
            try:
                outcome = self.reprocess(record.id, record.raw_text)
            except NotFoundError:
                logger.info(f"Tubuyaki {record.id} deleted during batch, skipping")
                continue

            status = outcome.record.status
            results.append({'id': record.id, 'status': status.value})
            if status == RecordStatus.DONE:
                succeeded += 1
            else:
                failed += 1

        logger.info(f"Batch complete: {succeeded} succeeded, {failed} failed")

        return {
            'status': 'success',
            'records_processed': len(results),
            'records_succeeded': succeeded,
            'records_failed': failed,
            'results': results
        }

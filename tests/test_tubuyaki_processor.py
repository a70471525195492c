"""Tests for TubuyakiProcessor (record lifecycle)"""
import pytest
from unittest.mock import Mock

from agents.tubuyaki_processor import (
    NO_CREDENTIALS_WARNING,
    TRANSFORM_FAILED_WARNING,
    TubuyakiProcessor,
)
from models.transform import LLMCredentials
from models.tubuyaki import DERIVED_FIELDS, Feedback, FeedbackDetail, RecordStatus
from utils.errors import NotFoundError, StoreError, TransformFailure, ValidationError
from tests.fixtures.tubuyaki_fixtures import sample_transform_result


@pytest.fixture
def credentials():
    return LLMCredentials(api_key="test-key", model="claude-sonnet-4-5")


@pytest.fixture
def mock_engine():
    """Transform engine returning the sample result"""
    engine = Mock()
    engine.transform.return_value = sample_transform_result()
    return engine


@pytest.fixture
def processor(store, mock_engine, credentials):
    return TubuyakiProcessor(db=store, engine=mock_engine, credentials=credentials)


@pytest.fixture
def processor_without_key(store, mock_engine):
    return TubuyakiProcessor(db=store, engine=mock_engine, credentials=None)


def assert_derived_fields_empty(record):
    assert record.clean_text is None
    assert record.intent == []
    assert record.entities is None
    assert record.summary_3lines is None
    assert record.ideas == []
    assert record.next_action is None
    assert record.confidence is None
    assert record.context is None


# ============================================================================
# create
# ============================================================================


def test_create_without_credentials_is_pending(processor_without_key, store, mock_engine):
    """create("牛乳を買う") with no key configured -> pending, raw text kept"""
    outcome = processor_without_key.create("牛乳を買う")

    assert outcome.record.status == RecordStatus.PENDING
    assert outcome.record.raw_text == "牛乳を買う"
    assert outcome.record.intent == []
    assert outcome.warning == NO_CREDENTIALS_WARNING
    assert_derived_fields_empty(outcome.record)

    # Engine never called, stored record agrees
    mock_engine.transform.assert_not_called()
    assert store.get_tubuyaki(outcome.record.id).status == RecordStatus.PENDING


def test_create_success_is_done(processor, store, mock_engine, credentials):
    """Engine returns intent Desire and two ideas -> done with those fields"""
    mock_engine.transform.return_value = sample_transform_result(
        intent=["Desire"], ideas=["A", "B"], confidence=0.8
    )

    outcome = processor.create("新しいノートアプリが欲しい")

    stored = store.get_tubuyaki(outcome.record.id)
    assert stored.status == RecordStatus.DONE
    assert stored.intent == ["Desire"]
    assert len(stored.ideas) == 2
    assert stored.confidence == 0.8
    assert stored.entities.places == ["駅前のカフェ"]
    assert outcome.warning is None
    mock_engine.transform.assert_called_once_with("新しいノートアプリが欲しい", credentials)


def test_create_engine_failure_is_error(processor, store, mock_engine):
    """Engine raises TransformFailure -> error, raw text verbatim, nothing derived"""
    mock_engine.transform.side_effect = TransformFailure("LLM API error: connection reset")

    outcome = processor.create("  会議の議事録を送る  ")

    stored = store.get_tubuyaki(outcome.record.id)
    assert stored.status == RecordStatus.ERROR
    assert stored.raw_text == "会議の議事録を送る"
    assert outcome.warning == TRANSFORM_FAILED_WARNING
    assert_derived_fields_empty(stored)


def test_create_unexpected_engine_exception_is_error(processor, store, mock_engine):
    """Any exception from the engine still ends in error, never processing"""
    mock_engine.transform.side_effect = RuntimeError("boom")

    outcome = processor.create("テスト")

    assert store.get_tubuyaki(outcome.record.id).status == RecordStatus.ERROR


def test_create_writes_processing_before_transform(processor, store, mock_engine):
    """The processing record exists in the store while the engine runs"""
    seen = {}

    def transform(raw_text, credentials):
        records = store.list_tubuyaki()
        seen['status'] = records[0].status
        seen['raw_text'] = records[0].raw_text
        return sample_transform_result()

    mock_engine.transform.side_effect = transform

    processor.create("散歩中に思いついた")

    assert seen == {'status': RecordStatus.PROCESSING, 'raw_text': "散歩中に思いついた"}


@pytest.mark.parametrize("raw_text", ["", "   ", None, 42])
def test_create_rejects_empty_raw_text(processor, store, raw_text):
    """Empty/missing raw text is rejected before any store write"""
    with pytest.raises(ValidationError):
        processor.create(raw_text)

    assert store.writes == []


@pytest.mark.parametrize("configured", [True, False])
@pytest.mark.parametrize("engine_fails", [True, False])
def test_create_never_leaves_processing(store, mock_engine, credentials, configured, engine_fails):
    """After create returns the status is done, pending or error"""
    if engine_fails:
        mock_engine.transform.side_effect = TransformFailure("bad json")
    processor = TubuyakiProcessor(
        db=store, engine=mock_engine, credentials=credentials if configured else None
    )

    outcome = processor.create("何かメモ")

    assert outcome.record.status in (RecordStatus.DONE, RecordStatus.PENDING, RecordStatus.ERROR)
    assert store.get_tubuyaki(outcome.record.id).status != RecordStatus.PROCESSING


def test_create_surfaces_confirm_question_without_storing_it(processor, store, mock_engine):
    """Low-confidence confirm question is returned but not persisted"""
    mock_engine.transform.return_value = sample_transform_result(
        confidence=0.3, confirm_question="誰に送るメールですか？"
    )

    outcome = processor.create("あれ送らなきゃ")

    assert outcome.confirm_question == "誰に送るメールですか？"
    stored = store.get_tubuyaki(outcome.record.id)
    assert "confirm_question" not in store.rows[stored.id]
    assert "confirmQuestion" in outcome.to_api()
    assert "confirmQuestion" not in stored.to_api()


def test_create_store_failure_propagates(processor, store):
    """Store errors are not absorbed"""
    store.fail_on.add("create_tubuyaki")

    with pytest.raises(StoreError):
        processor.create("保存できない")


# ============================================================================
# reprocess
# ============================================================================


@pytest.fixture
def done_record(processor, mock_engine):
    """A processed record rated thumbs down / summary"""
    outcome = processor.create("元のテキスト")
    record = processor.db.update_tubuyaki(outcome.record.id, {
        "feedback": Feedback.THUMBS_DOWN,
        "feedback_detail": FeedbackDetail.SUMMARY,
    })
    mock_engine.transform.reset_mock()
    return record


def test_reprocess_success_clears_feedback(processor, store, mock_engine, done_record):
    """Successful reprocess overwrites derived fields and clears feedback"""
    mock_engine.transform.return_value = sample_transform_result(
        intent=["Decision"], ideas=[], summary_3lines="新しい要約"
    )

    outcome = processor.reprocess(done_record.id, "new text")

    stored = store.get_tubuyaki(done_record.id)
    assert stored.id == done_record.id
    assert stored.created_at == done_record.created_at
    assert stored.raw_text == "new text"
    assert stored.status == RecordStatus.DONE
    assert stored.intent == ["Decision"]
    assert stored.ideas == []
    assert stored.summary_3lines == "新しい要約"
    assert stored.feedback is None
    assert stored.feedback_detail is None
    assert outcome.record == stored


def test_reprocess_thumbs_up_cleared(processor, store, mock_engine):
    """Scenario: done record with thumbs_up, reprocess succeeds -> feedback null"""
    record = processor.create("最初のつぶやき").record
    store.update_tubuyaki(record.id, {"feedback": Feedback.THUMBS_UP})

    processor.reprocess(record.id, "new text")

    assert store.get_tubuyaki(record.id).feedback is None


def test_reprocess_failure_keeps_derived_fields(processor, store, mock_engine, done_record):
    """Failed reprocess: only status and raw text change"""
    mock_engine.transform.side_effect = TransformFailure("LLM returned empty response")

    outcome = processor.reprocess(done_record.id, "new text")

    stored = store.get_tubuyaki(done_record.id)
    assert stored.status == RecordStatus.ERROR
    assert stored.raw_text == "new text"
    for field in DERIVED_FIELDS:
        assert getattr(stored, field) == getattr(done_record, field)
    # Feedback untouched as well
    assert stored.feedback == Feedback.THUMBS_DOWN
    assert outcome.warning == TRANSFORM_FAILED_WARNING


def test_reprocess_without_credentials_keeps_derived_fields(store, mock_engine, done_record):
    """No key on reprocess -> pending, previous derived fields retained"""
    processor = TubuyakiProcessor(db=store, engine=mock_engine, credentials=None)

    outcome = processor.reprocess(done_record.id, "edited")

    stored = store.get_tubuyaki(done_record.id)
    assert stored.status == RecordStatus.PENDING
    assert stored.raw_text == "edited"
    assert stored.intent == done_record.intent
    assert stored.summary_3lines == done_record.summary_3lines
    assert stored.feedback == Feedback.THUMBS_DOWN
    assert outcome.warning == NO_CREDENTIALS_WARNING
    mock_engine.transform.assert_not_called()


def test_reprocess_from_error_recovers(processor, store, mock_engine):
    """An error record becomes done through an explicit reprocess"""
    mock_engine.transform.side_effect = TransformFailure("timeout")
    record = processor.create("エラーになるメモ").record
    mock_engine.transform.side_effect = None

    outcome = processor.reprocess(record.id, record.raw_text)

    assert outcome.record.status == RecordStatus.DONE
    assert outcome.record.id == record.id


def test_reprocess_missing_record(processor, store):
    """Unknown id -> NotFoundError, nothing written"""
    with pytest.raises(NotFoundError):
        processor.reprocess("missing-id", "text")

    assert store.writes == []


def test_reprocess_rejects_empty_text(processor, store, done_record):
    """Empty text is rejected and the record keeps its old text"""
    writes_before = list(store.writes)

    with pytest.raises(ValidationError):
        processor.reprocess(done_record.id, "  ")

    assert store.writes == writes_before
    assert store.get_tubuyaki(done_record.id).raw_text == "元のテキスト"


def test_record_deleted_during_transform(processor, store, mock_engine):
    """Delete racing a transform surfaces as NotFoundError"""
    def transform(raw_text, credentials):
        store.rows.clear()
        return sample_transform_result()

    mock_engine.transform.side_effect = transform

    with pytest.raises(NotFoundError):
        processor.create("消されるメモ")


# ============================================================================
# delete / batch reprocess
# ============================================================================


def test_delete_from_any_state(processor_without_key, store):
    """Delete works on a pending record and is terminal"""
    record = processor_without_key.create("消すメモ").record

    processor_without_key.delete(record.id)

    assert store.get_tubuyaki(record.id) is None
    with pytest.raises(NotFoundError):
        processor_without_key.delete(record.id)


def test_get_is_idempotent(processor, store):
    """Two reads without a mutation return identical records"""
    record = processor.create("二回読む").record

    assert store.get_tubuyaki(record.id) == store.get_tubuyaki(record.id)


def test_reprocess_unprocessed_batch(store, mock_engine, credentials):
    """Pending and error records are reprocessed oldest first; done ones skipped"""
    offline = TubuyakiProcessor(db=store, engine=mock_engine, credentials=None)
    pending = offline.create("保留1").record
    online = TubuyakiProcessor(db=store, engine=mock_engine, credentials=credentials)
    online.create("完了済み")
    mock_engine.transform.side_effect = TransformFailure("down")
    failed = online.create("失敗").record
    mock_engine.transform.side_effect = None
    mock_engine.transform.reset_mock()

    result = online.reprocess_unprocessed(limit=10)

    assert result['status'] == 'success'
    assert result['records_processed'] == 2
    assert result['records_succeeded'] == 2
    assert result['records_failed'] == 0
    assert [r['id'] for r in result['results']] == [pending.id, failed.id]
    assert mock_engine.transform.call_count == 2


def test_reprocess_unprocessed_without_credentials(processor_without_key, store):
    """Without a key the batch is skipped and records stay pending"""
    record = processor_without_key.create("保留").record

    result = processor_without_key.reprocess_unprocessed()

    assert result['status'] == 'skipped'
    assert result['records_processed'] == 0
    assert store.get_tubuyaki(record.id).status == RecordStatus.PENDING


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

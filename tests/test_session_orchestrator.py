"""
Unit tests for the Session Orchestrator.

Tests cover:
- Session start: validation, selection, load failures
- Answer submission: grading, failures and retry, in-flight rejection
- Ending: evaluation, failure and retry, persistence
- Reset and stale results
- Speech and media integration
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from mock_interview.core.errors import (
    DeviceError,
    ParseError,
    RemoteError,
    ValidationError,
)
from mock_interview.models.recording import RecorderStatus
from mock_interview.models.session import OperationOutcome, SelectionMode, SessionPhase
from mock_interview.providers.grading.base import GradingProvider
from mock_interview.providers.grading.openai_provider import OpenAIGradingClient
from mock_interview.providers.media.capture import MediaCapture
from mock_interview.providers.media.client_stream import ClientStreamDevice
from mock_interview.services.session_orchestrator import SessionOrchestrator


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def orchestrator(question_bank, grading_factory, session_store, settings):
    return SessionOrchestrator(
        question_bank=question_bank,
        grading_client_factory=grading_factory,
        session_store=session_store,
        user_id="user-1",
        settings=settings,
    )


async def start_java(orchestrator, count=3):
    outcome = await orchestrator.start_session(["java"], SelectionMode.SEQUENTIAL, count)
    assert outcome == OperationOutcome.APPLIED
    return outcome


class Gate:
    """Holds an async mock call open until released."""

    def __init__(self, result=None):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.result = result

    async def call(self, *args, **kwargs):
        self.entered.set()
        await self.release.wait()
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


# =============================================================================
# Start Tests
# =============================================================================

class TestStartSession:
    """Tests for starting a session."""

    @pytest.mark.asyncio
    async def test_sequential_start_takes_first_questions_in_order(self, orchestrator, grading_factory):
        await start_java(orchestrator, 3)

        assert orchestrator.phase == SessionPhase.ACTIVE
        assert [q.text for q in orchestrator.questions] == [
            "Java question 1", "Java question 2", "Java question 3",
        ]
        assert orchestrator.cursor == 0
        assert orchestrator.current_question.text == "Java question 1"
        assert orchestrator.session_id is not None
        grading_factory.assert_called_once_with(GradingProvider.OPENAI, None)

    @pytest.mark.asyncio
    async def test_question_count_capped_at_pool_size(self, orchestrator):
        await orchestrator.start_session(["java", "SystemDesign"], SelectionMode.RANDOM, 20)

        assert len(orchestrator.questions) == 8

    @pytest.mark.asyncio
    async def test_default_question_count_from_settings(self, orchestrator):
        await orchestrator.start_session(["java", "SystemDesign"])

        assert len(orchestrator.questions) == 8
        assert orchestrator.snapshot().selection_mode == SelectionMode.SEQUENTIAL

    @pytest.mark.asyncio
    async def test_provider_name_string_accepted(self, orchestrator, grading_factory):
        await orchestrator.start_session(["java"], "random", 2, "Perplexity")

        grading_factory.assert_called_once_with(GradingProvider.PERPLEXITY, None)
        assert orchestrator.snapshot().provider == "perplexity"

    @pytest.mark.parametrize("kwargs", [
        {"topics": []},
        {"topics": ["  "]},
        {"topics": ["java"], "question_count": 0},
        {"topics": ["java"], "question_count": 51},
        {"topics": ["java"], "selection_mode": "shuffled"},
        {"topics": ["java"], "provider": "anthropic"},
    ])
    @pytest.mark.asyncio
    async def test_invalid_parameters_raise_without_state_change(self, orchestrator, grading_factory, kwargs):
        with pytest.raises(ValidationError):
            await orchestrator.start_session(**kwargs)

        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.session_id is None
        grading_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_twice_is_rejected(self, orchestrator):
        await start_java(orchestrator)

        with pytest.raises(ValidationError):
            await orchestrator.start_session(["java"])

        assert orchestrator.phase == SessionPhase.ACTIVE

    @pytest.mark.asyncio
    async def test_unknown_topic_fails_session(self, orchestrator, grading_factory):
        outcome = await orchestrator.start_session(["cobol"], SelectionMode.SEQUENTIAL, 3)

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.phase == SessionPhase.FAILED
        assert orchestrator.last_error.startswith("remote:")
        assert orchestrator.questions == []
        grading_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_topic_fails_with_parse_error(self, orchestrator, question_bank_dir):
        (question_bank_dir / "broken.json").write_text("[{", encoding="utf-8")

        outcome = await orchestrator.start_session(["broken"], SelectionMode.SEQUENTIAL, 3)

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.last_error.startswith("parse:")

    @pytest.mark.asyncio
    async def test_empty_topic_fails_session(self, orchestrator, question_bank_dir):
        (question_bank_dir / "empty.json").write_text("[]", encoding="utf-8")

        outcome = await orchestrator.start_session(["empty"], SelectionMode.SEQUENTIAL, 3)

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.phase == SessionPhase.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_remote_error(self, orchestrator):
        orchestrator.grading_client_factory = MagicMock(side_effect=RuntimeError("boom"))

        outcome = await orchestrator.start_session(["java"], SelectionMode.SEQUENTIAL, 2)

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.last_error == "remote: boom"

    @pytest.mark.asyncio
    async def test_listeners_see_loading_then_active(self, orchestrator):
        phases = []
        orchestrator.subscribe(lambda snap: phases.append(snap.phase))

        await start_java(orchestrator)

        assert phases == [SessionPhase.LOADING, SessionPhase.ACTIVE]


# =============================================================================
# Submit Tests
# =============================================================================

class TestSubmitAnswer:
    """Tests for answering questions."""

    @pytest.mark.asyncio
    async def test_submit_grades_and_records_answer_as_given(self, orchestrator, grading_client):
        await start_java(orchestrator)

        outcome = await orchestrator.submit_answer("  The JVM runs bytecode.  ")

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.cursor == 1
        assert orchestrator.answers == ["  The JVM runs bytecode.  "]
        assert orchestrator.feedback == ["Feedback on:   The JVM runs bytecode.  "]
        grading_client.ask_question.assert_awaited_once_with("Java question 1", "  The JVM runs bytecode.  ")

    @pytest.mark.asyncio
    async def test_answer_and_feedback_lengths_track_cursor(self, orchestrator):
        await start_java(orchestrator)

        for i in range(3):
            await orchestrator.submit_answer(f"answer {i}")
            assert len(orchestrator.answers) == orchestrator.cursor
            assert len(orchestrator.feedback) == orchestrator.cursor
            assert orchestrator.cursor <= len(orchestrator.questions)

    @pytest.mark.asyncio
    async def test_blank_answer_is_ignored(self, orchestrator, grading_client):
        await start_java(orchestrator)

        assert await orchestrator.submit_answer("   ") == OperationOutcome.IGNORED
        assert await orchestrator.submit_answer("") == OperationOutcome.IGNORED
        assert orchestrator.cursor == 0
        grading_client.ask_question.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_before_start_is_ignored(self, orchestrator):
        assert await orchestrator.submit_answer("hello") == OperationOutcome.IGNORED

    @pytest.mark.asyncio
    async def test_exhausted_questions_do_not_auto_evaluate(self, orchestrator, grading_client):
        await start_java(orchestrator, 2)
        await orchestrator.submit_answer("one")
        await orchestrator.submit_answer("two")

        assert orchestrator.phase == SessionPhase.ACTIVE
        assert orchestrator.current_question is None
        assert orchestrator.snapshot().is_question_phase_complete
        assert await orchestrator.submit_answer("three") == OperationOutcome.IGNORED
        grading_client.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_grading_keeps_state_and_allows_retry(self, orchestrator, grading_client):
        await start_java(orchestrator)
        grading_client.ask_question.side_effect = RemoteError("API request failed with status 503", status_code=503)

        outcome = await orchestrator.submit_answer("first try")

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.phase == SessionPhase.ACTIVE
        assert orchestrator.cursor == 0
        assert orchestrator.answers == []
        assert orchestrator.last_error == "remote: API request failed with status 503"

        grading_client.ask_question.side_effect = None
        grading_client.ask_question.return_value = "Better."
        outcome = await orchestrator.submit_answer("first try")

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.cursor == 1
        assert orchestrator.feedback == ["Better."]
        assert orchestrator.last_error is None

    @pytest.mark.asyncio
    async def test_missing_credential_reports_provider_error(self, orchestrator):
        client = OpenAIGradingClient(api_key=None)
        orchestrator.grading_client_factory = MagicMock(return_value=client)
        await start_java(orchestrator)

        outcome = await orchestrator.submit_answer("answer")

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.last_error.startswith("provider:")
        assert orchestrator.phase == SessionPhase.ACTIVE
        await orchestrator.close()

    @pytest.mark.asyncio
    async def test_concurrent_submit_is_busy(self, orchestrator, grading_client):
        await start_java(orchestrator)
        gate = Gate(result="Feedback")
        grading_client.ask_question.side_effect = gate.call

        first = asyncio.ensure_future(orchestrator.submit_answer("first"))
        await gate.entered.wait()

        assert orchestrator.is_busy
        assert await orchestrator.submit_answer("second") == OperationOutcome.BUSY
        assert await orchestrator.end_session() == OperationOutcome.BUSY

        gate.release.set()
        assert await first == OperationOutcome.APPLIED
        assert orchestrator.answers == ["first"]
        assert not orchestrator.is_busy
        assert grading_client.ask_question.await_count == 1


# =============================================================================
# End Tests
# =============================================================================

class TestEndSession:
    """Tests for ending and evaluating a session."""

    @pytest.mark.asyncio
    async def test_end_completes_and_persists(self, orchestrator, grading_client, session_store, evaluation_result):
        await start_java(orchestrator, 2)
        await orchestrator.submit_answer("one")
        await orchestrator.submit_answer("two")

        outcome = await orchestrator.end_session()
        await orchestrator.wait_for_persistence()

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.phase == SessionPhase.COMPLETE
        assert orchestrator.evaluation_result == evaluation_result
        grading_client.evaluate.assert_awaited_once_with(
            ["Java question 1", "Java question 2"],
            ["one", "two"],
            ["Java answer 1", "Java answer 2"],
        )
        grading_client.close.assert_awaited()

        session_store.write.assert_awaited_once()
        user_id, record = session_store.write.await_args.args
        assert user_id == "user-1"
        assert record.session_id == orchestrator.session_id
        assert record.topic == "java"
        assert record.score == 82
        assert record.transcript == "one\ntwo"
        assert record.feedback == "Feedback on: one\nFeedback on: two"
        assert record.finished_at >= record.started_at

    @pytest.mark.asyncio
    async def test_end_early_evaluates_partial_answers(self, orchestrator, grading_client):
        await orchestrator.start_session(["java", "SystemDesign"], SelectionMode.SEQUENTIAL, 4)
        await orchestrator.submit_answer("only answer")

        await orchestrator.end_session()

        questions, answers, references = grading_client.evaluate.await_args.args
        assert len(questions) == 4
        assert answers == ["only answer"]
        assert len(references) == 4
        assert orchestrator.record.transcript == "only answer"
        assert orchestrator.record.topic == "java, SystemDesign"

    @pytest.mark.asyncio
    async def test_end_before_start_is_ignored(self, orchestrator):
        assert await orchestrator.end_session() == OperationOutcome.IGNORED
        assert orchestrator.phase == SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_evaluation_failure_can_be_retried(self, orchestrator, grading_client, session_store):
        await start_java(orchestrator, 2)
        await orchestrator.submit_answer("one")
        grading_client.evaluate.side_effect = ParseError("Evaluation response is not valid JSON")

        outcome = await orchestrator.end_session()

        assert outcome == OperationOutcome.FAILED
        assert orchestrator.phase == SessionPhase.FAILED
        assert orchestrator.last_error.startswith("parse:")
        assert orchestrator.can_end

        grading_client.evaluate.side_effect = None
        outcome = await orchestrator.end_session()
        await orchestrator.wait_for_persistence()

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.phase == SessionPhase.COMPLETE
        assert orchestrator.answers == ["one"]
        assert grading_client.ask_question.await_count == 1
        session_store.write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_failure_cannot_be_ended(self, orchestrator):
        await orchestrator.start_session(["cobol"])

        assert not orchestrator.can_end
        assert await orchestrator.end_session() == OperationOutcome.IGNORED

    @pytest.mark.asyncio
    async def test_store_failure_keeps_session_complete(self, orchestrator, session_store, caplog):
        session_store.write.side_effect = RemoteError("Mongo down")
        await start_java(orchestrator, 1)
        await orchestrator.submit_answer("one")

        outcome = await orchestrator.end_session()
        await orchestrator.wait_for_persistence()

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.phase == SessionPhase.COMPLETE
        assert orchestrator.last_error is None
        assert "Failed to persist session" in caplog.text

    @pytest.mark.asyncio
    async def test_end_without_store_still_completes(self, question_bank, grading_factory, settings):
        orchestrator = SessionOrchestrator(question_bank, grading_factory, settings=settings)
        await start_java(orchestrator, 1)

        assert await orchestrator.end_session() == OperationOutcome.APPLIED
        assert orchestrator.record is not None


# =============================================================================
# Reset and Notification Tests
# =============================================================================

class TestResetAndNotifications:
    """Tests for reset and snapshot listeners."""

    @pytest.mark.asyncio
    async def test_reset_returns_to_idle(self, orchestrator, grading_client):
        await start_java(orchestrator)
        await orchestrator.submit_answer("one")

        await orchestrator.reset()

        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.session_id is None
        assert orchestrator.questions == []
        assert orchestrator.answers == []
        assert orchestrator.last_error is None
        grading_client.close.assert_awaited()

        await start_java(orchestrator)
        assert orchestrator.phase == SessionPhase.ACTIVE

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_grading(self, orchestrator, grading_client):
        await start_java(orchestrator)
        gate = Gate(result="late feedback")
        grading_client.ask_question.side_effect = gate.call

        pending = asyncio.ensure_future(orchestrator.submit_answer("answer"))
        await gate.entered.wait()
        await orchestrator.reset()
        gate.release.set()

        assert await pending == OperationOutcome.IGNORED
        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.answers == []
        assert not orchestrator.is_busy

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_evaluation(self, orchestrator, grading_client, session_store):
        await start_java(orchestrator)
        gate = Gate(result=RemoteError("late failure"))
        grading_client.evaluate.side_effect = gate.call

        pending = asyncio.ensure_future(orchestrator.end_session())
        await gate.entered.wait()
        await orchestrator.reset()
        gate.release.set()

        assert await pending == OperationOutcome.IGNORED
        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.last_error is None
        session_store.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, orchestrator):
        snapshots = []
        unsubscribe = orchestrator.subscribe(snapshots.append)
        await start_java(orchestrator)
        count = len(snapshots)

        unsubscribe()
        await orchestrator.submit_answer("one")

        assert len(snapshots) == count

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_session(self, orchestrator):
        orchestrator.subscribe(MagicMock(side_effect=RuntimeError("listener bug")))

        await start_java(orchestrator)

        assert orchestrator.phase == SessionPhase.ACTIVE

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self, orchestrator):
        await start_java(orchestrator)
        snapshot = orchestrator.snapshot()

        await orchestrator.submit_answer("one")

        assert snapshot.cursor == 0
        assert snapshot.answers == []
        assert snapshot.progress_percent == 0.0
        assert orchestrator.snapshot().progress_percent == pytest.approx(100 / 3)


# =============================================================================
# Speech and Media Tests
# =============================================================================

class TestSpeechAndMedia:
    """Tests for speaking questions and recording the session."""

    @pytest.mark.asyncio
    async def test_ask_current_question_speaks_text(self, orchestrator):
        speech = MagicMock()
        speech.supports_synthesis = True
        speech.speak = AsyncMock()
        orchestrator.speech = speech
        await start_java(orchestrator)

        await orchestrator.ask_current_question()

        speech.speak.assert_awaited_once_with("Java question 1")

    @pytest.mark.asyncio
    async def test_ask_without_synthesis_is_noop(self, orchestrator):
        speech = MagicMock()
        speech.supports_synthesis = False
        speech.speak = AsyncMock()
        orchestrator.speech = speech
        await start_java(orchestrator)

        await orchestrator.ask_current_question()

        speech.speak.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recording_produces_artifact(self, orchestrator):
        device = ClientStreamDevice(AsyncMock())
        orchestrator.media = MediaCapture(device)
        await start_java(orchestrator, 1)

        assert orchestrator.media.status == RecorderStatus.RECORDING
        device.push_chunk(b"abc")
        device.push_chunk(b"def")
        await orchestrator.submit_answer("one")
        await orchestrator.end_session()

        assert orchestrator.recording.blob == b"abcdef"
        assert orchestrator.recording.size_bytes == 6
        assert orchestrator.recording_error is None
        assert not device.acquired

    @pytest.mark.asyncio
    async def test_record_media_false_skips_recording(self, orchestrator):
        orchestrator.media = MediaCapture(ClientStreamDevice(AsyncMock()))

        await orchestrator.start_session(["java"], SelectionMode.SEQUENTIAL, 1, record_media=False)

        assert orchestrator.media.status == RecorderStatus.IDLE

    @pytest.mark.asyncio
    async def test_denied_device_does_not_block_session(self, orchestrator):
        device = ClientStreamDevice(AsyncMock())
        device.deny("NotAllowedError")
        orchestrator.media = MediaCapture(device)

        await start_java(orchestrator, 1)

        assert orchestrator.phase == SessionPhase.ACTIVE
        assert orchestrator.recording_error.startswith("device:")
        assert await orchestrator.submit_answer("one") == OperationOutcome.APPLIED
        assert await orchestrator.end_session() == OperationOutcome.APPLIED
        assert orchestrator.recording is None

    @pytest.mark.asyncio
    async def test_device_lost_while_recording(self, orchestrator):
        device = ClientStreamDevice(AsyncMock())
        orchestrator.media = MediaCapture(device)
        await start_java(orchestrator, 1)

        device.push_chunk(b"abc")
        device.deny("track ended")
        await orchestrator.end_session()

        assert orchestrator.phase == SessionPhase.COMPLETE
        assert orchestrator.recording is None
        assert orchestrator.recording_error == "device: Media access denied: track ended"

    @pytest.mark.asyncio
    async def test_attach_media_after_start_begins_recording(self, orchestrator):
        await start_java(orchestrator, 1)
        send = AsyncMock()

        await orchestrator.attach_media(MediaCapture(ClientStreamDevice(send)))

        assert orchestrator.media.status == RecorderStatus.RECORDING
        assert send.await_args.args[0]["type"] == "media_start"

    @pytest.mark.asyncio
    async def test_device_release_failure_on_reset_is_logged(self, orchestrator):
        media = MagicMock()
        media.start = AsyncMock()
        media.close = AsyncMock(side_effect=DeviceError("stuck"))
        orchestrator.media = media
        await start_java(orchestrator, 1)

        await orchestrator.reset()

        assert orchestrator.phase == SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_reset_while_recording_is_finalized(self, orchestrator, session_store):
        stop_sent = asyncio.Event()
        release = asyncio.Event()

        async def send(message):
            if message["type"] == "media_stop":
                stop_sent.set()
                await release.wait()

        orchestrator.media = MediaCapture(ClientStreamDevice(send))
        await start_java(orchestrator, 1)
        await orchestrator.submit_answer("one")

        end_task = asyncio.ensure_future(orchestrator.end_session())
        await stop_sent.wait()
        await orchestrator.reset()
        release.set()
        outcome = await end_task

        assert outcome == OperationOutcome.IGNORED
        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.evaluation_result is None
        assert orchestrator.record is None
        assert orchestrator.recording is None
        await orchestrator.wait_for_persistence()
        session_store.write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnected_device_never_breaks_session(self, orchestrator, session_store):
        send = AsyncMock(side_effect=RuntimeError("socket closed"))
        orchestrator.media = MediaCapture(ClientStreamDevice(send))

        outcome = await orchestrator.start_session(["java"], SelectionMode.SEQUENTIAL, 1)

        assert outcome == OperationOutcome.APPLIED
        assert orchestrator.phase == SessionPhase.ACTIVE
        assert orchestrator.last_error is None
        assert orchestrator.recording_error == "device: socket closed"

        await orchestrator.submit_answer("one")
        assert await orchestrator.end_session() == OperationOutcome.APPLIED
        assert orchestrator.phase == SessionPhase.COMPLETE
        assert orchestrator.record is not None
        await orchestrator.wait_for_persistence()
        session_store.write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reset_clears_state_when_teardown_raises(self, orchestrator, grading_client):
        media = MagicMock()
        media.start = AsyncMock()
        media.close = AsyncMock(side_effect=RuntimeError("socket closed"))
        orchestrator.media = media
        grading_client.close.side_effect = RuntimeError("transport gone")
        await start_java(orchestrator, 1)
        await orchestrator.submit_answer("one")

        await orchestrator.reset()

        assert orchestrator.phase == SessionPhase.IDLE
        assert orchestrator.session_id is None
        assert orchestrator.answers == []

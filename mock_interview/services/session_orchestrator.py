"""
Session Orchestrator Service.

Central controller for one interview session: loads and selects the
questions, grades each answer, runs the end-of-session evaluation and
hands the finished record to the session store.

State machine:
    idle -> loading -> active (-> active per answer) -> evaluating -> complete
    failed is reachable from loading, active and evaluating; reset() returns
    to idle from anywhere.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Set, Union

from mock_interview.core.config import Settings, get_settings
from mock_interview.core.errors import (
    DeviceError,
    InterviewError,
    RemoteError,
    ValidationError,
)
from mock_interview.models.question import Question
from mock_interview.models.recording import RecordingArtifact
from mock_interview.models.session import (
    EvaluationResult,
    OperationOutcome,
    SelectionMode,
    SessionPhase,
    SessionRecord,
    SessionSnapshot,
    utcnow,
)
from mock_interview.providers.grading.base import (
    BaseGradingClient,
    GradingCredentials,
    GradingProvider,
)
from mock_interview.providers.media.capture import MediaCapture
from mock_interview.providers.session_store.base import SessionStore
from mock_interview.providers.speech.adapter import SpeechAdapter
from mock_interview.services.question_bank import QuestionBankService
from mock_interview.services.question_selector import QuestionSelector

logger = logging.getLogger(__name__)

GradingClientFactoryFn = Callable[[GradingProvider, Optional[GradingCredentials]], BaseGradingClient]
SnapshotListener = Callable[[SessionSnapshot], None]


def _as_error(error: Exception) -> InterviewError:
    """Convert any failure of an external call into a service error."""
    if isinstance(error, InterviewError):
        return error
    logger.error(f"Unexpected {type(error).__name__} from external call", exc_info=error)
    return RemoteError(str(error) or type(error).__name__)


class SessionOrchestrator:
    """
    Drives a single interview session.

    Collaborators are injected so each can be replaced in tests. Operations
    are not meant to run in parallel: a submit or end request arriving while
    another one is in flight is rejected with ``OperationOutcome.BUSY``.

    Usage:
        orchestrator = SessionOrchestrator(question_bank, factory.create, store)
        await orchestrator.start_session(["java"], SelectionMode.SEQUENTIAL, 3)
        await orchestrator.submit_answer("The JVM runs bytecode...")
        await orchestrator.end_session()
        result = orchestrator.evaluation_result
    """

    def __init__(
        self,
        question_bank: QuestionBankService,
        grading_client_factory: GradingClientFactoryFn,
        session_store: Optional[SessionStore] = None,
        selector: Optional[QuestionSelector] = None,
        user_id: str = "anonymous",
        credentials: Optional[GradingCredentials] = None,
        speech: Optional[SpeechAdapter] = None,
        media: Optional[MediaCapture] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.question_bank = question_bank
        self.grading_client_factory = grading_client_factory
        self.session_store = session_store
        self.selector = selector or QuestionSelector(
            mixed_fill_allow_duplicates=self.settings.mixed_fill_allow_duplicates,
        )
        self.user_id = user_id
        self.credentials = credentials
        self.speech = speech
        self.media = media

        self._listeners: List[SnapshotListener] = []
        self._persist_tasks: Set[asyncio.Task] = set()
        # Bumped by reset(); results of calls started under an older
        # generation are dropped
        self._generation = 0
        self._clear_state()

    def _clear_state(self):
        self._phase = SessionPhase.IDLE
        self._session_id: Optional[str] = None
        self._topics: List[str] = []
        self._selection_mode: Optional[SelectionMode] = None
        self._provider: Optional[GradingProvider] = None
        self._client: Optional[BaseGradingClient] = None
        self._questions: List[Question] = []
        self._cursor = 0
        self._answers: List[str] = []
        self._feedback: List[str] = []
        self._evaluation_result: Optional[EvaluationResult] = None
        self._last_error: Optional[str] = None
        self._evaluation_failed = False
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None
        self._busy = False
        self._record_media = False
        self.record: Optional[SessionRecord] = None
        self.recording: Optional[RecordingArtifact] = None
        self.recording_error: Optional[str] = None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def questions(self) -> List[Question]:
        return list(self._questions)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def answers(self) -> List[str]:
        return list(self._answers)

    @property
    def feedback(self) -> List[str]:
        return list(self._feedback)

    @property
    def evaluation_result(self) -> Optional[EvaluationResult]:
        return self._evaluation_result

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def current_question(self) -> Optional[Question]:
        if self._phase != SessionPhase.ACTIVE or self._cursor >= len(self._questions):
            return None
        return self._questions[self._cursor]

    def snapshot(self) -> SessionSnapshot:
        """Immutable copy of the current state."""
        return SessionSnapshot(
            session_id=self._session_id,
            phase=self._phase,
            topics=list(self._topics),
            selection_mode=self._selection_mode,
            provider=self._provider.value if self._provider else None,
            questions=list(self._questions),
            cursor=self._cursor,
            answers=list(self._answers),
            feedback=list(self._feedback),
            evaluation_result=self._evaluation_result,
            last_error=self._last_error,
            recording_error=self.recording_error,
            started_at=self._started_at,
            finished_at=self._finished_at,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every transition.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    def _transition(self, phase: SessionPhase):
        logger.info(f"Session {self._session_id}: {self._phase.value} -> {phase.value}")
        self._phase = phase

    def _fail(self, error: InterviewError):
        self._last_error = error.describe()
        logger.warning(f"Session {self._session_id} failed: {self._last_error}")
        self._transition(SessionPhase.FAILED)
        self._notify()

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info("Discarding result of a call started before reset()")
            return True
        return False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _validate_start(
        self,
        topics: List[str],
        selection_mode: Union[str, SelectionMode],
        question_count: Optional[int],
        provider: Union[str, GradingProvider],
    ):
        if self._phase != SessionPhase.IDLE:
            raise ValidationError(f"Cannot start a session while {self._phase.value}; reset first")

        cleaned = []
        for topic in topics or []:
            topic = str(topic).strip()
            if topic and topic not in cleaned:
                cleaned.append(topic)
        if not cleaned:
            raise ValidationError("At least one topic is required")

        if question_count is None:
            question_count = self.settings.default_question_count
        max_count = self.settings.max_question_count
        if isinstance(question_count, bool) or not isinstance(question_count, int) or not 1 <= question_count <= max_count:
            raise ValidationError(f"Question count must be between 1 and {max_count}")

        try:
            mode = SelectionMode(selection_mode)
        except ValueError:
            raise ValidationError(f"Unknown selection mode: {selection_mode}")

        try:
            grading_provider = (
                provider if isinstance(provider, GradingProvider) else GradingProvider.from_string(provider)
            )
        except ValueError as e:
            raise ValidationError(str(e))

        return cleaned, mode, question_count, grading_provider

    async def start_session(
        self,
        topics: List[str],
        selection_mode: Union[str, SelectionMode] = SelectionMode.SEQUENTIAL,
        question_count: Optional[int] = None,
        provider: Union[str, GradingProvider] = GradingProvider.OPENAI,
        record_media: bool = True,
    ) -> OperationOutcome:
        """
        Load and select the questions and open the session.

        Args:
            topics: Topic names, in the order their questions are concatenated
            selection_mode: sequential, random or mixed
            question_count: 1..max_question_count (default from settings)
            provider: Grading provider used for the whole session
            record_media: Record the camera/microphone when a capture is attached

        Raises:
            ValidationError: Bad parameters or a session already started.
                No state changes in that case.

        Returns:
            APPLIED on success, FAILED if questions could not be loaded
        """
        topics, mode, count, grading_provider = self._validate_start(
            topics, selection_mode, question_count, provider
        )

        generation = self._generation
        self._session_id = str(uuid.uuid4())
        self._topics = topics
        self._selection_mode = mode
        self._provider = grading_provider
        self._record_media = record_media
        self._started_at = utcnow()
        self._last_error = None
        self._transition(SessionPhase.LOADING)
        self._notify()

        client = None
        try:
            pools = await self.question_bank.load_topics(topics)
            questions = self.selector.select(pools, mode, count)
            if not questions:
                raise RemoteError(f"No questions available for topics: {', '.join(topics)}")
            client = self.grading_client_factory(grading_provider, self.credentials)
        except Exception as e:
            if self._is_stale(generation):
                return OperationOutcome.IGNORED
            self._fail(_as_error(e))
            return OperationOutcome.FAILED

        if self._is_stale(generation):
            await client.close()
            return OperationOutcome.IGNORED

        self._client = client
        self._questions = questions
        self._cursor = 0
        self._answers = []
        self._feedback = []
        self._transition(SessionPhase.ACTIVE)
        logger.info(
            f"Session {self._session_id} started: {len(questions)} questions, "
            f"topics={topics}, mode={mode.value}, provider={grading_provider.value}"
        )
        self._notify()

        if self.media is not None and record_media:
            await self._start_recording(generation)

        return OperationOutcome.APPLIED

    async def submit_answer(self, text: str) -> OperationOutcome:
        """
        Grade an answer to the current question and advance.

        A blank answer, or a call outside an active question, is ignored.
        On a grading failure the answer is not recorded, the cursor stays
        put and ``last_error`` is set so the caller can retry.
        """
        if self._busy:
            logger.info(f"Session {self._session_id}: answer rejected, another operation in flight")
            return OperationOutcome.BUSY

        question = self.current_question
        if question is None or not text or not text.strip():
            return OperationOutcome.IGNORED

        generation = self._generation
        self._busy = True
        try:
            feedback = await self._client.ask_question(question.text, text)
        except Exception as e:
            if self._is_stale(generation):
                return OperationOutcome.IGNORED
            self._last_error = _as_error(e).describe()
            logger.warning(f"Session {self._session_id}: answer not graded: {self._last_error}")
            self._notify()
            return OperationOutcome.FAILED
        finally:
            if generation == self._generation:
                self._busy = False

        if self._is_stale(generation):
            return OperationOutcome.IGNORED

        self._answers.append(text)
        self._feedback.append(feedback)
        self._cursor += 1
        self._last_error = None
        logger.info(f"Session {self._session_id}: answer {self._cursor}/{len(self._questions)} graded")
        self._notify()
        return OperationOutcome.APPLIED

    @property
    def can_end(self) -> bool:
        return self._phase == SessionPhase.ACTIVE or (
            self._phase == SessionPhase.FAILED and self._evaluation_failed
        )

    async def end_session(self) -> OperationOutcome:
        """
        Evaluate the interview and finish the session.

        Any answer still pending must be submitted by the caller first.
        Allowed from active, or from failed when the evaluation itself
        failed; answered questions are never re-asked.
        """
        if self._busy:
            logger.info(f"Session {self._session_id}: end rejected, another operation in flight")
            return OperationOutcome.BUSY
        if not self.can_end:
            return OperationOutcome.IGNORED

        generation = self._generation
        self._busy = True
        self._transition(SessionPhase.EVALUATING)
        self._notify()

        try:
            result = await self._client.evaluate(
                [q.text for q in self._questions],
                list(self._answers),
                [q.reference_answer for q in self._questions],
            )
        except Exception as e:
            if self._is_stale(generation):
                return OperationOutcome.IGNORED
            self._evaluation_failed = True
            self._fail(_as_error(e))
            return OperationOutcome.FAILED
        finally:
            if generation == self._generation:
                self._busy = False

        if self._is_stale(generation):
            return OperationOutcome.IGNORED

        self._evaluation_result = result
        self._evaluation_failed = False
        self._last_error = None
        self._finished_at = utcnow()
        self._transition(SessionPhase.COMPLETE)
        logger.info(f"Session {self._session_id} complete: score {result.overall_score}")

        self.record = self._build_record()
        self._schedule_persist(self.record)

        await self._stop_recording(generation)
        await self._close_client()
        if self._is_stale(generation):
            return OperationOutcome.IGNORED
        self._notify()
        return OperationOutcome.APPLIED

    async def reset(self) -> None:
        """Return to idle, discarding all in-memory session data."""
        previous = self._session_id
        self._generation += 1

        try:
            await self._release_media("Media release failed on reset")
            await self._close_client()
        finally:
            self._clear_state()
        logger.info(f"Session {previous} reset to idle")
        self._notify()

    async def ask_current_question(self) -> None:
        """Speak the current question when speech synthesis is available."""
        question = self.current_question
        if question is None or self.speech is None or not self.speech.supports_synthesis:
            return
        await self.speech.speak(question.text)

    async def attach_media(self, media: MediaCapture) -> None:
        """
        Attach a media capture after the session started.

        Recording begins right away if the session is active and asked
        for recording.
        """
        self.media = media
        if self._phase == SessionPhase.ACTIVE and self._record_media:
            await self._start_recording()

    async def wait_for_persistence(self) -> None:
        """Wait for background record writes to finish."""
        if self._persist_tasks:
            await asyncio.gather(*list(self._persist_tasks))

    async def close(self) -> None:
        """Release the grading client and any media device."""
        await self._release_media("Media release failed on close")
        await self._close_client()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_record(self) -> SessionRecord:
        return SessionRecord(
            session_id=self._session_id,
            topic=", ".join(self._topics),
            score=self._evaluation_result.overall_score,
            started_at=self._started_at,
            finished_at=self._finished_at,
            transcript="\n".join(self._answers),
            feedback="\n".join(self._feedback),
            evaluation=self._evaluation_result,
        )

    def _schedule_persist(self, record: SessionRecord):
        if self.session_store is None:
            logger.debug("No session store configured, record not persisted")
            return
        task = asyncio.ensure_future(self._persist(record))
        self._persist_tasks.add(task)
        task.add_done_callback(self._persist_tasks.discard)

    async def _persist(self, record: SessionRecord):
        try:
            await self.session_store.write(self.user_id, record)
        except Exception as e:
            # Completion stands regardless of persistence
            logger.warning(f"Failed to persist session {record.session_id}: {e}")

    async def _close_client(self):
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Failed to close grading client: {e}")

    def _media_failed(self, error: Exception, context: str):
        # Recording is optional; media failures never reach last_error
        if isinstance(error, InterviewError):
            device_error = error
        else:
            device_error = DeviceError(str(error) or type(error).__name__)
        self.recording_error = device_error.describe()
        logger.warning(f"Session {self._session_id}: {context}: {device_error.message}")

    async def _start_recording(self, generation: Optional[int] = None):
        if generation is None:
            generation = self._generation
        try:
            await self.media.start()
        except Exception as e:
            if self._is_stale(generation):
                return
            self._media_failed(e, "recording unavailable")
            self._notify()

    async def _stop_recording(self, generation: int):
        if self.media is None:
            return
        try:
            artifact = await self.media.stop()
        except Exception as e:
            if not self._is_stale(generation):
                self._media_failed(e, "recording not finalized")
            return
        if self._is_stale(generation):
            return
        self.recording = artifact
        if self.media.error is not None:
            self.recording_error = self.media.error.describe()

    async def _release_media(self, context: str):
        if self.media is None:
            return
        try:
            await self.media.close()
        except Exception as e:
            logger.warning(f"{context}: {e}")

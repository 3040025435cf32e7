"""
Session Manager.

Registry of live interview sessions, one orchestrator per (user, session).
Built once in the application lifespan and kept in ``app.state``.
"""
import logging
from typing import Dict, List, Optional, Tuple

from mock_interview.core.config import Settings, get_settings
from mock_interview.core.errors import InterviewError, SessionNotFoundError
from mock_interview.models.session import (
    OperationOutcome,
    SessionPhase,
    StartSessionRequest,
)
from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.grading.factory import GradingClientFactory
from mock_interview.providers.recording_storage.base import RecordingStorageProvider
from mock_interview.providers.session_store.base import SessionStore
from mock_interview.services.question_bank import QuestionBankService
from mock_interview.services.question_selector import QuestionSelector
from mock_interview.services.session_orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)

SessionKey = Tuple[str, str]

FINISHED_PHASES = (SessionPhase.COMPLETE, SessionPhase.FAILED, SessionPhase.IDLE)


class SessionManager:
    """
    Creates, looks up and disposes of session orchestrators.

    Sessions of different users never share an orchestrator; a user only
    sees their own sessions.
    """

    def __init__(
        self,
        question_bank: QuestionBankService,
        grading_factory: GradingClientFactory,
        session_store: SessionStore,
        credential_store: CredentialStore,
        recording_storage: Optional[RecordingStorageProvider] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.question_bank = question_bank
        self.grading_factory = grading_factory
        self.session_store = session_store
        self.credential_store = credential_store
        self.recording_storage = recording_storage
        self._sessions: Dict[SessionKey, SessionOrchestrator] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def create_session(self, user_id: str, request: StartSessionRequest) -> Tuple[SessionOrchestrator, OperationOutcome]:
        """
        Build an orchestrator for the user and start it.

        Raises:
            ValidationError: Invalid start parameters; nothing is registered
        """
        credentials = await self.credential_store.get_credentials(user_id)
        orchestrator = SessionOrchestrator(
            question_bank=self.question_bank,
            grading_client_factory=self.grading_factory.create,
            session_store=self.session_store,
            selector=QuestionSelector(
                mixed_fill_allow_duplicates=self.settings.mixed_fill_allow_duplicates,
            ),
            user_id=user_id,
            credentials=credentials,
            settings=self.settings,
        )

        outcome = await orchestrator.start_session(
            topics=request.topics,
            selection_mode=request.selection_mode,
            question_count=request.question_count,
            provider=request.provider,
            record_media=request.record_media,
        )

        self._sessions[(user_id, orchestrator.session_id)] = orchestrator
        logger.info(f"Registered session {orchestrator.session_id} for user {user_id} ({outcome.value})")
        await self._evict_finished(user_id)
        return orchestrator, outcome

    async def _evict_finished(self, user_id: str):
        """Drop the user's oldest finished sessions beyond the retention limit."""
        finished = [
            key for key, o in self._sessions.items()
            if key[0] == user_id and o.phase in FINISHED_PHASES and not o.is_busy
        ]
        for key in finished[: max(0, len(finished) - self.settings.max_finished_sessions)]:
            orchestrator = self._sessions.pop(key)
            await orchestrator.wait_for_persistence()
            await orchestrator.close()
            logger.info(f"Evicted finished session {key[1]} for user {user_id}")

    def get(self, user_id: str, session_id: str) -> SessionOrchestrator:
        """
        Raises:
            SessionNotFoundError: No live session with this id for the user
        """
        orchestrator = self._sessions.get((user_id, session_id))
        if orchestrator is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return orchestrator

    def list_sessions(self, user_id: str) -> List[SessionOrchestrator]:
        return [o for (owner, _), o in self._sessions.items() if owner == user_id]

    async def end_session(self, user_id: str, session_id: str) -> OperationOutcome:
        """End a session and file its recording in the recording library."""
        orchestrator = self.get(user_id, session_id)
        outcome = await orchestrator.end_session()

        if outcome == OperationOutcome.APPLIED:
            await self._store_recording(user_id, orchestrator)
        return outcome

    async def _store_recording(self, user_id: str, orchestrator: SessionOrchestrator):
        # Hand the blob over; the live session does not keep a copy
        artifact, orchestrator.recording = orchestrator.recording, None
        if artifact is None or self.recording_storage is None or not artifact.blob:
            return
        try:
            meta = await self.recording_storage.store_artifact(
                user_id, artifact, session_id=orchestrator.session_id
            )
            logger.info(f"Stored recording {meta.recording_id} for session {orchestrator.session_id}")
        except InterviewError as e:
            logger.warning(f"Failed to store recording for session {orchestrator.session_id}: {e.describe()}")

    async def remove(self, user_id: str, session_id: str) -> SessionOrchestrator:
        """
        Reset and forget a session.

        Returns:
            The orchestrator, now idle and no longer registered
        """
        orchestrator = self.get(user_id, session_id)
        del self._sessions[(user_id, session_id)]
        if orchestrator.phase != SessionPhase.IDLE:
            await orchestrator.reset()
        await orchestrator.close()
        logger.info(f"Removed session {session_id} for user {user_id}")
        return orchestrator

    async def close(self) -> None:
        """Close every live session (application shutdown)."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for orchestrator in sessions:
            await orchestrator.wait_for_persistence()
            await orchestrator.close()
        logger.info(f"Closed {len(sessions)} live session(s)")

"""
Pydantic models for interview sessions.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mock_interview.models.question import Question


class SessionPhase(str, Enum):
    """Lifecycle phase of an interview session."""
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    EVALUATING = "evaluating"
    COMPLETE = "complete"
    FAILED = "failed"


class SelectionMode(str, Enum):
    """Policy for picking which questions enter a session."""
    SEQUENTIAL = "sequential"
    RANDOM = "random"
    MIXED = "mixed"


class OperationOutcome(str, Enum):
    """What an orchestrator operation did with the request."""
    APPLIED = "applied"    # state transition happened
    IGNORED = "ignored"    # precondition not met, nothing changed
    BUSY = "busy"          # another operation is in flight, nothing changed
    FAILED = "failed"      # external call failed, see last_error


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class EvaluationResult(BaseModel):
    """Structured end-of-session evaluation."""
    overall_score: float = Field(..., ge=0, le=100)
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    """Immutable view of the orchestrator state after a transition."""
    model_config = ConfigDict(frozen=True)

    session_id: Optional[str] = None
    phase: SessionPhase = SessionPhase.IDLE
    topics: List[str] = Field(default_factory=list)
    selection_mode: Optional[SelectionMode] = None
    provider: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    cursor: int = 0
    answers: List[str] = Field(default_factory=list)
    feedback: List[str] = Field(default_factory=list)
    evaluation_result: Optional[EvaluationResult] = None
    last_error: Optional[str] = None
    recording_error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase != SessionPhase.ACTIVE or self.cursor >= len(self.questions):
            return None
        return self.questions[self.cursor]

    @property
    def is_question_phase_complete(self) -> bool:
        return bool(self.questions) and self.cursor >= len(self.questions)

    @property
    def progress_percent(self) -> float:
        if not self.questions:
            return 0.0
        return (self.cursor / len(self.questions)) * 100


class SessionRecord(BaseModel):
    """Finished-session record persisted per user."""
    session_id: str
    topic: str
    score: float = Field(..., ge=0, le=100)
    started_at: datetime
    finished_at: datetime
    transcript: str = ""
    feedback: str = ""
    evaluation: EvaluationResult

    def to_document(self) -> Dict[str, Any]:
        """JSON-safe document for the external store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "SessionRecord":
        fields = {k: v for k, v in document.items() if k in cls.model_fields}
        return cls.model_validate(fields)


# Request/Response models for API

class StartSessionRequest(BaseModel):
    """Request to start an interview session."""
    topics: List[str] = Field(default_factory=list)
    selection_mode: SelectionMode = SelectionMode.SEQUENTIAL
    question_count: Optional[int] = None
    provider: str = "openai"
    record_media: bool = False


class SubmitAnswerRequest(BaseModel):
    """Request to submit an answer for the current question."""
    text: str


class SessionResponse(BaseModel):
    """Session state returned by the session endpoints."""
    outcome: Optional[OperationOutcome] = None
    session: SessionSnapshot
    current_question: Optional[Question] = None
    progress_percent: float = 0.0
    question_phase_complete: bool = False

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SessionSnapshot,
        outcome: Optional[OperationOutcome] = None,
    ) -> "SessionResponse":
        return cls(
            outcome=outcome,
            session=snapshot,
            current_question=snapshot.current_question,
            progress_percent=snapshot.progress_percent,
            question_phase_complete=snapshot.is_question_phase_complete,
        )


class SessionHistoryResponse(BaseModel):
    """List of finished sessions, newest first."""
    records: List[SessionRecord]
    total: int

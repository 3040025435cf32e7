"""
Data models for the Mock Interview service.
"""
from mock_interview.models.question import (
    Question,
    RawQuestion,
    TopicInfo,
    TopicQuestionsResponse,
)
from mock_interview.models.session import (
    SessionPhase,
    SelectionMode,
    OperationOutcome,
    EvaluationResult,
    SessionSnapshot,
    SessionRecord,
    StartSessionRequest,
    SubmitAnswerRequest,
    SessionResponse,
    SessionHistoryResponse,
)
from mock_interview.models.recording import (
    RecorderStatus,
    RecordingArtifact,
    RecordingMetadata,
    RecordingListResponse,
)
from mock_interview.models.auth import TokenPayload, CurrentUser, AuthConfig

__all__ = [
    # Questions
    "Question",
    "RawQuestion",
    "TopicInfo",
    "TopicQuestionsResponse",
    # Sessions
    "SessionPhase",
    "SelectionMode",
    "OperationOutcome",
    "EvaluationResult",
    "SessionSnapshot",
    "SessionRecord",
    "StartSessionRequest",
    "SubmitAnswerRequest",
    "SessionResponse",
    "SessionHistoryResponse",
    # Recordings
    "RecorderStatus",
    "RecordingArtifact",
    "RecordingMetadata",
    "RecordingListResponse",
    # Auth
    "TokenPayload",
    "CurrentUser",
    "AuthConfig",
]

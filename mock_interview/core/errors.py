"""
Error taxonomy for the Mock Interview service.

Every failure that crosses the orchestrator boundary is converted into one
of these kinds and stored as ``"<kind>: <message>"`` in ``last_error``.
"""


class InterviewError(Exception):
    """Base class for all service errors."""
    kind = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        """Render as the string stored in session state."""
        return f"{self.kind}: {self.message}" if self.message else self.kind


class ValidationError(InterviewError):
    """Caller-supplied parameters violate an operation's preconditions."""
    kind = "validation"


class ProviderError(InterviewError):
    """No grading credential is configured for the active provider."""
    kind = "provider"


class RemoteError(InterviewError):
    """Network or HTTP failure talking to the grading service or question source."""
    kind = "remote"

    def __init__(self, message: str = "", status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class TopicNotFoundError(RemoteError):
    """The question source has no document for a requested topic."""

    def __init__(self, topic: str):
        super().__init__(f"Could not read questions for topic: {topic}")
        self.topic = topic


class ParseError(InterviewError):
    """Malformed structured response from the grading service or question source."""
    kind = "parse"


class DeviceError(InterviewError):
    """Camera or microphone unavailable or denied."""
    kind = "device"


class SessionNotFoundError(InterviewError):
    """No live session with the requested id for this user."""
    kind = "not_found"

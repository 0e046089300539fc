from __future__ import annotations  # Error taxonomy for interview session operations


class InterviewError(RuntimeError):  # Base error with a stable kind
    kind = "interview_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class NotFound(InterviewError):  # Unknown session or resume
    kind = "not_found"


class Conflict(InterviewError):  # Duplicate session or overlapping submission
    kind = "conflict"


class InvalidState(InterviewError):  # Operation not allowed in the current state
    kind = "invalid_state"


class InvalidRequest(InvalidState):  # Caller supplied out-of-range input
    kind = "invalid_request"


class MalformedGradingOutput(InterviewError):  # Repair budget exhausted
    kind = "malformed_grading_output"

    def __init__(self, message: str, *, attempts: int, raw_text: str = "") -> None:
        super().__init__(message)
        self.attempts = attempts
        self.raw_text = raw_text


class TransientGradingFailure(InterviewError):  # Grader unreachable or returned an error status
    kind = "transient_grading_failure"


class InsufficientData(InterviewError):  # Report requested without any scored answer
    kind = "insufficient_data"


class RenderFailed(InterviewError):  # Export renderer raised
    kind = "render_failed"


__all__ = [
    "InterviewError",
    "NotFound",
    "Conflict",
    "InvalidState",
    "InvalidRequest",
    "MalformedGradingOutput",
    "TransientGradingFailure",
    "InsufficientData",
    "RenderFailed",
]

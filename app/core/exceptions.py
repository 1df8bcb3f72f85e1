from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import status

from app.core.constants import PersistenceStageEnum, UnavailableReasonEnum


class SimuladoError(Exception):
    """Base class for the typed failures raised by the exam services.

    Each subclass carries a stable ``code`` and the HTTP status the API layer
    answers with; ``details`` holds the reason-specific payload.
    """
    code: str = "SIMULADO_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ExamNotFound(SimuladoError):
    code = "EXAM_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, exam_id: int):
        super().__init__("Exam not found.", {"exam_id": exam_id})
        self.exam_id = exam_id


class AttemptNotFound(SimuladoError):
    code = "ATTEMPT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, attempt_id: int):
        super().__init__("Exam attempt not found.", {"attempt_id": attempt_id})
        self.attempt_id = attempt_id


class AttemptForbidden(SimuladoError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You can only access your own exam attempts."):
        super().__init__(message)


class ExamUnavailable(SimuladoError):
    code = "EXAM_UNAVAILABLE"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: UnavailableReasonEnum, boundary: datetime):
        if reason == UnavailableReasonEnum.NOT_YET_OPEN:
            message = f"This exam will be available from {boundary.isoformat()}."
        else:
            message = f"This exam closed at {boundary.isoformat()}."
        super().__init__(message, {"reason": reason.value, "boundary": boundary.isoformat()})
        self.reason = reason
        self.boundary = boundary


class RetakeNotAllowed(SimuladoError):
    code = "RETAKE_NOT_ALLOWED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, prior_summary: Dict[str, Any]):
        super().__init__(
            "You have already completed this exam and retakes are not allowed.",
            {"prior_summary": prior_summary}
        )
        self.prior_summary = prior_summary


class AlreadyCompleted(SimuladoError):
    code = "ALREADY_COMPLETED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, attempt_id: int):
        super().__init__("This exam attempt has already been completed.", {"attempt_id": attempt_id})
        self.attempt_id = attempt_id


class ExamHasOpenAttempts(SimuladoError):
    code = "EXAM_IN_PROGRESS"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, exam_id: int, open_attempts: int):
        super().__init__(
            "The question list cannot change while attempts are in progress.",
            {"exam_id": exam_id, "open_attempts": open_attempts}
        )
        self.exam_id = exam_id
        self.open_attempts = open_attempts


class RankingHidden(SimuladoError):
    code = "RANKING_HIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, exam_id: int):
        super().__init__("The ranking of this exam is not public.", {"exam_id": exam_id})
        self.exam_id = exam_id


class PersistenceFailure(SimuladoError):
    code = "PERSISTENCE_FAILURE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, stage: PersistenceStageEnum, attempt_id: Optional[int] = None):
        super().__init__(
            "The result could not be saved. Your answers were kept, please try again.",
            {"stage": stage.value, "attempt_id": attempt_id}
        )
        self.stage = stage
        self.attempt_id = attempt_id


class InvalidInput(SimuladoError, ValueError):
    code = "INVALID_INPUT"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

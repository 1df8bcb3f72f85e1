from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from app.core.constants import AttemptSessionStateEnum, ExamAttemptStatusEnum
from app.schemas.exam_answer import ExamAnswer
from app.schemas.score import ScoreResult
from app.utils.answers import normalize_answers

class ExamAttemptBase(BaseModel):
    user_id: int
    exam_id: int
    started_at: datetime
    total_questions: int

class ExamAttemptCreate(ExamAttemptBase):
    pass

class ExamAttemptUpdate(BaseModel):
    completed_at: datetime
    correct_answers: int
    incorrect_answers: int
    blank_answers: int
    final_score: int
    percentage: int
    penalty_applied: int
    time_spent_seconds: int

class ExamAttempt(ExamAttemptBase):
    id: int
    status: ExamAttemptStatusEnum
    completed_at: Optional[datetime] = None
    correct_answers: int = 0
    incorrect_answers: int = 0
    blank_answers: int = 0
    final_score: Optional[int] = None
    percentage: Optional[int] = None
    penalty_applied: int = 0
    time_spent_seconds: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class PriorAttemptSummary(BaseModel):
    attempt_id: int
    completed_at: datetime
    final_score: Optional[int] = None
    percentage: Optional[int] = None

class AttemptSession(BaseModel):
    """What the exam screen needs to render an open (or just expired) attempt."""
    attempt: ExamAttempt
    state: AttemptSessionStateEnum
    remaining_seconds: int
    duration_seconds: int
    result: Optional[ScoreResult] = None

class FinalizeRequest(BaseModel):
    # {"1": "A"} or [{"position": 1, "choice": "A"}]
    answers: Dict[int, Optional[str]] = {}

    @field_validator("answers", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_answers(v)

class ExamAttemptResult(BaseModel):
    attempt: ExamAttempt
    result: ScoreResult

class ExamAttemptDetails(BaseModel):
    attempt: ExamAttempt
    answers: List[ExamAnswer] = []
    result: Optional[ScoreResult] = None

class AttemptHistoryEntry(BaseModel):
    attempt: ExamAttempt
    percentage_delta: Optional[int] = None
    is_latest: bool = False
    is_first: bool = False

class AttemptHistory(BaseModel):
    exam_id: int
    total_attempts: int
    average_percentage: Optional[int] = None
    best_percentage: Optional[int] = None
    attempts: List[AttemptHistoryEntry] = []

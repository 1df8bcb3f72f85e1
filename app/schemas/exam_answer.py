from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class ExamAnswerBase(BaseModel):
    question_id: int
    user_answer: Optional[str] = None
    correct_answer: str
    is_correct: bool = False
    question_order: int

class ExamAnswerCreate(ExamAnswerBase):
    attempt_id: int

class ExamAnswer(ExamAnswerBase):
    id: int
    attempt_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.core.constants import ExamAvailabilityEnum

class ExamBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(60, ge=1)
    fator_correcao: Optional[int] = Field(None, ge=1)
    allow_retake: bool = False
    show_ranking: bool = False
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date.")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Simulado PF - Agente",
                "description": "120 itens certo/errado",
                "duration_minutes": 240,
                "fator_correcao": 2,
                "allow_retake": False,
                "show_ranking": True,
                "is_active": True,
                "start_date": None,
                "end_date": None,
                "question_ids": [1, 2, 3]
            }
        }

class ExamCreate(ExamBase):
    question_ids: List[int] = []

class ExamQuestionsUpdate(BaseModel):
    question_ids: List[int]

class ExamQuestion(BaseModel):
    position: int
    question_id: int

class Exam(ExamBase):
    id: int
    total_questions: int
    questions: List[ExamQuestion] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ExamSummary(ExamBase):
    """Listing row: definition without the question list, plus availability."""
    id: int
    total_questions: int
    availability: ExamAvailabilityEnum

    model_config = ConfigDict(from_attributes=True)

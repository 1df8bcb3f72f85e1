from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Any
from datetime import datetime

from app.core.constants import QuestionTypeEnum, TRUE_FALSE_CHOICES

class QuestionBase(BaseModel):
    question_type: QuestionTypeEnum = QuestionTypeEnum.MULTIPLE_CHOICE
    alternativas: Optional[List[Any]] = None # Flat letter list or [{"letra": "A", "texto": ...}]
    gabarito: str = Field(..., min_length=1)
    disciplina: Optional[str] = None
    banca: Optional[str] = None
    ano: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)

class QuestionCreate(QuestionBase):

    @model_validator(mode="after")
    def validate_answer_key(self):
        if self.question_type == QuestionTypeEnum.TRUE_FALSE.value:
            if self.gabarito not in TRUE_FALSE_CHOICES:
                raise ValueError("True/false questions must be keyed 'C' or 'E'.")
            self.alternativas = None
            return self

        if not self.alternativas:
            raise ValueError("Multiple choice questions need alternatives.")
        letters = [
            a.get("letra") if isinstance(a, dict) else a
            for a in self.alternativas
        ]
        if self.gabarito not in letters:
            raise ValueError("The answer key must be one of the alternatives.")
        return self

class Question(QuestionBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

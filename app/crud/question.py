from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.question import Question
from app.schemas.question import QuestionCreate

class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionCreate]):
    def get_by_ids(self, db: Session, *, ids: List[int]) -> List[Question]:
        if not ids:
            return []
        return db.query(self.model).filter(self.model.id.in_(ids)).all()

question = CRUDQuestion(Question)

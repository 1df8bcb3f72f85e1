from sqlalchemy.orm import Session
from typing import List

from app.crud.base import CRUDBase
from app.models.exam_answer import ExamAnswer
from app.schemas.exam_answer import ExamAnswerCreate

class CRUDExamAnswer(CRUDBase[ExamAnswer, ExamAnswerCreate, ExamAnswerCreate]):

    def get_all_by_attempt(self, db: Session, attempt_id: int) -> List[ExamAnswer]:
        return (
            db.query(ExamAnswer)
            .filter(ExamAnswer.attempt_id == attempt_id)
            .order_by(ExamAnswer.question_order)
            .all()
        )

    def count_by_attempt(self, db: Session, attempt_id: int) -> int:
        return db.query(ExamAnswer).filter(ExamAnswer.attempt_id == attempt_id).count()

    def bulk_create(self, db: Session, *, answers_in: List[ExamAnswerCreate]) -> List[ExamAnswer]:
        """Stage one row per question. Flushes, does not commit."""
        db_objs = [ExamAnswer(**answer_in.model_dump()) for answer_in in answers_in]
        db.add_all(db_objs)
        db.flush()
        return db_objs


exam_answer = CRUDExamAnswer(ExamAnswer)

from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.exam import Exam, ExamQuestion
from app.schemas.exam import ExamCreate, ExamQuestionsUpdate


class CRUDExam(CRUDBase[Exam, ExamCreate, ExamCreate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Exam).options(
            selectinload(Exam.exam_questions).selectinload(ExamQuestion.question)
        )

    def get(self, db: Session, id: int) -> Optional[Exam]:
        return self._query_with_relationships(db).filter(Exam.id == id).first()

    def get_multi(self, db: Session, skip: int = 0, limit: int = 100) -> List[Exam]:
        return (
            self._query_with_relationships(db)
            .order_by(Exam.created_at.desc(), Exam.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_active(self, db: Session, skip: int = 0, limit: int = 100) -> List[Exam]:
        return (
            self._query_with_relationships(db)
            .filter(Exam.is_active.is_(True))
            .order_by(Exam.created_at.desc(), Exam.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_with_questions(self, db: Session, *, obj_in: ExamCreate, created_by: Optional[int] = None) -> Exam:
        exam_data = obj_in.model_dump(exclude={"question_ids"})
        db_obj = Exam(**exam_data, created_by=created_by)
        db_obj.exam_questions = [
            ExamQuestion(question_id=question_id, order_position=position)
            for position, question_id in enumerate(obj_in.question_ids, start=1)
        ]
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def replace_questions(self, db: Session, *, db_obj: Exam, obj_in: ExamQuestionsUpdate) -> Exam:
        db_obj.exam_questions.clear()
        db.flush()
        db_obj.exam_questions.extend(
            ExamQuestion(question_id=question_id, order_position=position)
            for position, question_id in enumerate(obj_in.question_ids, start=1)
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

exam = CRUDExam(Exam)

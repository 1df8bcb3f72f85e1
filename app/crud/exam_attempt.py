from sqlalchemy.orm import Session, selectinload
from typing import List, Optional, Tuple
from sqlalchemy import func

from app.crud.base import CRUDBase
from app.models.exam_attempt import ExamAttempt
from app.models.exam_answer import ExamAnswer
from app.models.user import User
from app.schemas.exam_attempt import ExamAttemptCreate, ExamAttemptUpdate

class CRUDExamAttempt(CRUDBase[ExamAttempt, ExamAttemptCreate, ExamAttemptUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            selectinload(ExamAttempt.exam),
            selectinload(ExamAttempt.answers)
        )

    def get(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def get_in_progress(self, db: Session, user_id: int, exam_id: int) -> Optional[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.completed_at.is_(None))
            .order_by(ExamAttempt.started_at.desc())
            .first()
        )

    def count_in_progress_by_exam(self, db: Session, exam_id: int) -> int:
        return (
            db.query(func.count(ExamAttempt.id))
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.completed_at.is_(None))
            .scalar()
        )

    def get_completed_by_user_and_exam(self, db: Session, user_id: int, exam_id: int) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.completed_at.isnot(None))
            .order_by(ExamAttempt.completed_at.desc(), ExamAttempt.id.desc())
            .all()
        )

    def get_latest_completed(self, db: Session, user_id: int, exam_id: int) -> Optional[ExamAttempt]:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.completed_at.isnot(None))
            .order_by(ExamAttempt.completed_at.desc(), ExamAttempt.id.desc())
            .first()
        )

    def complete_if_open(self, db: Session, *, attempt_id: int, obj_in: ExamAttemptUpdate) -> bool:
        """Write the final score only while completed_at is still null.

        Returns False when another request already completed the attempt. Does
        not commit.
        """
        updated = (
            db.query(ExamAttempt)
            .filter(ExamAttempt.id == attempt_id)
            .filter(ExamAttempt.completed_at.is_(None))
            .update(obj_in.model_dump(), synchronize_session=False)
        )
        return updated == 1

    def get_completed_with_users(self, db: Session, exam_id: int) -> List[Tuple[ExamAttempt, User]]:
        return (
            db.query(ExamAttempt, User)
            .join(User, User.id == ExamAttempt.user_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.completed_at.isnot(None))
            .order_by(
                ExamAttempt.final_score.desc(),
                ExamAttempt.percentage.desc(),
                func.coalesce(ExamAttempt.time_spent_seconds, 0).asc(),
                ExamAttempt.id.asc()
            )
            .all()
        )

    def get_completed_without_answers(self, db: Session, exam_id: Optional[int] = None) -> List[ExamAttempt]:
        answer_count = (
            db.query(func.count(ExamAnswer.id))
            .filter(ExamAnswer.attempt_id == ExamAttempt.id)
            .correlate(ExamAttempt)
            .scalar_subquery()
        )
        query = (
            db.query(ExamAttempt)
            .filter(ExamAttempt.completed_at.isnot(None))
            .filter(ExamAttempt.total_questions > 0)
            .filter(answer_count == 0)
        )
        if exam_id is not None:
            query = query.filter(ExamAttempt.exam_id == exam_id)
        return query.order_by(ExamAttempt.completed_at.desc()).all()


exam_attempt = CRUDExamAttempt(ExamAttempt)

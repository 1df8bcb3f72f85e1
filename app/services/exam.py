import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.core.constants import ExamAvailabilityEnum, UnavailableReasonEnum
from app.core.exceptions import ExamHasOpenAttempts, ExamNotFound, ExamUnavailable, InvalidInput
from app.crud.exam import exam as crud_exam
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.question import question as crud_question
from app.models.exam import Exam as ExamModel
from app.models.question import Question as QuestionModel
from app.schemas.exam import Exam, ExamCreate, ExamQuestion, ExamQuestionsUpdate, ExamSummary
from app.schemas.question import QuestionCreate
from app.schemas.user import UserContext
from app.utils.clock import as_utc

logger = logging.getLogger(__name__)


class ExamService:

    def get_exam_or_404(self, db: Session, exam_id: int, include_inactive: bool = False) -> ExamModel:
        exam = crud_exam.get(db, id=exam_id)
        if not exam or (not exam.is_active and not include_inactive):
            raise ExamNotFound(exam_id)
        return exam

    def availability(self, exam: ExamModel, now: datetime) -> ExamAvailabilityEnum:
        start_date = as_utc(exam.start_date)
        end_date = as_utc(exam.end_date)
        now = as_utc(now)
        if start_date and now < start_date:
            return ExamAvailabilityEnum.UPCOMING
        if end_date and now > end_date:
            return ExamAvailabilityEnum.CLOSED
        return ExamAvailabilityEnum.AVAILABLE

    def check_availability(self, exam: ExamModel, now: datetime) -> None:
        availability = self.availability(exam, now)
        if availability == ExamAvailabilityEnum.UPCOMING:
            raise ExamUnavailable(UnavailableReasonEnum.NOT_YET_OPEN, as_utc(exam.start_date))
        if availability == ExamAvailabilityEnum.CLOSED:
            raise ExamUnavailable(UnavailableReasonEnum.CLOSED, as_utc(exam.end_date))

    def answer_key(self, exam: ExamModel) -> List[str]:
        return [question.gabarito for question in exam.questions]

    def to_schema(self, exam: ExamModel) -> Exam:
        return Exam(
            id=exam.id,
            title=exam.title,
            description=exam.description,
            duration_minutes=exam.duration_minutes,
            fator_correcao=exam.fator_correcao,
            allow_retake=exam.allow_retake,
            show_ranking=exam.show_ranking,
            is_active=exam.is_active,
            start_date=as_utc(exam.start_date),
            end_date=as_utc(exam.end_date),
            total_questions=exam.total_questions,
            questions=[
                ExamQuestion(position=link.order_position, question_id=link.question_id)
                for link in exam.exam_questions
            ],
            created_at=exam.created_at,
            updated_at=exam.updated_at,
        )

    def to_summary(self, exam: ExamModel, now: datetime) -> ExamSummary:
        return ExamSummary(
            id=exam.id,
            title=exam.title,
            description=exam.description,
            duration_minutes=exam.duration_minutes,
            fator_correcao=exam.fator_correcao,
            allow_retake=exam.allow_retake,
            show_ranking=exam.show_ranking,
            is_active=exam.is_active,
            start_date=as_utc(exam.start_date),
            end_date=as_utc(exam.end_date),
            total_questions=exam.total_questions,
            availability=self.availability(exam, now),
        )

    def list_exams(self, db: Session, current_user_context: UserContext, now: datetime,
                   skip: int = 0, limit: int = 100) -> List[ExamSummary]:
        if current_user_context.is_admin:
            exams = crud_exam.get_multi(db, skip=skip, limit=limit)
            return [self.to_summary(exam, now) for exam in exams]

        exams = crud_exam.get_active(db, skip=skip, limit=limit)
        return [
            self.to_summary(exam, now)
            for exam in exams
            if self.availability(exam, now) == ExamAvailabilityEnum.AVAILABLE
        ]

    def get_exam(self, db: Session, exam_id: int, current_user_context: UserContext) -> Exam:
        exam = self.get_exam_or_404(db, exam_id, include_inactive=current_user_context.is_admin)
        return self.to_schema(exam)

    def _require_existing_questions(self, db: Session, question_ids: List[int]) -> None:
        if len(question_ids) != len(set(question_ids)):
            raise InvalidInput("Duplicate question ids in exam.", {"question_ids": question_ids})
        found = {q.id for q in crud_question.get_by_ids(db, ids=question_ids)}
        missing = [qid for qid in question_ids if qid not in found]
        if missing:
            raise InvalidInput("Unknown question ids.", {"question_ids": missing})

    def create_question(self, db: Session, question_in: QuestionCreate) -> QuestionModel:
        question = crud_question.create(db, obj_in=question_in)
        logger.info(f"Question {question.id} created ({question.question_type})")
        return question

    def create_exam(self, db: Session, exam_in: ExamCreate, current_user_context: UserContext) -> ExamModel:
        self._require_existing_questions(db, exam_in.question_ids)
        exam_in = exam_in.model_copy(update={
            "start_date": as_utc(exam_in.start_date),
            "end_date": as_utc(exam_in.end_date),
        })
        exam = crud_exam.create_with_questions(db, obj_in=exam_in, created_by=current_user_context.user.id)
        logger.info(
            f"Exam {exam.id} created by user {current_user_context.user.id} "
            f"with {exam.total_questions} questions"
        )
        return exam

    def set_exam_questions(self, db: Session, exam_id: int, questions_in: ExamQuestionsUpdate) -> ExamModel:
        exam = self.get_exam_or_404(db, exam_id, include_inactive=True)
        # Open attempts are scored against the list they started with
        open_attempts = crud_exam_attempt.count_in_progress_by_exam(db, exam_id=exam.id)
        if open_attempts:
            logger.warning(f"Exam {exam.id}: question list change refused, {open_attempts} attempts in progress")
            raise ExamHasOpenAttempts(exam.id, open_attempts)
        self._require_existing_questions(db, questions_in.question_ids)
        exam = crud_exam.replace_questions(db, db_obj=exam, obj_in=questions_in)
        logger.info(f"Exam {exam.id} question list replaced ({exam.total_questions} questions)")
        return exam


exam_service = ExamService()

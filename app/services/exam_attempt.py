import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import AttemptSessionStateEnum, PersistenceStageEnum
from app.core.exceptions import (
    AlreadyCompleted,
    AttemptForbidden,
    AttemptNotFound,
    ExamUnavailable,
    InvalidInput,
    PersistenceFailure,
    RetakeNotAllowed,
)
from app.crud.exam_answer import exam_answer as crud_exam_answer
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.models.exam import Exam as ExamModel
from app.models.exam_attempt import ExamAttempt as ExamAttemptModel
from app.schemas.exam_answer import ExamAnswer, ExamAnswerCreate
from app.schemas.exam_attempt import (
    AttemptHistory,
    AttemptHistoryEntry,
    AttemptSession,
    ExamAttempt,
    ExamAttemptCreate,
    ExamAttemptDetails,
    ExamAttemptResult,
    ExamAttemptUpdate,
    PriorAttemptSummary,
)
from app.schemas.score import ScoreResult
from app.schemas.user import UserContext
from app.services.exam import exam_service
from app.services.scoring import is_correct, round_half_up, score_answers
from app.utils.answers import normalize_answers
from app.utils.clock import as_utc, elapsed_seconds

logger = logging.getLogger(__name__)


class AttemptHandle:
    """An attempt as seen by the exam screen, with the answers staged for it.

    Staged answers live only here until the attempt is finalized; nothing is
    written to the database by ``record_answer``.
    """

    def __init__(self, attempt: ExamAttemptModel, exam: ExamModel, state: AttemptSessionStateEnum,
                 now: datetime, result: Optional[ScoreResult] = None):
        self.attempt = attempt
        self.attempt_id = attempt.id
        self.user_id = attempt.user_id
        self.exam_id = attempt.exam_id
        self.started_at = as_utc(attempt.started_at)
        self.duration_seconds = exam.duration_seconds
        self.state = state
        self.result = result
        self.remaining_seconds = self.remaining_at(now)
        self._answers: Dict[int, Optional[str]] = {}
        self._closed = attempt.completed_at is not None

    @property
    def is_open(self) -> bool:
        return not self._closed

    @property
    def staged_answers(self) -> Dict[int, Optional[str]]:
        return dict(self._answers)

    def remaining_at(self, now: datetime) -> int:
        return max(0, self.duration_seconds - elapsed_seconds(self.started_at, now))

    def record_answer(self, position: int, choice: Optional[str]) -> None:
        if self._closed:
            raise AlreadyCompleted(self.attempt_id)
        self._answers.update(normalize_answers({position: choice}))

    def close(self, attempt: ExamAttemptModel, result: ScoreResult) -> None:
        self.attempt = attempt
        self.result = result
        self._closed = True

    def to_session(self) -> AttemptSession:
        return AttemptSession(
            attempt=ExamAttempt.model_validate(self.attempt),
            state=self.state,
            remaining_seconds=self.remaining_seconds,
            duration_seconds=self.duration_seconds,
            result=self.result,
        )


class ExamAttemptService:

    def _require_attempt_ownership(self, current_user_context: UserContext, attempt: ExamAttemptModel):
        if attempt.user_id != current_user_context.user.id:
            raise AttemptForbidden()

    def _require_attempt_view_permission(self, current_user_context: UserContext, attempt: ExamAttemptModel):
        if current_user_context.is_admin:
            return
        self._require_attempt_ownership(current_user_context, attempt)

    def _prior_summary(self, attempt: ExamAttemptModel) -> Dict[str, Any]:
        return PriorAttemptSummary(
            attempt_id=attempt.id,
            completed_at=as_utc(attempt.completed_at),
            final_score=attempt.final_score,
            percentage=attempt.percentage,
        ).model_dump(mode="json")

    def stored_result(self, attempt: ExamAttemptModel) -> Optional[ScoreResult]:
        if attempt.completed_at is None:
            return None
        return ScoreResult(
            total=attempt.correct_answers + attempt.incorrect_answers + attempt.blank_answers,
            correct=attempt.correct_answers,
            incorrect=attempt.incorrect_answers,
            blank=attempt.blank_answers,
            final_score=attempt.final_score or 0,
            percentage=attempt.percentage or 0,
            penalty_applied=attempt.penalty_applied or 0,
            has_penalty=bool(attempt.exam and attempt.exam.fator_correcao),
        )

    def start_or_resume(self, db: Session, exam_id: int, current_user_context: UserContext,
                        now: datetime) -> AttemptHandle:
        exam = exam_service.get_exam_or_404(db, exam_id)
        user_id = current_user_context.user.id
        try:
            exam_service.check_availability(exam, now)
        except ExamUnavailable:
            self._close_if_expired(db, exam, current_user_context, now)
            raise

        ongoing = crud_exam_attempt.get_in_progress(db, user_id=user_id, exam_id=exam_id)
        if ongoing:
            return self._resume(db, ongoing, exam, current_user_context, now)

        previous = crud_exam_attempt.get_latest_completed(db, user_id=user_id, exam_id=exam_id)
        if previous and not exam.allow_retake:
            logger.info(f"User {user_id} blocked from retaking exam {exam_id} (attempt {previous.id})")
            raise RetakeNotAllowed(self._prior_summary(previous))

        return self._create(db, exam, current_user_context, now)

    def _resume(self, db: Session, attempt: ExamAttemptModel, exam: ExamModel,
                current_user_context: UserContext, now: datetime) -> AttemptHandle:
        remaining = exam.duration_seconds - elapsed_seconds(attempt.started_at, now)
        if remaining > 0:
            logger.info(f"Attempt {attempt.id} resumed with {remaining}s remaining")
            return AttemptHandle(attempt, exam, AttemptSessionStateEnum.RESUMED, now)

        logger.info(f"Attempt {attempt.id} expired while away, finalizing")
        try:
            finalized = self.finalize(db, attempt.id, {}, current_user_context, now)
            result = finalized.result
        except AlreadyCompleted:
            db.expire_all()
            result = self.stored_result(crud_exam_attempt.get(db, id=attempt.id))

        attempt = crud_exam_attempt.get(db, id=attempt.id)
        return AttemptHandle(attempt, exam, AttemptSessionStateEnum.EXPIRED, now, result=result)

    def _close_if_expired(self, db: Session, exam: ExamModel, current_user_context: UserContext,
                          now: datetime) -> None:
        """Finalize a timed-out attempt even though the exam window has closed."""
        ongoing = crud_exam_attempt.get_in_progress(db, user_id=current_user_context.user.id, exam_id=exam.id)
        if ongoing and exam.duration_seconds - elapsed_seconds(ongoing.started_at, now) <= 0:
            self._resume(db, ongoing, exam, current_user_context, now)

    def _create(self, db: Session, exam: ExamModel, current_user_context: UserContext,
                now: datetime) -> AttemptHandle:
        if exam.total_questions == 0:
            raise InvalidInput("This exam has no questions yet.", {"exam_id": exam.id})

        user_id = current_user_context.user.id
        attempt_in = ExamAttemptCreate(
            user_id=user_id,
            exam_id=exam.id,
            started_at=now,
            total_questions=exam.total_questions,
        )
        try:
            attempt = crud_exam_attempt.create(db, obj_in=attempt_in)
        except IntegrityError:
            # Another request opened the attempt first; continue that one.
            db.rollback()
            winner = crud_exam_attempt.get_in_progress(db, user_id=user_id, exam_id=exam.id)
            if not winner:
                raise PersistenceFailure(PersistenceStageEnum.ATTEMPT_CREATE)
            logger.warning(f"Concurrent start for user {user_id} on exam {exam.id}, resuming attempt {winner.id}")
            return self._resume(db, winner, exam, current_user_context, now)
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Could not create attempt for user {user_id} on exam {exam.id}", exc_info=True)
            raise PersistenceFailure(PersistenceStageEnum.ATTEMPT_CREATE)

        logger.info(f"Attempt {attempt.id} started by user {user_id} on exam {exam.id}")
        return AttemptHandle(attempt, exam, AttemptSessionStateEnum.STARTED, now)

    def record_answer(self, handle: AttemptHandle, position: int, choice: Optional[str]) -> None:
        handle.record_answer(position, choice)

    def finalize(self, db: Session, attempt_id: int, answers: Any, current_user_context: UserContext,
                 now: datetime) -> ExamAttemptResult:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise AttemptNotFound(attempt_id)

        self._require_attempt_ownership(current_user_context, attempt)

        if attempt.completed_at is not None:
            raise AlreadyCompleted(attempt.id)

        exam = exam_service.get_exam_or_404(db, attempt.exam_id, include_inactive=True)
        questions = exam.questions
        staged = normalize_answers(answers)
        result = score_answers(staged, exam_service.answer_key(exam), exam.fator_correcao)

        attempt_update = ExamAttemptUpdate(
            completed_at=now,
            correct_answers=result.correct,
            incorrect_answers=result.incorrect,
            blank_answers=result.blank,
            final_score=result.final_score,
            percentage=result.percentage,
            penalty_applied=result.penalty_applied,
            time_spent_seconds=elapsed_seconds(attempt.started_at, now),
        )

        try:
            completed = crud_exam_attempt.complete_if_open(db, attempt_id=attempt.id, obj_in=attempt_update)
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Attempt {attempt.id}: score update failed", exc_info=True)
            raise PersistenceFailure(PersistenceStageEnum.ATTEMPT_UPDATE, attempt.id)

        if not completed:
            db.rollback()
            logger.warning(f"Attempt {attempt.id}: concurrent finalize lost the race")
            raise AlreadyCompleted(attempt.id)

        answers_in = [
            ExamAnswerCreate(
                attempt_id=attempt.id,
                question_id=question.id,
                user_answer=staged.get(position),
                correct_answer=question.gabarito,
                is_correct=is_correct(staged.get(position), question.gabarito),
                question_order=position,
            )
            for position, question in enumerate(questions, start=1)
        ]

        try:
            crud_exam_answer.bulk_create(db, answers_in=answers_in)
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Attempt {attempt.id}: answer rows failed, score update rolled back", exc_info=True)
            raise PersistenceFailure(PersistenceStageEnum.ANSWERS_INSERT, attempt.id)

        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Attempt {attempt.id}: commit failed", exc_info=True)
            raise PersistenceFailure(PersistenceStageEnum.COMMIT, attempt.id)

        db.refresh(attempt)
        logger.info(
            f"Attempt {attempt.id} finalized: {result.correct} correct, {result.incorrect} incorrect, "
            f"{result.blank} blank, score {result.final_score} ({result.percentage}%)"
        )
        return ExamAttemptResult(attempt=ExamAttempt.model_validate(attempt), result=result)

    def finalize_handle(self, db: Session, handle: AttemptHandle, current_user_context: UserContext,
                        now: datetime) -> ExamAttemptResult:
        if not handle.is_open:
            raise AlreadyCompleted(handle.attempt_id)
        finalized = self.finalize(db, handle.attempt_id, handle.staged_answers, current_user_context, now)
        handle.close(crud_exam_attempt.get(db, id=handle.attempt_id), finalized.result)
        return finalized

    def get_exam_attempt(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamAttemptDetails:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise AttemptNotFound(attempt_id)

        self._require_attempt_view_permission(current_user_context, attempt)

        answers = crud_exam_answer.get_all_by_attempt(db, attempt_id=attempt.id)
        return ExamAttemptDetails(
            attempt=ExamAttempt.model_validate(attempt),
            answers=[ExamAnswer.model_validate(answer) for answer in answers],
            result=self.stored_result(attempt),
        )

    def get_history(self, db: Session, exam_id: int, current_user_context: UserContext) -> AttemptHistory:
        exam_service.get_exam_or_404(db, exam_id, include_inactive=True)
        attempts = crud_exam_attempt.get_completed_by_user_and_exam(
            db, user_id=current_user_context.user.id, exam_id=exam_id
        )
        if not attempts:
            return AttemptHistory(exam_id=exam_id, total_attempts=0)

        percentages = [attempt.percentage or 0 for attempt in attempts]
        entries = []
        for index, attempt in enumerate(attempts):
            previous = attempts[index + 1] if index + 1 < len(attempts) else None
            delta = None
            if previous is not None:
                delta = (attempt.percentage or 0) - (previous.percentage or 0)
            entries.append(AttemptHistoryEntry(
                attempt=ExamAttempt.model_validate(attempt),
                percentage_delta=delta,
                is_latest=index == 0,
                is_first=previous is None,
            ))

        return AttemptHistory(
            exam_id=exam_id,
            total_attempts=len(attempts),
            average_percentage=round_half_up(Decimal(sum(percentages)) / Decimal(len(percentages))),
            best_percentage=max(percentages),
            attempts=entries,
        )


exam_attempt_service = ExamAttemptService()

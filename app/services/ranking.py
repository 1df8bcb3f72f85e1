"""Leaderboards over completed attempts.

Order: final score desc, percentage desc, time spent asc. Positions are
ordinal (1..n) even when entries tie on every key; ties keep the order the
rows were read in.
"""
import io
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from app.core.constants import RANKING_EXPORT_COLUMNS
from app.core.exceptions import RankingHidden
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.models.exam_attempt import ExamAttempt as ExamAttemptModel
from app.models.user import User as UserModel
from app.schemas.ranking import AdminRanking, AdminRankingEntry, Ranking, RankingEntry, RankingStats
from app.schemas.user import UserContext
from app.services.exam import exam_service
from app.utils.clock import as_utc

logger = logging.getLogger(__name__)

AttemptRow = Tuple[ExamAttemptModel, UserModel]


def ranking_sort_key(attempt: ExamAttemptModel):
    return (
        -(attempt.final_score or 0),
        -(attempt.percentage or 0),
        attempt.time_spent_seconds or 0,
    )


def order_attempts(rows: Iterable[AttemptRow]) -> List[AttemptRow]:
    # sorted() is stable, so equal keys keep their incoming order
    return sorted(rows, key=lambda row: ranking_sort_key(row[0]))


def summarize(attempts: Sequence[ExamAttemptModel]) -> RankingStats:
    if not attempts:
        return RankingStats()

    scores = [a.final_score or 0 for a in attempts]
    percentages = [a.percentage or 0 for a in attempts]
    times = [a.time_spent_seconds or 0 for a in attempts]
    count = len(attempts)
    return RankingStats(
        total_attempts=count,
        average_score=sum(scores) / count,
        average_percentage=sum(percentages) / count,
        average_time_seconds=sum(times) / count,
        best_score=max(scores),
        worst_score=min(scores),
    )


def format_duration(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes}min"
    return f"{minutes}min {secs}s"


class RankingService:

    def _ordered_rows(self, db: Session, exam_id: int) -> List[AttemptRow]:
        return order_attempts(crud_exam_attempt.get_completed_with_users(db, exam_id=exam_id))

    def _entry(self, position: int, attempt: ExamAttemptModel, user: UserModel,
               current_user_id: Optional[int]) -> RankingEntry:
        return RankingEntry(
            position=position,
            user_id=user.id,
            user_name=user.name or "Usuário",
            final_score=attempt.final_score or 0,
            percentage=attempt.percentage or 0,
            time_spent_seconds=attempt.time_spent_seconds or 0,
            completed_at=as_utc(attempt.completed_at),
            is_current_user=user.id == current_user_id,
        )

    def get_public_ranking(self, db: Session, exam_id: int, current_user_context: UserContext) -> Ranking:
        exam = exam_service.get_exam_or_404(db, exam_id)
        if not exam.show_ranking:
            raise RankingHidden(exam_id)

        rows = self._ordered_rows(db, exam_id)
        current_user_id = current_user_context.user.id
        entries = [
            self._entry(position, attempt, user, current_user_id)
            for position, (attempt, user) in enumerate(rows, start=1)
        ]
        current_user_entry = next((e for e in entries if e.is_current_user), None)
        logger.debug(f"Public ranking for exam {exam_id}: {len(entries)} entries")
        return Ranking(
            exam_id=exam_id,
            entries=entries,
            stats=summarize([attempt for attempt, _ in rows]),
            current_user_entry=current_user_entry,
        )

    def get_admin_ranking(self, db: Session, exam_id: int) -> AdminRanking:
        exam_service.get_exam_or_404(db, exam_id, include_inactive=True)
        rows = self._ordered_rows(db, exam_id)
        entries = [
            AdminRankingEntry(
                **self._entry(position, attempt, user, None).model_dump(exclude={"is_current_user"}),
                attempt_id=attempt.id,
                user_email=user.email,
                correct_answers=attempt.correct_answers,
                incorrect_answers=attempt.incorrect_answers,
                blank_answers=attempt.blank_answers,
                penalty_applied=attempt.penalty_applied or 0,
            )
            for position, (attempt, user) in enumerate(rows, start=1)
        ]
        return AdminRanking(exam_id=exam_id, entries=entries, stats=summarize([a for a, _ in rows]))

    def export_admin_ranking_csv(self, db: Session, exam_id: int) -> str:
        ranking = self.get_admin_ranking(db, exam_id)
        records = [
            [
                entry.position,
                entry.user_name,
                entry.user_email,
                entry.final_score,
                f"{entry.percentage}%",
                entry.correct_answers,
                entry.incorrect_answers,
                entry.blank_answers,
                entry.penalty_applied,
                format_duration(entry.time_spent_seconds),
                entry.completed_at.strftime("%d/%m/%Y %H:%M"),
            ]
            for entry in ranking.entries
        ]
        df = pd.DataFrame(records, columns=RANKING_EXPORT_COLUMNS)
        buffer = io.StringIO()
        df.to_csv(buffer, index=False)
        logger.info(f"Ranking export for exam {exam_id}: {len(records)} rows")
        return buffer.getvalue()


ranking_service = RankingService()

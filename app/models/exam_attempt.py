from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ExamAttemptStatusEnum

class ExamAttempt(Base):
    __tablename__ = "exam_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False, default=0)
    incorrect_answers = Column(Integer, nullable=False, default=0)
    blank_answers = Column(Integer, nullable=False, default=0)
    final_score = Column(Integer, nullable=True)
    percentage = Column(Integer, nullable=True)
    penalty_applied = Column(Integer, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="exam_attempts")
    exam = relationship("Exam", back_populates="attempts")
    answers = relationship(
        "ExamAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="ExamAnswer.question_order"
    )

    __table_args__ = (
        # One open attempt per (user, exam)
        Index(
            "uq_exam_attempts_in_progress",
            "user_id",
            "exam_id",
            unique=True,
            postgresql_where=completed_at.is_(None),
            sqlite_where=completed_at.is_(None),
        ),
        Index("ix_exam_attempts_exam_completed", "exam_id", "completed_at"),
    )

    @property
    def status(self) -> ExamAttemptStatusEnum:
        if self.completed_at is None:
            return ExamAttemptStatusEnum.IN_PROGRESS
        return ExamAttemptStatusEnum.COMPLETED


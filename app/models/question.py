from sqlalchemy import Column, Integer, String, DateTime, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import QuestionTypeEnum

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    question_type = Column(Enum(QuestionTypeEnum), nullable=False, default=QuestionTypeEnum.MULTIPLE_CHOICE)
    alternativas = Column(JSON, nullable=True) # Choices for multiple choice, null for true/false
    gabarito = Column(String, nullable=False) # Answer key: a letter, or "C"/"E"
    disciplina = Column(String, nullable=True)
    banca = Column(String, nullable=True)
    ano = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exam_links = relationship("ExamQuestion", back_populates="question", cascade="all, delete-orphan")

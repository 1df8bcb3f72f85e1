from typing import List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.schemas.exam import Exam, ExamCreate, ExamQuestionsUpdate
from app.schemas.exam_attempt import ExamAttempt
from app.schemas.question import Question, QuestionCreate
from app.schemas.ranking import AdminRanking
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.services.exam import exam_service
from app.services.ranking import ranking_service
from app.utils import deps

router = APIRouter(dependencies=[Depends(deps.require_admin)])


@router.post("/questions", response_model=APIResponse[Question], status_code=status.HTTP_201_CREATED)
async def create_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    question_in: QuestionCreate
):
    question = exam_service.create_question(db, question_in=question_in)
    return APIResponse(message="Question created successfully", data=Question.model_validate(question))


@router.post("/exams", response_model=APIResponse[Exam], status_code=status.HTTP_201_CREATED)
async def create_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_in: ExamCreate,
    context: UserContext = Depends(deps.require_admin)
):
    exam = exam_service.create_exam(db, exam_in=exam_in, current_user_context=context)
    return APIResponse(message="Exam created successfully", data=exam_service.to_schema(exam))


@router.put("/exams/{exam_id}/questions", response_model=APIResponse[Exam])
async def set_exam_questions(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    questions_in: ExamQuestionsUpdate
):
    exam = exam_service.set_exam_questions(db, exam_id=exam_id, questions_in=questions_in)
    return APIResponse(message="Exam questions updated successfully", data=exam_service.to_schema(exam))


@router.get("/exams/{exam_id}/ranking", response_model=APIResponse[AdminRanking])
async def get_admin_ranking(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    ranking = ranking_service.get_admin_ranking(db, exam_id=exam_id)
    return APIResponse(message="Ranking retrieved successfully", data=ranking)


@router.get("/exams/{exam_id}/ranking/export")
async def export_admin_ranking(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    content = ranking_service.export_admin_ranking_csv(db, exam_id=exam_id)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="ranking_simulado_{exam_id}.csv"'}
    )


@router.get("/attempts/inconsistent", response_model=APIResponse[List[ExamAttempt]])
async def get_inconsistent_attempts(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: Optional[int] = None
):
    attempts = crud_exam_attempt.get_completed_without_answers(db, exam_id=exam_id)
    return APIResponse(
        message="Completed attempts without answer rows",
        data=[ExamAttempt.model_validate(a) for a in attempts]
    )

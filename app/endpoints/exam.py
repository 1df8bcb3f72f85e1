from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.constants import AttemptSessionStateEnum
from app.schemas.response import APIResponse
from app.utils import deps
from app.utils.clock import Clock
from app.schemas.exam import Exam, ExamSummary
from app.schemas.exam_attempt import AttemptHistory, AttemptSession, ExamAttemptDetails, ExamAttemptResult, FinalizeRequest
from app.schemas.ranking import Ranking
from app.schemas.user import UserContext
from app.services.exam import exam_service
from app.services.exam_attempt import exam_attempt_service
from app.services.ranking import ranking_service

router = APIRouter()


@router.get("/", response_model=APIResponse[List[ExamSummary]])
async def get_all_exams(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    clock: Clock = Depends(deps.get_clock),
    skip: int = 0,
    limit: int = 100
):
    exams = exam_service.list_exams(db, current_user_context=context, now=clock(), skip=skip, limit=limit)
    return APIResponse(message="Exams retrieved successfully", data=exams)


@router.get("/{exam_id}", response_model=APIResponse[Exam])
async def get_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    exam = exam_service.get_exam(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Exam retrieved successfully", data=exam)


# Exam Attempt Endpoints
@router.post("/{exam_id}/attempts", response_model=APIResponse[AttemptSession], status_code=status.HTTP_201_CREATED)
async def start_exam_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    response: Response,
    context: UserContext = Depends(deps.get_current_user_with_context),
    clock: Clock = Depends(deps.get_clock)
):
    handle = exam_attempt_service.start_or_resume(db, exam_id=exam_id, current_user_context=context, now=clock())
    messages = {
        AttemptSessionStateEnum.STARTED: "Exam attempt started successfully",
        AttemptSessionStateEnum.RESUMED: "Exam attempt resumed",
        AttemptSessionStateEnum.EXPIRED: "Exam time is over, attempt finalized",
    }
    if handle.state != AttemptSessionStateEnum.STARTED:
        response.status_code = status.HTTP_200_OK
    return APIResponse(message=messages[handle.state], data=handle.to_session())


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[ExamAttemptResult])
async def submit_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    submission: FinalizeRequest,
    context: UserContext = Depends(deps.get_current_user_with_context),
    clock: Clock = Depends(deps.get_clock)
):
    result = exam_attempt_service.finalize(
        db,
        attempt_id=attempt_id,
        answers=submission.answers,
        current_user_context=context,
        now=clock()
    )
    return APIResponse(message="Exam submitted successfully", data=result)


@router.get("/attempts/{attempt_id}", response_model=APIResponse[ExamAttemptDetails])
async def get_exam_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    details = exam_attempt_service.get_exam_attempt(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam attempt retrieved successfully", data=details)


@router.get("/{exam_id}/history", response_model=APIResponse[AttemptHistory])
async def get_attempt_history(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    history = exam_attempt_service.get_history(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Attempt history retrieved successfully", data=history)


@router.get("/{exam_id}/ranking", response_model=APIResponse[Ranking])
async def get_exam_ranking(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    ranking = ranking_service.get_public_ranking(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Ranking retrieved successfully", data=ranking)

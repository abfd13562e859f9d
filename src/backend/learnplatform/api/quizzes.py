"""
Quiz API routes
Submitting attempts and reading the caller's attempt history
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, StrictInt
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from learnplatform.core.database import get_db
from learnplatform.core.errors import to_http_exception
from learnplatform.core.security import get_current_user
from learnplatform.models import User
from learnplatform.services.quiz_service import QuizService


router = APIRouter(prefix="/quizzes", tags=["quizzes"])


# Schemas
class AttemptRequest(BaseModel):
    """Submitted answers: option index per question, in question order"""
    answers: List[Optional[StrictInt]] = Field(default_factory=list)


class QuizAttemptResponse(BaseModel):
    """Stored quiz attempt"""
    id: str
    user_id: str
    quiz_id: str
    score: int
    answers: List[str]
    passed: bool
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class GradedAttemptResponse(QuizAttemptResponse):
    """Attempt plus grading summary"""
    correct_count: int
    total_questions: int
    passing_score: int
    xp_awarded: int


# Endpoints
@router.post("/{quiz_id}/submit", response_model=GradedAttemptResponse, status_code=status.HTTP_201_CREATED)
async def submit_quiz(
    quiz_id: str,
    request: AttemptRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Grade and record an attempt"""
    try:
        return QuizService.submit_attempt(db, user.id, quiz_id, request.answers)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/{quiz_id}/attempt", response_model=GradedAttemptResponse, status_code=status.HTTP_201_CREATED)
async def submit_quiz_attempt(
    quiz_id: str,
    request: AttemptRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Same as /submit"""
    try:
        return QuizService.submit_attempt(db, user.id, quiz_id, request.answers)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{quiz_id}/my-attempt", response_model=Optional[QuizAttemptResponse])
async def get_my_best_attempt(
    quiz_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Best attempt of the caller, null when none"""
    return QuizService.get_best_attempt(db, user.id, quiz_id)


@router.get("/{quiz_id}/attempts", response_model=dict)
async def list_my_attempts(
    quiz_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All attempts of the caller, newest first, plus whether any passed"""
    attempts = QuizService.list_attempts(db, user.id, quiz_id)
    return {
        "has_passed": any(a.passed for a in attempts),
        "attempts": [QuizAttemptResponse.model_validate(a).model_dump() for a in attempts],
    }

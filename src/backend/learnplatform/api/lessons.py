"""
Lesson API routes
Lesson completion and the learner view of a lesson's quiz
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnplatform.core.database import get_db
from learnplatform.core.errors import to_http_exception
from learnplatform.core.security import get_current_user
from learnplatform.models import User
from learnplatform.services.lesson_service import LessonService
from learnplatform.services.quiz_service import QuizService


router = APIRouter(prefix="/lessons", tags=["lessons"])


# Schemas
class LessonCompleteResponse(BaseModel):
    """Lesson completion result"""
    lesson_id: str
    is_completed: bool
    completed_at: Optional[datetime]
    xp_awarded: int
    xp: Optional[int]
    level: Optional[int]


class LearnerQuestion(BaseModel):
    """Question without its correct answer"""
    id: str
    question: str
    options: List[str]
    sort_order: int


class LearnerQuizResponse(BaseModel):
    """Quiz as a learner sees it"""
    id: str
    lesson_id: str
    title: str
    description: Optional[str]
    passing_score: int
    xp_reward: int
    questions: List[LearnerQuestion]


# Endpoints
@router.post("/{lesson_id}/complete", response_model=LessonCompleteResponse)
async def complete_lesson(
    lesson_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark a lesson completed"""
    try:
        return LessonService.complete_lesson(db, user.id, lesson_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{lesson_id}/quiz", response_model=Optional[LearnerQuizResponse])
async def get_lesson_quiz(
    lesson_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Published quiz of a lesson, null when there is none to take"""
    try:
        return QuizService.get_learner_quiz(db, user.id, lesson_id)
    except ValueError as e:
        raise to_http_exception(e)

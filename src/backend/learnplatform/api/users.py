"""
User API routes
The caller's profile, progression and history, plus the leaderboard
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from learnplatform.api.auth import UserResponse
from learnplatform.api.courses import EnrollmentResponse
from learnplatform.api.labs import LabSubmissionResponse
from learnplatform.core.config import get_settings
from learnplatform.core.database import get_db
from learnplatform.core.security import get_current_user
from learnplatform.models import User
from learnplatform.services.enrollment_service import EnrollmentService
from learnplatform.services.lab_service import LabService
from learnplatform.services.lesson_service import LessonService
from learnplatform.services.progression_service import ProgressionService
from learnplatform.services.user_service import UserService


router = APIRouter(tags=["users"])


# Schemas
class ProgressionResponse(BaseModel):
    """Level position of the caller"""
    level: int
    xp: int
    points: int
    xp_into_level: int
    xp_for_next_level: int
    percent: float


class LessonProgressResponse(BaseModel):
    """Lesson progress row"""
    id: str
    lesson_id: str
    is_completed: bool
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    """Leaderboard row"""
    id: str
    username: str
    name: str
    avatar: Optional[str]
    level: int
    xp: int
    points: int

    class Config:
        from_attributes = True


# Endpoints
@router.get("/users/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """Profile of the caller"""
    return user


@router.get("/users/me/progression", response_model=ProgressionResponse)
async def get_my_progression(user: User = Depends(get_current_user)):
    """xp, points and position inside the current level"""
    progress = ProgressionService.level_progress(user.xp)
    return ProgressionResponse(points=user.points, **progress)


@router.get("/users/me/enrollments", response_model=List[EnrollmentResponse])
async def get_my_enrollments(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return EnrollmentService.list_user_enrollments(db, user.id)


@router.get("/users/me/lesson-progress", response_model=List[LessonProgressResponse])
async def get_my_lesson_progress(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return LessonService.list_user_lesson_progress(db, user.id)


@router.get("/users/me/lab-submissions", response_model=List[LabSubmissionResponse])
async def get_my_lab_submissions(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return LabService.list_user_submissions(db, user.id)


@router.get("/users/me/completed-labs-count", response_model=dict)
async def get_my_completed_labs_count(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Number of approved lab submissions"""
    return {"count": LabService.count_completed_labs(db, user.id)}


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Students ranked by points"""
    return UserService.get_leaderboard(db, limit or get_settings().leaderboard_default_limit)

"""
Course API routes
Enrollment requests and gated course content
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from learnplatform.core.database import get_db
from learnplatform.core.errors import to_http_exception
from learnplatform.core.security import get_current_user
from learnplatform.models import User
from learnplatform.services.enrollment_service import EnrollmentService


router = APIRouter(prefix="/courses", tags=["courses"])


# Schemas
class EnrollRequest(BaseModel):
    """Enrollment request with offline payment details"""
    payment_method: str = Field(..., description="cliq | paypal")
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=100)
    contact_phone: Optional[str] = Field(None, max_length=30)


class EnrollmentResponse(BaseModel):
    """Enrollment"""
    id: str
    user_id: str
    course_id: str
    status: str
    payment_method: Optional[str]
    contact_name: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    progress: int
    is_completed: bool
    enrolled_at: Optional[datetime]
    reviewed_at: Optional[datetime]
    reviewed_by: Optional[str]

    class Config:
        from_attributes = True


class LessonContent(BaseModel):
    """Lesson as served inside course content"""
    id: str
    section_id: Optional[str]
    title: str
    description: Optional[str]
    content: Optional[str]
    video_url: Optional[str]
    lab_id: Optional[str]
    duration: int
    sort_order: int
    xp_reward: int


class SectionContent(BaseModel):
    """Course section with its lessons"""
    id: str
    title: str
    description: Optional[str]
    sort_order: int
    lessons: List[LessonContent]


class CourseContentResponse(BaseModel):
    """Full course content"""
    id: str
    title: str
    description: Optional[str]
    image: Optional[str]
    category: Optional[str]
    level: Optional[str]
    instructor_id: Optional[str]
    sections: List[SectionContent]
    unsectioned_lessons: List[LessonContent]


# Endpoints
@router.post("/{course_id}/enroll", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    course_id: str,
    request: EnrollRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Request enrollment; stays pending until an admin confirms the payment"""
    try:
        return EnrollmentService.request_enrollment(
            db,
            user_id=user.id,
            course_id=course_id,
            payment_method=request.payment_method,
            contact_name=request.contact_name,
            contact_email=request.contact_email,
            contact_phone=request.contact_phone
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{course_id}/content", response_model=CourseContentResponse)
async def get_course_content(
    course_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Sections and lessons; requires an approved enrollment"""
    try:
        return EnrollmentService.get_course_content(db, user.id, course_id)
    except ValueError as e:
        raise to_http_exception(e)

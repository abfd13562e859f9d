"""
Admin API routes
Enrollment decisions, lab submission review and the quiz / lab section catalog

Review of lab submissions is open to instructors as well; everything else is admin only.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from learnplatform.api.courses import EnrollmentResponse
from learnplatform.api.labs import LabSectionResponse, LabSubmissionResponse
from learnplatform.core.database import get_db
from learnplatform.core.errors import MESSAGES, to_http_exception
from learnplatform.core.security import require_admin, require_reviewer
from learnplatform.models import User
from learnplatform.models.lab import SUBMISSION_APPROVED, SUBMISSION_REJECTED
from learnplatform.services.enrollment_service import EnrollmentService
from learnplatform.services.lab_service import LabService
from learnplatform.services.quiz_service import QuizService
from learnplatform.services.user_service import UserService


router = APIRouter(prefix="/admin", tags=["admin"])


# Schemas
class ReviewRequest(BaseModel):
    """Reviewer notes"""
    notes: Optional[str] = None


class QuizCreateRequest(BaseModel):
    """Create the quiz of a lesson"""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    xp_reward: Optional[int] = Field(None, ge=0)
    is_published: bool = False


class QuizUpdateRequest(BaseModel):
    """Partial quiz update"""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    xp_reward: Optional[int] = Field(None, ge=0)
    is_published: Optional[bool] = None


class QuizResponse(BaseModel):
    """Quiz without questions"""
    id: str
    lesson_id: str
    title: str
    description: Optional[str]
    passing_score: int
    xp_reward: int
    is_published: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class QuestionCreateRequest(BaseModel):
    """New question"""
    question: str = Field(..., min_length=1)
    options: List[str]
    correct_answer: int
    sort_order: int = 0


class QuestionUpdateRequest(BaseModel):
    """Partial question update"""
    question: Optional[str] = Field(None, min_length=1)
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = None
    sort_order: Optional[int] = None


class QuestionResponse(BaseModel):
    """Question with its correct answer"""
    id: str
    quiz_id: str
    question: str
    options: List[str]
    correct_answer: int
    sort_order: int

    class Config:
        from_attributes = True


class LabSectionCreateRequest(BaseModel):
    """New lab section"""
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str] = None
    instructions: Optional[str] = None
    sort_order: int = 0


# ==================== enrollments ====================

@router.get("/enrollments/pending", response_model=List[EnrollmentResponse])
async def list_pending_enrollments(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return EnrollmentService.list_pending_enrollments(db)


@router.post("/enrollments/{enrollment_id}/approve", response_model=EnrollmentResponse)
async def approve_enrollment(
    enrollment_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Confirm the payment and open the course"""
    try:
        return EnrollmentService.approve_enrollment(db, enrollment_id, admin.id)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/enrollments/{enrollment_id}/reject", response_model=EnrollmentResponse)
async def reject_enrollment(
    enrollment_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return EnrollmentService.reject_enrollment(db, enrollment_id, admin.id)
    except ValueError as e:
        raise to_http_exception(e)


# ==================== lab submissions ====================

@router.get("/lab-submissions", response_model=List[dict])
async def list_lab_submissions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All submissions with user and lab summaries"""
    return LabService.list_all_submissions(db)


@router.get("/lab-submissions/pending", response_model=List[dict])
async def list_pending_lab_submissions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return LabService.list_pending_submissions(db)


@router.post("/lab-submissions/{submission_id}/approve", response_model=LabSubmissionResponse)
async def approve_lab_submission(
    submission_id: str,
    request: Optional[ReviewRequest] = None,
    reviewer: User = Depends(require_reviewer),
    db: Session = Depends(get_db)
):
    try:
        return LabService.review_submission(
            db, submission_id, reviewer.id, SUBMISSION_APPROVED, request.notes if request else None
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/lab-submissions/{submission_id}/reject", response_model=LabSubmissionResponse)
async def reject_lab_submission(
    submission_id: str,
    request: Optional[ReviewRequest] = None,
    reviewer: User = Depends(require_reviewer),
    db: Session = Depends(get_db)
):
    try:
        return LabService.review_submission(
            db, submission_id, reviewer.id, SUBMISSION_REJECTED, request.notes if request else None
        )
    except ValueError as e:
        raise to_http_exception(e)


# ==================== quizzes ====================

@router.get("/courses/{course_id}/quizzes", response_model=List[QuizResponse])
async def list_course_quizzes(
    course_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return QuizService.list_quizzes_by_course(db, course_id)


@router.get("/quizzes/{quiz_id}", response_model=dict)
async def get_quiz(
    quiz_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Quiz with questions and correct answers"""
    try:
        return QuizService.get_quiz_with_answers(db, quiz_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/lessons/{lesson_id}/quiz", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    lesson_id: str,
    request: QuizCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return QuizService.create_quiz(
            db,
            lesson_id=lesson_id,
            title=request.title,
            description=request.description,
            passing_score=request.passing_score,
            xp_reward=request.xp_reward,
            is_published=request.is_published
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.patch("/quizzes/{quiz_id}", response_model=QuizResponse)
async def update_quiz(
    quiz_id: str,
    request: QuizUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return QuizService.update_quiz(db, quiz_id, **request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise to_http_exception(e)


@router.delete("/quizzes/{quiz_id}")
async def delete_quiz(
    quiz_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a quiz with its questions and attempts"""
    if not QuizService.delete_quiz(db, quiz_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MESSAGES["quiz_not_found"])
    return {"success": True}


@router.post("/quizzes/{quiz_id}/questions", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def add_question(
    quiz_id: str,
    request: QuestionCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return QuizService.add_question(
            db,
            quiz_id=quiz_id,
            question=request.question,
            options=request.options,
            correct_answer=request.correct_answer,
            sort_order=request.sort_order
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.patch("/questions/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: str,
    request: QuestionUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return QuizService.update_question(db, question_id, **request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise to_http_exception(e)


@router.delete("/questions/{question_id}")
async def delete_question(
    question_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if not QuizService.delete_question(db, question_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MESSAGES["question_not_found"])
    return {"success": True}


# ==================== lab sections ====================

@router.get("/labs/{lab_id}/sections", response_model=List[LabSectionResponse])
async def list_lab_sections(
    lab_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return LabService.list_sections(db, lab_id)


@router.post("/labs/{lab_id}/sections", response_model=LabSectionResponse, status_code=status.HTTP_201_CREATED)
async def create_lab_section(
    lab_id: str,
    request: LabSectionCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return LabService.create_section(
            db,
            lab_id=lab_id,
            title=request.title,
            content=request.content,
            instructions=request.instructions,
            sort_order=request.sort_order
        )
    except ValueError as e:
        raise to_http_exception(e)


# ==================== users ====================

@router.post("/users/{user_id}/deactivate")
async def deactivate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Soft-deactivate an account"""
    if not UserService.deactivate_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MESSAGES["user_not_found"])
    return {"success": True}

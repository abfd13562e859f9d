"""
Lab API routes
Learner side of labs: progress, section and whole-lab submissions
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
from learnplatform.services.lab_service import LabService


router = APIRouter(prefix="/labs", tags=["labs"])


# Schemas
class SubmissionRequest(BaseModel):
    """Lab / section submission"""
    screenshot_url: Optional[str] = Field(None, max_length=500)
    details: Optional[str] = None
    time_spent: int = Field(0, ge=0)


class LabSubmissionResponse(BaseModel):
    """Lab submission"""
    id: str
    user_id: str
    lab_id: str
    section_id: Optional[str]
    screenshot_url: Optional[str]
    details: Optional[str]
    time_spent: int
    status: str
    submitted_at: Optional[datetime]
    reviewed_at: Optional[datetime]
    reviewed_by: Optional[str]
    review_notes: Optional[str]

    class Config:
        from_attributes = True


class LabProgressResponse(BaseModel):
    """Learner progress in a lab"""
    id: str
    user_id: str
    lab_id: str
    progress: int
    is_completed: bool
    started_at: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class LabSectionResponse(BaseModel):
    """Lab section"""
    id: str
    lab_id: str
    title: str
    content: Optional[str]
    instructions: Optional[str]
    sort_order: int

    class Config:
        from_attributes = True


# Endpoints
@router.post("/{lab_id}/start", response_model=LabProgressResponse)
async def start_lab(
    lab_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Start a lab (idempotent)"""
    try:
        return LabService.start_lab(db, user.id, lab_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{lab_id}/progress", response_model=Optional[LabProgressResponse])
async def get_lab_progress(
    lab_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Progress of the caller in a lab, null when not started"""
    return LabService.get_lab_progress(db, user.id, lab_id)


@router.get("/{lab_id}/sections", response_model=List[LabSectionResponse])
async def list_lab_sections(
    lab_id: str,
    db: Session = Depends(get_db)
):
    """Ordered sections of a lab"""
    return LabService.list_sections(db, lab_id)


@router.post("/{lab_id}/sections/{section_id}/submit", response_model=LabSubmissionResponse,
             status_code=status.HTTP_201_CREATED)
async def submit_section(
    lab_id: str,
    section_id: str,
    request: SubmissionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit one section for review"""
    try:
        return LabService.submit_section(
            db,
            user_id=user.id,
            lab_id=lab_id,
            section_id=section_id,
            screenshot_url=request.screenshot_url,
            details=request.details,
            time_spent=request.time_spent
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/{lab_id}/submit", response_model=LabSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_lab(
    lab_id: str,
    request: SubmissionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit the whole lab; completes it and awards its xp"""
    try:
        return LabService.submit_lab(
            db,
            user_id=user.id,
            lab_id=lab_id,
            screenshot_url=request.screenshot_url,
            details=request.details,
            time_spent=request.time_spent
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{lab_id}/my-submissions", response_model=List[LabSubmissionResponse])
async def my_lab_submissions(
    lab_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's submissions for a lab, newest first"""
    return LabService.list_user_lab_submissions(db, user.id, lab_id)


@router.get("/{lab_id}/status", response_model=dict)
async def get_lab_status(
    lab_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current submission per section and whether the lab can be completed"""
    try:
        return LabService.get_lab_status(db, user.id, lab_id)
    except ValueError as e:
        raise to_http_exception(e)

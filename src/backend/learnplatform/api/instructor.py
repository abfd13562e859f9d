"""
Instructor API routes
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnplatform.core.database import get_db
from learnplatform.core.security import require_reviewer
from learnplatform.models import User
from learnplatform.services.lab_service import LabService


router = APIRouter(prefix="/instructor", tags=["instructor"])


@router.get("/lab-submissions", response_model=List[dict])
async def list_my_students_submissions(
    instructor: User = Depends(require_reviewer),
    db: Session = Depends(get_db)
):
    """Submissions for labs linked from the caller's course lessons"""
    return LabService.list_instructor_submissions(db, instructor.id)

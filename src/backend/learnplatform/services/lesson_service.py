"""
Lesson completion
"""
import logging
import uuid
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from learnplatform.core.errors import MESSAGES, NotFoundError
from learnplatform.models import Lesson, LessonProgress
from learnplatform.services.enrollment_service import EnrollmentService
from learnplatform.services.progression_service import ProgressionService

logger = logging.getLogger(__name__)


class LessonService:
    """Lesson service"""

    @staticmethod
    def complete_lesson(db: Session, user_id: str, lesson_id: str) -> dict:
        """
        Mark a lesson completed and award its xp

        The xp award runs on every call, including repeats for an already completed lesson.

        Args:
            db: database session
            user_id: learner id
            lesson_id: lesson id

        Returns:
            dict: progress row, xp_awarded and the learner's xp/level afterwards

        Raises:
            NotFoundError: lesson does not exist
            ForbiddenError: no approved enrollment in the lesson's course
        """
        lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
        if not lesson:
            raise NotFoundError(MESSAGES["lesson_not_found"])

        EnrollmentService.ensure_content_access(db, user_id, lesson.course_id)

        progress = db.query(LessonProgress).filter(
            LessonProgress.user_id == user_id,
            LessonProgress.lesson_id == lesson_id
        ).first()

        now = datetime.utcnow()
        if progress:
            progress.is_completed = True
            progress.completed_at = now
        else:
            progress = LessonProgress(
                id=str(uuid.uuid4()),
                user_id=user_id,
                lesson_id=lesson_id,
                is_completed=True,
                completed_at=now
            )
            db.add(progress)
        db.commit()
        db.refresh(progress)

        xp_awarded = 0
        user = None
        if lesson.xp_reward and lesson.xp_reward > 0:
            user = ProgressionService.award_xp(db, user_id, lesson.xp_reward)
            if user:
                xp_awarded = lesson.xp_reward

        logger.info(f"Lesson completed: user={user_id}, lesson={lesson_id}, xp_awarded={xp_awarded}")

        return {
            "lesson_id": lesson_id,
            "is_completed": progress.is_completed,
            "completed_at": progress.completed_at,
            "xp_awarded": xp_awarded,
            "xp": user.xp if user else None,
            "level": user.level if user else None,
        }

    @staticmethod
    def list_user_lesson_progress(db: Session, user_id: str) -> List[LessonProgress]:
        return db.query(LessonProgress).filter(
            LessonProgress.user_id == user_id
        ).order_by(LessonProgress.completed_at.desc()).all()

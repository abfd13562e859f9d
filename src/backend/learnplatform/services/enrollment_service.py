"""
Enrollment service
Offline-payment enrollment workflow and the content gate built on it
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from learnplatform.core.errors import MESSAGES, BadRequestError, ForbiddenError, NotFoundError
from learnplatform.models import Course, CourseSection, Enrollment, Lesson
from learnplatform.models.enrollment import (
    ENROLLMENT_APPROVED,
    ENROLLMENT_PENDING,
    ENROLLMENT_REJECTED,
    PAYMENT_METHODS,
)

logger = logging.getLogger(__name__)


def _lesson_dict(lesson: Lesson) -> dict:
    return {
        "id": lesson.id,
        "section_id": lesson.section_id,
        "title": lesson.title,
        "description": lesson.description,
        "content": lesson.content,
        "video_url": lesson.video_url,
        "lab_id": lesson.lab_id,
        "duration": lesson.duration,
        "sort_order": lesson.sort_order,
        "xp_reward": lesson.xp_reward,
    }


class EnrollmentService:
    """Enrollment service"""

    @staticmethod
    def get_enrollment(db: Session, user_id: str, course_id: str) -> Optional[Enrollment]:
        return db.query(Enrollment).filter(
            Enrollment.user_id == user_id,
            Enrollment.course_id == course_id
        ).first()

    @staticmethod
    def has_content_access(db: Session, user_id: str, course_id: str) -> bool:
        """
        Content gate: only an approved enrollment opens a course

        No enrollment, pending or rejected all mean no access.
        """
        enrollment = EnrollmentService.get_enrollment(db, user_id, course_id)
        return enrollment is not None and enrollment.status == ENROLLMENT_APPROVED

    @staticmethod
    def ensure_content_access(db: Session, user_id: str, course_id: str) -> None:
        """
        Raises:
            ForbiddenError: the gate is closed for this user and course
        """
        if not EnrollmentService.has_content_access(db, user_id, course_id):
            raise ForbiddenError(MESSAGES["enrollment_required"])

    @staticmethod
    def request_enrollment(
        db: Session,
        user_id: str,
        course_id: str,
        payment_method: str,
        contact_name: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None
    ) -> Enrollment:
        """
        File a pending enrollment request

        Args:
            db: database session
            user_id: learner id
            course_id: course id
            payment_method: cliq | paypal
            contact_name / contact_email / contact_phone: how the admin reaches the learner

        Returns:
            Enrollment: the pending request

        Raises:
            NotFoundError: course does not exist
            BadRequestError: bad payment method or already enrolled
        """
        course = db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFoundError(MESSAGES["course_not_found"])

        if payment_method not in PAYMENT_METHODS:
            raise BadRequestError(MESSAGES["invalid_payment_method"])

        if EnrollmentService.get_enrollment(db, user_id, course_id):
            raise BadRequestError(MESSAGES["already_enrolled"])

        enrollment = Enrollment(
            id=str(uuid.uuid4()),
            user_id=user_id,
            course_id=course_id,
            status=ENROLLMENT_PENDING,
            payment_method=payment_method,
            contact_name=contact_name,
            contact_email=contact_email,
            contact_phone=contact_phone,
            enrolled_at=datetime.utcnow()
        )
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
        logger.info(f"Enrollment requested: user={user_id}, course={course_id}, payment={payment_method}")
        return enrollment

    @staticmethod
    def approve_enrollment(db: Session, enrollment_id: str, reviewer_id: str) -> Enrollment:
        """
        Approve a request and bump the course's student count

        Approving an already approved enrollment leaves the count as it is.

        Raises:
            NotFoundError: enrollment does not exist
        """
        enrollment, previous = EnrollmentService._review(db, enrollment_id, reviewer_id, ENROLLMENT_APPROVED)

        if previous != ENROLLMENT_APPROVED:
            db.query(Course).filter(Course.id == enrollment.course_id).update(
                {Course.students_count: Course.students_count + 1},
                synchronize_session=False,
            )
        db.commit()
        db.refresh(enrollment)
        return enrollment

    @staticmethod
    def reject_enrollment(db: Session, enrollment_id: str, reviewer_id: str) -> Enrollment:
        """
        Rejecting a previously approved enrollment takes the student off the course count.

        Raises:
            NotFoundError: enrollment does not exist
        """
        enrollment, previous = EnrollmentService._review(db, enrollment_id, reviewer_id, ENROLLMENT_REJECTED)

        if previous == ENROLLMENT_APPROVED:
            db.query(Course).filter(
                Course.id == enrollment.course_id,
                Course.students_count > 0
            ).update(
                {Course.students_count: Course.students_count - 1},
                synchronize_session=False,
            )
        db.commit()
        db.refresh(enrollment)
        return enrollment

    @staticmethod
    def _review(db: Session, enrollment_id: str, reviewer_id: str, status: str) -> Tuple[Enrollment, str]:
        enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
        if not enrollment:
            raise NotFoundError(MESSAGES["enrollment_not_found"])

        previous = enrollment.status
        enrollment.status = status
        enrollment.reviewed_by = reviewer_id
        enrollment.reviewed_at = datetime.utcnow()
        logger.info(f"Enrollment {status}: id={enrollment_id}, reviewer={reviewer_id}, was={previous}")
        return enrollment, previous

    @staticmethod
    def list_pending_enrollments(db: Session) -> List[Enrollment]:
        return db.query(Enrollment).filter(
            Enrollment.status == ENROLLMENT_PENDING
        ).order_by(Enrollment.enrolled_at.desc()).all()

    @staticmethod
    def list_user_enrollments(db: Session, user_id: str) -> List[Enrollment]:
        return db.query(Enrollment).filter(
            Enrollment.user_id == user_id
        ).order_by(Enrollment.enrolled_at.desc()).all()

    @staticmethod
    def get_course_content(db: Session, user_id: str, course_id: str) -> dict:
        """
        Course with its ordered sections and lessons, behind the enrollment gate

        Args:
            db: database session
            user_id: learner id
            course_id: course id

        Returns:
            dict: course fields, "sections" (each with "lessons") and "unsectioned_lessons"

        Raises:
            NotFoundError: course does not exist
            ForbiddenError: no approved enrollment
        """
        course = db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFoundError(MESSAGES["course_not_found"])

        EnrollmentService.ensure_content_access(db, user_id, course_id)

        sections = db.query(CourseSection).filter(
            CourseSection.course_id == course_id
        ).order_by(CourseSection.sort_order.asc()).all()

        lessons = db.query(Lesson).filter(
            Lesson.course_id == course_id
        ).order_by(Lesson.sort_order.asc()).all()

        return {
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "image": course.image,
            "category": course.category,
            "level": course.level,
            "instructor_id": course.instructor_id,
            "sections": [
                {
                    "id": s.id,
                    "title": s.title,
                    "description": s.description,
                    "sort_order": s.sort_order,
                    "lessons": [_lesson_dict(l) for l in lessons if l.section_id == s.id],
                }
                for s in sections
            ],
            "unsectioned_lessons": [_lesson_dict(l) for l in lessons if not l.section_id],
        }

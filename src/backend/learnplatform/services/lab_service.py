"""
Lab service
Lab progress, section / whole-lab submissions and their review

Submission lifecycle:
    pending -> approved | rejected, set only by a reviewer
    rejected -> pending only through a new submission row

Full history is kept. The current submission for (user, lab, section) is the latest by
submitted_at, ties broken by id.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from learnplatform.core.config import LAB_GATE_APPROVAL, get_settings
from learnplatform.core.errors import MESSAGES, BadRequestError, NotFoundError
from learnplatform.models import Course, Lab, LabProgress, LabSection, LabSubmission, Lesson
from learnplatform.models.lab import REVIEW_STATUSES, SUBMISSION_APPROVED, SUBMISSION_PENDING
from learnplatform.services.progression_service import ProgressionService

logger = logging.getLogger(__name__)


def submission_to_dict(submission: LabSubmission) -> dict:
    return {
        "id": submission.id,
        "user_id": submission.user_id,
        "lab_id": submission.lab_id,
        "section_id": submission.section_id,
        "screenshot_url": submission.screenshot_url,
        "details": submission.details,
        "time_spent": submission.time_spent,
        "status": submission.status,
        "submitted_at": submission.submitted_at,
        "reviewed_at": submission.reviewed_at,
        "reviewed_by": submission.reviewed_by,
        "review_notes": submission.review_notes,
    }


def _with_details(submission: LabSubmission) -> dict:
    """Submission plus the user and lab summaries reviewers need"""
    data = submission_to_dict(submission)
    user = submission.user
    lab = submission.lab
    data["user"] = {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar,
        "email": user.email,
        "username": user.username,
    }
    data["lab"] = {
        "id": lab.id,
        "title": lab.title,
        "icon": lab.icon,
        "color": lab.color,
    }
    return data


def current_submissions(submissions: List[LabSubmission]) -> Dict[Optional[str], LabSubmission]:
    """
    Latest submission per section_id (None key = whole-lab)

    Args:
        submissions: submissions of one user for one lab, any order

    Returns:
        Dict[Optional[str], LabSubmission]: section_id -> current submission
    """
    current: Dict[Optional[str], LabSubmission] = {}
    for submission in submissions:
        existing = current.get(submission.section_id)
        if existing is None or (submission.submitted_at, submission.id) > (existing.submitted_at, existing.id):
            current[submission.section_id] = submission
    return current


class LabService:
    """Lab service"""

    @staticmethod
    def _get_lab(db: Session, lab_id: str) -> Lab:
        lab = db.query(Lab).filter(Lab.id == lab_id).first()
        if not lab:
            raise NotFoundError(MESSAGES["lab_not_found"])
        return lab

    @staticmethod
    def get_lab_progress(db: Session, user_id: str, lab_id: str) -> Optional[LabProgress]:
        return db.query(LabProgress).filter(
            LabProgress.user_id == user_id,
            LabProgress.lab_id == lab_id
        ).first()

    @staticmethod
    def start_lab(db: Session, user_id: str, lab_id: str) -> LabProgress:
        """
        Get or create the learner's progress row for a lab

        Raises:
            NotFoundError: lab does not exist
        """
        LabService._get_lab(db, lab_id)

        progress = LabService.get_lab_progress(db, user_id, lab_id)
        if progress:
            return progress

        progress = LabProgress(
            id=str(uuid.uuid4()),
            user_id=user_id,
            lab_id=lab_id,
            progress=0,
            is_completed=False,
            started_at=datetime.utcnow()
        )
        db.add(progress)
        db.commit()
        db.refresh(progress)
        logger.info(f"Lab started: user={user_id}, lab={lab_id}")
        return progress

    @staticmethod
    def list_sections(db: Session, lab_id: str) -> List[LabSection]:
        return db.query(LabSection).filter(
            LabSection.lab_id == lab_id
        ).order_by(LabSection.sort_order.asc(), LabSection.id.asc()).all()

    @staticmethod
    def create_section(
        db: Session,
        lab_id: str,
        title: str,
        content: Optional[str] = None,
        instructions: Optional[str] = None,
        sort_order: int = 0
    ) -> LabSection:
        """
        Raises:
            NotFoundError: lab does not exist
        """
        LabService._get_lab(db, lab_id)

        section = LabSection(
            id=str(uuid.uuid4()),
            lab_id=lab_id,
            title=title,
            content=content,
            instructions=instructions,
            sort_order=sort_order or 0,
            is_published=True
        )
        db.add(section)
        db.commit()
        db.refresh(section)
        return section

    @staticmethod
    def submit_section(
        db: Session,
        user_id: str,
        lab_id: str,
        section_id: str,
        screenshot_url: Optional[str] = None,
        details: Optional[str] = None,
        time_spent: int = 0
    ) -> LabSubmission:
        """
        Submit work for one section as a new pending row

        Raises:
            NotFoundError: lab does not exist, or the section is not part of it
        """
        LabService._get_lab(db, lab_id)

        section = db.query(LabSection).filter(LabSection.id == section_id).first()
        if not section or section.lab_id != lab_id:
            raise NotFoundError(MESSAGES["section_not_found"])

        submission = LabService._create_submission(
            db, user_id, lab_id, section_id, screenshot_url, details, time_spent
        )
        db.commit()
        db.refresh(submission)
        logger.info(f"Lab section submitted: user={user_id}, lab={lab_id}, section={section_id}, id={submission.id}")
        return submission

    @staticmethod
    def submit_lab(
        db: Session,
        user_id: str,
        lab_id: str,
        screenshot_url: Optional[str] = None,
        details: Optional[str] = None,
        time_spent: int = 0
    ) -> LabSubmission:
        """
        Whole-lab submission; completes the lab and awards its xp

        Completion and xp are granted at submission time. Under the approval gate a lab
        with sections can only be submitted once every section's current submission
        is approved.

        Args:
            db: database session
            user_id: learner id
            lab_id: lab id
            screenshot_url: proof screenshot
            details: free text
            time_spent: seconds

        Returns:
            LabSubmission: the new pending submission

        Raises:
            NotFoundError: lab does not exist
            BadRequestError: approval gate not met
        """
        lab = LabService._get_lab(db, lab_id)

        if get_settings().lab_completion_gate == LAB_GATE_APPROVAL:
            status = LabService.get_lab_status(db, user_id, lab_id)
            if status["sections"] and not status["all_sections_approved"]:
                raise BadRequestError(MESSAGES["sections_not_approved"])

        submission = LabService._create_submission(
            db, user_id, lab_id, None, screenshot_url, details, time_spent
        )

        now = datetime.utcnow()
        progress = LabService.get_lab_progress(db, user_id, lab_id)
        if not progress:
            progress = LabProgress(
                id=str(uuid.uuid4()),
                user_id=user_id,
                lab_id=lab_id,
                started_at=now
            )
            db.add(progress)
        progress.is_completed = True
        progress.progress = 100
        progress.completed_at = now

        db.commit()
        db.refresh(submission)
        logger.info(f"Lab submitted: user={user_id}, lab={lab_id}, id={submission.id}")

        if lab.xp_reward and lab.xp_reward > 0:
            ProgressionService.award_xp(db, user_id, lab.xp_reward)

        return submission

    @staticmethod
    def _create_submission(
        db: Session,
        user_id: str,
        lab_id: str,
        section_id: Optional[str],
        screenshot_url: Optional[str],
        details: Optional[str],
        time_spent: int
    ) -> LabSubmission:
        submission = LabSubmission(
            id=str(uuid.uuid4()),
            user_id=user_id,
            lab_id=lab_id,
            section_id=section_id,
            screenshot_url=screenshot_url,
            details=details,
            time_spent=time_spent or 0,
            status=SUBMISSION_PENDING,
            submitted_at=datetime.utcnow()
        )
        db.add(submission)
        return submission

    @staticmethod
    def review_submission(
        db: Session,
        submission_id: str,
        reviewer_id: str,
        status: str,
        notes: Optional[str] = None
    ) -> LabSubmission:
        """
        Approve or reject a submission

        Any earlier review is overwritten.

        Raises:
            BadRequestError: status is not approved / rejected
            NotFoundError: submission does not exist
        """
        if status not in REVIEW_STATUSES:
            raise BadRequestError(MESSAGES["invalid_review_status"])

        submission = db.query(LabSubmission).filter(LabSubmission.id == submission_id).first()
        if not submission:
            raise NotFoundError(MESSAGES["submission_not_found"])

        submission.status = status
        submission.reviewed_by = reviewer_id
        submission.reviewed_at = datetime.utcnow()
        submission.review_notes = notes or None
        db.commit()
        db.refresh(submission)
        logger.info(f"Lab submission {status}: id={submission_id}, reviewer={reviewer_id}")
        return submission

    @staticmethod
    def get_submission(db: Session, submission_id: str) -> Optional[LabSubmission]:
        return db.query(LabSubmission).filter(LabSubmission.id == submission_id).first()

    @staticmethod
    def list_user_lab_submissions(db: Session, user_id: str, lab_id: str) -> List[LabSubmission]:
        return db.query(LabSubmission).filter(
            LabSubmission.user_id == user_id,
            LabSubmission.lab_id == lab_id
        ).order_by(LabSubmission.submitted_at.desc(), LabSubmission.id.desc()).all()

    @staticmethod
    def list_user_submissions(db: Session, user_id: str) -> List[LabSubmission]:
        return db.query(LabSubmission).filter(
            LabSubmission.user_id == user_id
        ).order_by(LabSubmission.submitted_at.desc(), LabSubmission.id.desc()).all()

    @staticmethod
    def current_submission(
        db: Session,
        user_id: str,
        lab_id: str,
        section_id: Optional[str] = None
    ) -> Optional[LabSubmission]:
        """Current submission for a section, or for the whole lab when section_id is None"""
        query = db.query(LabSubmission).filter(
            LabSubmission.user_id == user_id,
            LabSubmission.lab_id == lab_id
        )
        if section_id is None:
            query = query.filter(LabSubmission.section_id.is_(None))
        else:
            query = query.filter(LabSubmission.section_id == section_id)
        return query.order_by(LabSubmission.submitted_at.desc(), LabSubmission.id.desc()).first()

    @staticmethod
    def get_lab_status(db: Session, user_id: str, lab_id: str) -> dict:
        """
        Per-section review state and the lab completion predicates

        all_sections_submitted: the lab has sections and each has a submission in any status.
        all_sections_approved: the lab has sections and each current submission is approved.
        can_complete: follows LAB_COMPLETION_GATE; a lab without sections can always complete.

        Raises:
            NotFoundError: lab does not exist
        """
        LabService._get_lab(db, lab_id)

        sections = LabService.list_sections(db, lab_id)
        current = current_submissions(LabService.list_user_lab_submissions(db, user_id, lab_id))

        section_rows = []
        for section in sections:
            submission = current.get(section.id)
            section_rows.append({
                "id": section.id,
                "title": section.title,
                "sort_order": section.sort_order,
                "current_submission": submission_to_dict(submission) if submission else None,
            })

        all_submitted = len(sections) > 0 and all(s.id in current for s in sections)
        all_approved = len(sections) > 0 and all(
            s.id in current and current[s.id].status == SUBMISSION_APPROVED for s in sections
        )

        if not sections:
            can_complete = True
        elif get_settings().lab_completion_gate == LAB_GATE_APPROVAL:
            can_complete = all_approved
        else:
            can_complete = all_submitted

        progress = LabService.get_lab_progress(db, user_id, lab_id)
        lab_submission = current.get(None)

        return {
            "lab_id": lab_id,
            "sections": section_rows,
            "all_sections_submitted": all_submitted,
            "all_sections_approved": all_approved,
            "can_complete": can_complete,
            "lab_submission": submission_to_dict(lab_submission) if lab_submission else None,
            "progress": {
                "progress": progress.progress,
                "is_completed": progress.is_completed,
                "started_at": progress.started_at,
                "completed_at": progress.completed_at,
            } if progress else None,
        }

    @staticmethod
    def list_all_submissions(db: Session) -> List[dict]:
        submissions = db.query(LabSubmission).order_by(
            LabSubmission.submitted_at.desc(), LabSubmission.id.desc()
        ).all()
        return [_with_details(s) for s in submissions if s.user and s.lab]

    @staticmethod
    def list_pending_submissions(db: Session) -> List[dict]:
        submissions = db.query(LabSubmission).filter(
            LabSubmission.status == SUBMISSION_PENDING
        ).order_by(LabSubmission.submitted_at.desc(), LabSubmission.id.desc()).all()
        return [_with_details(s) for s in submissions if s.user and s.lab]

    @staticmethod
    def list_instructor_submissions(db: Session, instructor_id: str) -> List[dict]:
        """
        Submissions for labs linked from lessons of the instructor's courses

        Args:
            db: database session
            instructor_id: instructor user id

        Returns:
            List[dict]: submissions with user and lab summaries, newest first
        """
        lab_ids = [
            row[0]
            for row in db.query(Lesson.lab_id).join(Course, Lesson.course_id == Course.id).filter(
                Course.instructor_id == instructor_id,
                Lesson.lab_id.isnot(None)
            ).distinct().all()
        ]
        if not lab_ids:
            return []

        submissions = db.query(LabSubmission).filter(
            LabSubmission.lab_id.in_(lab_ids)
        ).order_by(LabSubmission.submitted_at.desc(), LabSubmission.id.desc()).all()
        return [_with_details(s) for s in submissions if s.user and s.lab]

    @staticmethod
    def count_completed_labs(db: Session, user_id: str) -> int:
        """Number of approved submissions of the learner"""
        return db.query(LabSubmission).filter(
            LabSubmission.user_id == user_id,
            LabSubmission.status == SUBMISSION_APPROVED
        ).count()

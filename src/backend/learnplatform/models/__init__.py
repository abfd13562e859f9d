"""
Models package
Export all database models
"""

from .base import Base
from .user import User
from .course import Course, CourseSection, Lesson
from .lesson_progress import LessonProgress
from .enrollment import Enrollment
from .quiz import Quiz, QuizQuestion, QuizAttempt
from .lab import Lab, LabSection, LabProgress, LabSubmission

__all__ = [
    "Base",
    "User",
    "Course",
    "CourseSection",
    "Lesson",
    "LessonProgress",
    "Enrollment",
    "Quiz",
    "QuizQuestion",
    "QuizAttempt",
    "Lab",
    "LabSection",
    "LabProgress",
    "LabSubmission",
]


def init_db(bind=None):
    """Create all tables, on the app engine unless another engine is given"""
    if bind is None:
        from ..core.database import engine as bind

    Base.metadata.create_all(bind=bind)
    print("✅ Database tables created successfully")


def drop_all(bind=None):
    """Drop all tables (development only)"""
    if bind is None:
        from ..core.database import engine as bind

    Base.metadata.drop_all(bind=bind)
    print("⚠️  All tables dropped")


def reset_db(bind=None):
    """Drop and recreate every table, leaving an empty schema"""
    drop_all(bind)
    init_db(bind)

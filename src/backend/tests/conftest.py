"""
Pytest configuration and shared fixtures

In-memory SQLite shared through a StaticPool, factory fixtures for catalog rows and a
TestClient whose get_db dependency points at the same database.
"""
import os
import sys
import uuid
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from learnplatform.core.security import create_access_token, hash_password
from learnplatform.models import (
    Base,
    Course,
    CourseSection,
    Enrollment,
    Lab,
    LabSection,
    Lesson,
    Quiz,
    QuizQuestion,
    User,
)
from learnplatform.models.enrollment import ENROLLMENT_APPROVED
from learnplatform.models.user import ROLE_ADMIN, ROLE_INSTRUCTOR, ROLE_STUDENT

POLICY_ENV_VARS = ("QUIZ_XP_POLICY", "LAB_COMPLETION_GATE", "DEV_MODE")


@pytest.fixture(autouse=True)
def clean_policy_env(monkeypatch):
    """Every test starts from the default policies"""
    for name in POLICY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from learnplatform.core.database import get_db
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ==================== factories ====================

@pytest.fixture
def make_user(db_session):
    def _make_user(role: str = ROLE_STUDENT, xp: int = 0, points: int = None, username: str = None) -> User:
        name = username or f"user_{uuid.uuid4().hex[:8]}"
        user = User(
            id=str(uuid.uuid4()),
            username=name,
            email=f"{name}@example.com",
            password_hash=hash_password("secret123"),
            name=name,
            role=role,
            xp=xp,
            points=xp if points is None else points,
            level=xp // 500 + 1,
            created_at=datetime.utcnow()
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def student(make_user):
    return make_user(ROLE_STUDENT)


@pytest.fixture
def admin_user(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture
def instructor(make_user):
    return make_user(ROLE_INSTRUCTOR)


@pytest.fixture
def make_course(db_session):
    def _make_course(title: str = "أساسيات الشبكات", instructor_id: str = None) -> Course:
        course = Course(
            id=str(uuid.uuid4()),
            title=title,
            description="",
            instructor_id=instructor_id,
            is_published=True
        )
        db_session.add(course)
        db_session.commit()
        db_session.refresh(course)
        return course
    return _make_course


@pytest.fixture
def make_section(db_session):
    def _make_section(course: Course, title: str = "القسم", sort_order: int = 0) -> CourseSection:
        section = CourseSection(
            id=str(uuid.uuid4()),
            course_id=course.id,
            title=title,
            sort_order=sort_order
        )
        db_session.add(section)
        db_session.commit()
        db_session.refresh(section)
        return section
    return _make_section


@pytest.fixture
def make_lesson(db_session):
    def _make_lesson(
        course: Course,
        section: CourseSection = None,
        xp_reward: int = 50,
        sort_order: int = 0,
        lab: Lab = None,
        title: str = "الدرس"
    ) -> Lesson:
        lesson = Lesson(
            id=str(uuid.uuid4()),
            course_id=course.id,
            section_id=section.id if section else None,
            lab_id=lab.id if lab else None,
            title=title,
            sort_order=sort_order,
            xp_reward=xp_reward,
            is_published=True
        )
        db_session.add(lesson)
        db_session.commit()
        db_session.refresh(lesson)
        return lesson
    return _make_lesson


@pytest.fixture
def make_quiz(db_session):
    def _make_quiz(
        lesson: Lesson,
        correct_answers=(0, 1, 2, 3),
        passing_score: int = 70,
        xp_reward: int = 25,
        is_published: bool = True
    ) -> Quiz:
        quiz = Quiz(
            id=str(uuid.uuid4()),
            lesson_id=lesson.id,
            title="كويز الدرس",
            passing_score=passing_score,
            xp_reward=xp_reward,
            is_published=is_published
        )
        db_session.add(quiz)
        for idx, correct in enumerate(correct_answers):
            db_session.add(QuizQuestion(
                id=str(uuid.uuid4()),
                quiz_id=quiz.id,
                question=f"السؤال {idx + 1}",
                options=["أ", "ب", "ج", "د"],
                correct_answer=correct,
                sort_order=idx
            ))
        db_session.commit()
        db_session.refresh(quiz)
        return quiz
    return _make_quiz


@pytest.fixture
def make_lab(db_session):
    def _make_lab(section_count: int = 0, xp_reward: int = 100) -> Lab:
        lab = Lab(
            id=str(uuid.uuid4()),
            title="مختبر جدار الحماية",
            description="",
            xp_reward=xp_reward,
            is_published=True
        )
        db_session.add(lab)
        for idx in range(section_count):
            db_session.add(LabSection(
                id=str(uuid.uuid4()),
                lab_id=lab.id,
                title=f"القسم {idx + 1}",
                sort_order=idx
            ))
        db_session.commit()
        db_session.refresh(lab)
        return lab
    return _make_lab


@pytest.fixture
def make_enrollment(db_session):
    def _make_enrollment(user: User, course: Course, status: str = ENROLLMENT_APPROVED) -> Enrollment:
        enrollment = Enrollment(
            id=str(uuid.uuid4()),
            user_id=user.id,
            course_id=course.id,
            status=status,
            payment_method="cliq",
            enrolled_at=datetime.utcnow()
        )
        db_session.add(enrollment)
        db_session.commit()
        db_session.refresh(enrollment)
        return enrollment
    return _make_enrollment


@pytest.fixture
def auth_headers():
    """Builds a bearer header for a user"""
    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
    return _auth_headers

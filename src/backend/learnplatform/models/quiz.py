"""
Quiz models
A lesson has at most one quiz; a quiz has ordered single-answer questions;
every grading event is an immutable QuizAttempt row.
"""
import uuid
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base

DEFAULT_PASSING_SCORE = 70
DEFAULT_QUIZ_XP_REWARD = 25


class Quiz(Base):
    """Quiz model"""
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=False, unique=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    passing_score = Column(Integer, nullable=False, default=DEFAULT_PASSING_SCORE)  # percentage
    xp_reward = Column(Integer, nullable=False, default=DEFAULT_QUIZ_XP_REWARD)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # relationships
    lesson = relationship("Lesson")
    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        order_by="QuizQuestion.sort_order",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Quiz(id='{self.id}' lesson='{self.lesson_id}' passing={self.passing_score})>"


class QuizQuestion(Base):
    """Quiz question; correct_answer is a zero-based index into options"""
    __tablename__ = "quiz_questions"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    quiz_id = Column(String(36), ForeignKey("quizzes.id"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # ["...", "...", ...]
    correct_answer = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    quiz = relationship("Quiz", back_populates="questions")

    def __repr__(self):
        return f"<QuizQuestion(id='{self.id}' quiz='{self.quiz_id}' order={self.sort_order})>"


class QuizAttempt(Base):
    """One graded submission; never updated after insert"""
    __tablename__ = "quiz_attempts"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(String(36), ForeignKey("quizzes.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)  # 0-100
    answers = Column(JSON, nullable=False, default=list)  # submitted option indices as strings
    passed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<QuizAttempt(id='{self.id}' user='{self.user_id}' quiz='{self.quiz_id}' score={self.score} passed={self.passed})>"

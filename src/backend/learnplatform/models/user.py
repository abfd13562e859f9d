"""
User model
Learners, instructors and admins share one table; role decides what they may do
"""
import uuid
from sqlalchemy import Column, String, Boolean, Integer, DateTime, Text, CheckConstraint
from datetime import datetime

from .base import Base

ROLE_STUDENT = "student"
ROLE_INSTRUCTOR = "instructor"
ROLE_ADMIN = "admin"


class User(Base):
    """User model"""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_users_xp_nonneg"),
        CheckConstraint("points >= 0", name="ck_users_points_nonneg"),
    )

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_STUDENT, index=True)  # student | instructor | admin
    title = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    # level is always xp // 500 + 1; only ProgressionService.award_xp writes these three
    level = Column(Integer, nullable=False, default=1)
    xp = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)
    streak = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<User(id='{self.id}' username='{self.username}' role='{self.role}' xp={self.xp} level={self.level})>"

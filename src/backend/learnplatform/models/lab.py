"""
Lab models: hands-on labs, their sections, per-learner progress and submissions
"""
import uuid
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base

SUBMISSION_PENDING = "pending"
SUBMISSION_APPROVED = "approved"
SUBMISSION_REJECTED = "rejected"
REVIEW_STATUSES = (SUBMISSION_APPROVED, SUBMISSION_REJECTED)


class Lab(Base):
    """Lab model"""
    __tablename__ = "labs"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    about = Column(Text, nullable=True)
    environment = Column(String(200), nullable=True)
    instructions = Column(JSON, nullable=True, default=list)
    learning_objectives = Column(JSON, nullable=True, default=list)
    technologies = Column(JSON, nullable=True, default=list)
    icon = Column(String(100), nullable=False, default="flask")
    color = Column(String(20), nullable=False, default="#3b82f6")
    image = Column(String(500), nullable=True)
    creator_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    level = Column(String(50), nullable=False, default="")
    xp_reward = Column(Integer, nullable=False, default=100)
    is_published = Column(Boolean, nullable=False, default=False)

    sections = relationship("LabSection", back_populates="lab", order_by="LabSection.sort_order")

    def __repr__(self):
        return f"<Lab(id='{self.id}' title='{self.title}' xp={self.xp_reward})>"


class LabSection(Base):
    """Ordered sub-unit of a lab; each needs its own submission"""
    __tablename__ = "lab_sections"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    lab_id = Column(String(36), ForeignKey("labs.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)

    lab = relationship("Lab", back_populates="sections")

    def __repr__(self):
        return f"<LabSection(id='{self.id}' lab='{self.lab_id}' order={self.sort_order})>"


class LabProgress(Base):
    """Per-learner lab progress"""
    __tablename__ = "lab_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lab_id", name="uq_lab_progress_user_lab"),
    )

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    lab_id = Column(String(36), ForeignKey("labs.id"), nullable=False, index=True)
    progress = Column(Integer, nullable=False, default=0)  # 0-100
    is_completed = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<LabProgress(user='{self.user_id}' lab='{self.lab_id}' progress={self.progress} completed={self.is_completed})>"


class LabSubmission(Base):
    """
    Lab submission

    section_id is NULL for a whole-lab submission. Resubmitting creates a new row;
    the current one for (user, lab, section) is the latest by submitted_at.
    """
    __tablename__ = "lab_submissions"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    lab_id = Column(String(36), ForeignKey("labs.id"), nullable=False, index=True)
    section_id = Column(String(36), ForeignKey("lab_sections.id"), nullable=True, index=True)
    screenshot_url = Column(String(500), nullable=True)
    details = Column(Text, nullable=True)
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    status = Column(String(20), nullable=False, default=SUBMISSION_PENDING, index=True)  # pending | approved | rejected
    submitted_at = Column(DateTime, default=datetime.utcnow, index=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    review_notes = Column(Text, nullable=True)

    # relationships
    user = relationship("User", foreign_keys=[user_id])
    lab = relationship("Lab")

    def __repr__(self):
        return f"<LabSubmission(id='{self.id}' user='{self.user_id}' lab='{self.lab_id}' section='{self.section_id}' status={self.status})>"

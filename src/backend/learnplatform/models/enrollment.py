"""
Enrollment model
Offline payment: the learner files a request, an admin confirms the payment and approves it.
Only an approved enrollment opens the course content.
"""
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base

ENROLLMENT_PENDING = "pending"
ENROLLMENT_APPROVED = "approved"
ENROLLMENT_REJECTED = "rejected"

PAYMENT_METHODS = ("cliq", "paypal")


class Enrollment(Base):
    """Enrollment model"""
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ENROLLMENT_PENDING, index=True)  # pending | approved | rejected
    payment_method = Column(String(20), nullable=True)  # cliq | paypal
    contact_name = Column(String(100), nullable=True)
    contact_email = Column(String(100), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    progress = Column(Integer, nullable=False, default=0)
    completed_lessons = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    # relationships
    user = relationship("User", foreign_keys=[user_id])
    course = relationship("Course")

    def __repr__(self):
        return f"<Enrollment(user='{self.user_id}' course='{self.course_id}' status={self.status})>"

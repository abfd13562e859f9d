"""
Course catalog: courses, their sections and lessons
"""
import uuid
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Course(Base):
    """Course model"""
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(String(500), nullable=True)
    category = Column(String(100), nullable=False, default="")
    level = Column(String(50), nullable=False, default="")
    price = Column(Float, nullable=False, default=0)
    instructor_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    students_count = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # relationships
    sections = relationship("CourseSection", back_populates="course", order_by="CourseSection.sort_order")
    lessons = relationship("Lesson", back_populates="course", order_by="Lesson.sort_order")

    def __repr__(self):
        return f"<Course(id='{self.id}' title='{self.title}')>"


class CourseSection(Base):
    """Ordered module within a course"""
    __tablename__ = "course_sections"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)

    course = relationship("Course", back_populates="sections")

    def __repr__(self):
        return f"<CourseSection(id='{self.id}' course_id='{self.course_id}' title='{self.title}')>"


class Lesson(Base):
    """Lesson model"""
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    section_id = Column(String(36), ForeignKey("course_sections.id"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    video_url = Column(String(500), nullable=True)
    lab_id = Column(String(36), ForeignKey("labs.id"), nullable=True, index=True)  # lab practiced in this lesson
    duration = Column(Integer, nullable=False, default=0)  # minutes
    sort_order = Column(Integer, nullable=False, default=0)
    xp_reward = Column(Integer, nullable=False, default=50)
    is_published = Column(Boolean, nullable=False, default=False)

    course = relationship("Course", back_populates="lessons")

    def __repr__(self):
        return f"<Lesson(id='{self.id}' course_id='{self.course_id}' title='{self.title}')>"

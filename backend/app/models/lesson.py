"""Lesson model for TutorApp."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True, index=True)
    # Single-participant lessons created before lesson_students existed
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)
    duration = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    tutor = relationship("User", back_populates="lessons", foreign_keys=[tutor_id])
    course = relationship("Course", back_populates="lessons")
    student = relationship("Student", back_populates="legacy_lessons", foreign_keys=[student_id])
    lesson_students = relationship(
        "LessonStudent",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="LessonStudent.id",
    )

"""Student model for TutorApp."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    tutor = relationship("User", back_populates="students", foreign_keys=[tutor_id])
    legacy_lessons = relationship("Lesson", back_populates="student", foreign_keys="Lesson.student_id")
    lesson_links = relationship("LessonStudent", back_populates="student", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

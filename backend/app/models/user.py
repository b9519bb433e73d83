from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base
from backend.app.models.student import Student


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="tutor")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    students = relationship(
        "Student",
        back_populates="tutor",
        cascade="all, delete-orphan",
        foreign_keys=[Student.tutor_id],
    )
    courses = relationship("Course", back_populates="tutor", cascade="all, delete-orphan", foreign_keys="Course.tutor_id")
    lessons = relationship("Lesson", back_populates="tutor", cascade="all, delete-orphan", foreign_keys="Lesson.tutor_id")

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email

from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.student import Student  # noqa: F401
from backend.app.models.course import Course  # noqa: F401
from backend.app.models.lesson import Lesson  # noqa: F401
from backend.app.models.lesson_student import LessonStudent  # noqa: F401

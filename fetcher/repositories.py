"""
Read-only data sources consumed by report computations.
"""

from typing import List, Optional, Protocol, Sequence

from filters.scope import FilterScope
from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Option, Quiz,
                                  QuizAttempt, Student, Topic)


class RepositoryError(Exception):
    """A read against an external data source failed."""


class AttemptRepository(Protocol):
    async def list_attempts(self, scope: FilterScope) -> List[QuizAttempt]: ...

    async def list_quiz_attempts(self, quiz_id: str, class_id: Optional[str] = None) -> List[QuizAttempt]: ...


class EnrollmentRepository(Protocol):
    async def list_enrollments(self, class_id: str) -> List[CourseLevelEnrollment]: ...


class CourseStructureRepository(Protocol):
    async def list_courses(self) -> List[Option]: ...

    async def list_levels(self, course_id: str) -> List[CourseLevel]: ...

    async def get_level(self, level_id: str) -> CourseLevel: ...

    async def list_topics(self, level_id: str) -> List[Topic]: ...

    async def list_level_quizzes(self, level_id: str) -> List[Quiz]: ...

    async def list_topic_quizzes(self, topic_id: str) -> List[Quiz]: ...

    async def get_quiz(self, quiz_id: str) -> Quiz: ...


class StudentRepository(Protocol):
    async def list_class_students(self, class_id: str) -> List[Student]: ...

    async def get_students(self, student_ids: Sequence[str]) -> List[Student]: ...


class ClassLookup(Protocol):
    async def list_schools(self) -> List[Option]: ...

    async def list_classes(self, school_id: str) -> List[Option]: ...

    async def get_class(self, class_id: str) -> ClassInfo: ...

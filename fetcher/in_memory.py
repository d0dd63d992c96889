"""
In-memory repository over already loaded records. Serves tests and the
dashboard's offline mode, where the dataset comes from a JSON file.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from fetcher.parser import (parse_attempt, parse_class_info, parse_enrollment, parse_level,
                            parse_option, parse_quiz, parse_student, parse_topic)
from fetcher.repositories import RepositoryError
from filters.scope import FilterScope
from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Option, Quiz,
                                  QuizAttempt, Student, Topic)


@dataclass
class InMemoryRepository:
    attempts: List[QuizAttempt] = field(default_factory=list)
    quizzes: List[Quiz] = field(default_factory=list)
    topics: List[Topic] = field(default_factory=list)
    levels: List[CourseLevel] = field(default_factory=list)
    courses: List[Option] = field(default_factory=list)
    enrollments: List[CourseLevelEnrollment] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)
    schools: List[Option] = field(default_factory=list)
    classes: Dict[str, ClassInfo] = field(default_factory=dict)

    @classmethod
    def from_json(cls, path: str) -> "InMemoryRepository":
        """Loads a dataset written by tests/save_mock_data.py (API payload shapes)."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        classes = {}
        for payload in data.get("classes", []):
            info = parse_class_info(payload, payload.get("school"), payload.get("allocation"))
            classes[info.id] = info

        return cls(
            attempts=[parse_attempt(p) for p in data.get("attempts", [])],
            quizzes=[parse_quiz(p) for p in data.get("quizzes", [])],
            topics=[parse_topic(p, p.get("level_id", "")) for p in data.get("topics", [])],
            levels=[parse_level(p) for p in data.get("levels", [])],
            courses=[parse_option(p) for p in data.get("courses", [])],
            enrollments=[parse_enrollment(p, p["class_id"]) for p in data.get("enrollments", [])],
            students=[parse_student(p) for p in data.get("students", [])],
            schools=[parse_option(p) for p in data.get("schools", [])],
            classes=classes,
        )

    def _quiz(self, quiz_id: str) -> Optional[Quiz]:
        return next((q for q in self.quizzes if q.id == quiz_id), None)

    def _student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    async def list_attempts(self, scope: FilterScope) -> List[QuizAttempt]:
        return [a for a in self.attempts
                if scope.matches(a, self._quiz(a.quiz_id), self._student(a.student_id))]

    async def list_quiz_attempts(self, quiz_id: str, class_id: Optional[str] = None) -> List[QuizAttempt]:
        return await self.list_attempts(FilterScope(quiz_id=quiz_id, class_id=class_id))

    async def list_enrollments(self, class_id: str) -> List[CourseLevelEnrollment]:
        return [e for e in self.enrollments if e.class_id == class_id]

    async def list_courses(self) -> List[Option]:
        return list(self.courses)

    async def list_levels(self, course_id: str) -> List[CourseLevel]:
        return [lv for lv in self.levels if lv.course_id == course_id]

    async def get_level(self, level_id: str) -> CourseLevel:
        level = next((lv for lv in self.levels if lv.id == level_id), None)
        if level is None:
            raise RepositoryError(f"course level {level_id} not found")
        return level

    async def list_topics(self, level_id: str) -> List[Topic]:
        return [t for t in self.topics if t.level_id == level_id]

    async def list_level_quizzes(self, level_id: str) -> List[Quiz]:
        return [q for q in self.quizzes if q.course_level_id == level_id]

    async def list_topic_quizzes(self, topic_id: str) -> List[Quiz]:
        return [q for q in self.quizzes if q.topic_id == topic_id]

    async def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quiz(quiz_id)
        if quiz is None:
            raise RepositoryError(f"quiz {quiz_id} not found")
        return quiz

    async def list_class_students(self, class_id: str) -> List[Student]:
        return [s for s in self.students if s.class_id == class_id]

    async def get_students(self, student_ids: Sequence[str]) -> List[Student]:
        wanted = set(student_ids)
        return [s for s in self.students if s.id in wanted]

    async def list_schools(self) -> List[Option]:
        return list(self.schools)

    async def list_classes(self, school_id: str) -> List[Option]:
        return [Option(id=c.id, name=c.name) for c in self.classes.values() if c.school_id == school_id]

    async def get_class(self, class_id: str) -> ClassInfo:
        if class_id not in self.classes:
            raise RepositoryError(f"class {class_id} not found")
        return self.classes[class_id]

"""
Data Models for Course Structure and Quiz Attempts
==================================================

This module defines the read-only inputs of a report computation: quiz attempts,
course structure (courses -> levels -> topics -> quizzes), students, enrollments and
the class header data. All models are implemented as frozen dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ScoreCategory(Enum):
    EE = "EE"
    ME = "ME"
    AP = "AP"
    BE = "BE"
    NONE = "NONE"

    @property
    def report_key(self) -> str:
        """Key used for this category in flat report dictionaries."""
        return _REPORT_KEYS[self]


_REPORT_KEYS = {
    ScoreCategory.EE: "exceeding",
    ScoreCategory.ME: "meeting",
    ScoreCategory.AP: "approaching",
    ScoreCategory.BE: "below_expectation",
    ScoreCategory.NONE: "no_attempt",
}


@dataclass(frozen=True)
class QuizAttempt:
    student_id: str
    quiz_id: str
    topic_name: str
    score: float
    percentage: float
    passed: bool
    attempted_at: Optional[datetime] = None
    status: str = "completed"
    attempt_id: Optional[str] = None


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    topic_name: str
    course_name: str
    level_name: str
    total_points: float = 0.0
    passing_score: float = 0.0
    # Scope filtering only; the topic matrix joins on topic_name.
    topic_id: Optional[str] = None
    course_level_id: Optional[str] = None
    course_id: Optional[str] = None


@dataclass(frozen=True)
class Topic:
    id: str
    name: str
    order_index: int
    level_id: str


@dataclass(frozen=True)
class CourseLevel:
    id: str
    name: str
    level_number: int
    course_id: str
    course_name: str


@dataclass(frozen=True)
class Student:
    id: str
    first_name: str
    last_name: str
    username: str
    class_id: Optional[str] = None
    school_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class CourseLevelEnrollment:
    class_id: str
    course_level_id: str
    enrollment_status: str
    course_level: Optional[CourseLevel] = None

    @property
    def is_enrolled(self) -> bool:
        return self.enrollment_status == "enrolled"


@dataclass(frozen=True)
class ClassInfo:
    id: str
    name: str
    school_id: Optional[str] = None
    school_name: str = ""
    lead_tutor: str = ""
    assistant_tutor: str = ""


@dataclass(frozen=True)
class Option:
    """An entry of a filter drop-down (school, class, course, level, topic, quiz)."""
    id: str
    name: str

"""Shared fixtures for the analytics and fetcher tests."""

from datetime import datetime

import pytest

from fetcher.in_memory import InMemoryRepository
from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Option, Quiz,
                                  QuizAttempt, Student, Topic)


@pytest.fixture
def make_attempt():
    """Factory for attempts; percentages default to score * 10."""
    counter = {"n": 0}

    def _make(student_id="stu-a", quiz_id="quiz-1", percentage=50.0, score=None, passed=None,
              topic_name="Loops", status="completed", attempted_at=None):
        counter["n"] += 1
        return QuizAttempt(
            student_id=student_id,
            quiz_id=quiz_id,
            topic_name=topic_name,
            score=percentage / 10 if score is None else score,
            percentage=percentage,
            passed=percentage >= 50 if passed is None else passed,
            attempted_at=attempted_at or datetime(2025, 3, 1, 9, 0),
            status=status,
            attempt_id=f"att-{counter['n']}",
        )

    return _make


@pytest.fixture
def level_one():
    return CourseLevel(id="lvl-1", name="Level 1", level_number=1, course_id="crs-1", course_name="Coding")


@pytest.fixture
def level_two():
    return CourseLevel(id="lvl-2", name="Level 2", level_number=2, course_id="crs-1", course_name="Coding")


@pytest.fixture
def students():
    return [
        Student(id="stu-a", first_name="Ada", last_name="Lovelace", username="ada",
                class_id="cls-1", school_id="sch-1"),
        Student(id="stu-b", first_name="Brian", last_name="Kernighan", username="bk",
                class_id="cls-1", school_id="sch-1"),
    ]


@pytest.fixture
def class_repository(level_one, level_two, students):
    """A class enrolled in two levels; level 1 has one topic served by two quizzes."""
    return InMemoryRepository(
        courses=[Option(id="crs-1", name="Coding")],
        levels=[level_one, level_two],
        enrollments=[
            CourseLevelEnrollment(class_id="cls-1", course_level_id="lvl-1", enrollment_status="enrolled",
                                  course_level=level_one),
            CourseLevelEnrollment(class_id="cls-1", course_level_id="lvl-2", enrollment_status="enrolled"),
        ],
        topics=[
            Topic(id="top-1", name="Loops", order_index=1, level_id="lvl-1"),
            Topic(id="top-2", name="Events", order_index=1, level_id="lvl-2"),
        ],
        quizzes=[
            Quiz(id="quiz-1", title="Loops A", topic_name="Loops", course_name="Coding", level_name="Level 1",
                 topic_id="top-1", course_level_id="lvl-1", course_id="crs-1"),
            Quiz(id="quiz-2", title="Loops B", topic_name="loops", course_name="Coding", level_name="Level 1",
                 topic_id="top-1", course_level_id="lvl-1", course_id="crs-1"),
            Quiz(id="quiz-3", title="Events A", topic_name="Events", course_name="Coding", level_name="Level 2",
                 topic_id="top-2", course_level_id="lvl-2", course_id="crs-1"),
        ],
        students=list(students),
        schools=[Option(id="sch-1", name="Riverside")],
        classes={"cls-1": ClassInfo(id="cls-1", name="Grade 5", school_id="sch-1", school_name="Riverside",
                                    lead_tutor="Amina Odhiambo")},
    )

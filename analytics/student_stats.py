"""
Student Statistics
==================

Per-student rollups. Attempt counts and highest scores look at every attempt;
total points sum the best attempt of each distinct quiz so that retakes never
inflate a student's total.
"""

import collections
from typing import Dict, List, Mapping, Optional

from analytics.best_attempts import AttemptKey
from analytics.categories import categorize
from models.course_models import QuizAttempt, Student
from models.report_models import StudentRollup


def aggregate_student_stats(attempts: List[QuizAttempt],
                            best_attempts: Mapping[AttemptKey, QuizAttempt],
                            students: Optional[Mapping[str, Student]] = None,
                            class_names: Optional[Mapping[str, str]] = None,
                            school_names: Optional[Mapping[str, str]] = None) -> Dict[str, StudentRollup]:
    students = students or {}
    class_names = class_names or {}
    school_names = school_names or {}

    by_student: Dict[str, List[QuizAttempt]] = collections.defaultdict(list)
    for attempt in attempts:
        by_student[attempt.student_id].append(attempt)

    points: Dict[str, float] = collections.defaultdict(float)
    for (student_id, _), best in best_attempts.items():
        points[student_id] += best.score

    rollups = {}
    for student_id, student_attempts in by_student.items():
        student = students.get(student_id)
        highest_percentage = max(a.percentage for a in student_attempts)

        rollups[student_id] = StudentRollup(
            student_id=student_id,
            student_name=student.full_name if student else "",
            student_username=student.username if student else "",
            class_name=class_names.get(student.class_id) if student else None,
            school_name=school_names.get(student.school_id) if student else None,
            total_attempts=len(student_attempts),
            passed_attempts=sum(1 for a in student_attempts if a.passed),
            highest_score=max(a.score for a in student_attempts),
            highest_percentage=highest_percentage,
            score_category=categorize(highest_percentage),
            total_points=points.get(student_id, 0.0),
            quizzes_completed=len({a.quiz_id for a in student_attempts}),
            quizzes_passed=len({a.quiz_id for a in student_attempts if a.passed}),
        )
    return rollups

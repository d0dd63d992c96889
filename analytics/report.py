"""
Performance Report Assembly
===========================

Threads one request-scoped AggregationContext through the pure aggregators and
assembles the flat report (global stats, quiz rollups, student rollups).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd

from analytics.best_attempts import reduce_best_attempts, screen_attempts
from analytics.quiz_stats import aggregate_quiz_stats
from analytics.student_stats import aggregate_student_stats
from models.course_models import Quiz, QuizAttempt, Student
from models.report_models import PerformanceReport

logger = logging.getLogger(__name__)


@dataclass
class AggregationContext:
    """Everything one report computation needs, already fetched."""
    attempts: List[QuizAttempt]
    quizzes: Dict[str, Quiz] = field(default_factory=dict)
    students: Dict[str, Student] = field(default_factory=dict)
    class_names: Dict[str, str] = field(default_factory=dict)
    school_names: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    partial: bool = False
    generation: int = 0


def build_performance_report(context: AggregationContext) -> PerformanceReport:
    accepted, rejected = screen_attempts(context.attempts)
    warnings = list(context.warnings)
    if rejected:
        warnings.append(f"{len(rejected)} attempt(s) rejected: percentage outside [0, 100]")

    best = reduce_best_attempts(accepted)
    quiz_stats = aggregate_quiz_stats(accepted, best, context.quizzes)
    student_stats = aggregate_student_stats(accepted, best, context.students,
                                            context.class_names, context.school_names)

    report = PerformanceReport(
        stats=quiz_stats.global_stats,
        quiz_data=sorted(quiz_stats.per_quiz.values(), key=lambda q: q.total_attempts, reverse=True),
        student_data=sorted(student_stats.values(), key=lambda s: s.highest_percentage, reverse=True),
        rejected_records=len(rejected),
        warnings=warnings,
        partial=context.partial,
        generation=context.generation,
    )
    logger.info("Report generation %s: %s attempts, %s quizzes, %s students",
                report.generation, report.stats.total_attempts, len(report.quiz_data), len(report.student_data))
    return report


QUIZ_COLUMNS = {
    "quiz_title": "Quiz", "topic_name": "Topic", "course_name": "Course", "level_name": "Level",
    "total_attempts": "Attempts", "passed_attempts": "Passed", "failed_attempts": "Failed",
    "average_score": "Avg Score", "pass_rate": "Pass Rate (%)", "total_students": "Students",
}
STUDENT_COLUMNS = {
    "student_name": "Student", "student_username": "Username", "class_name": "Class",
    "school_name": "School", "total_attempts": "Attempts", "passed_attempts": "Passed",
    "highest_score": "Highest Score", "highest_percentage": "Highest (%)",
    "score_category": "Category", "total_points": "Total Points", "quizzes_completed": "Quizzes",
}


def report_frames(report: PerformanceReport) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Quiz and student tables ready for display, columns renamed for humans."""
    data = report.to_dict()

    quiz_df = pd.DataFrame(data["quiz_data"], columns=["quiz_id", *QUIZ_COLUMNS])
    quiz_df = quiz_df.set_index("quiz_id").rename(columns=QUIZ_COLUMNS)

    student_df = pd.DataFrame(data["student_data"], columns=["student_id", *STUDENT_COLUMNS])
    student_df = student_df.set_index("student_id").rename(columns=STUDENT_COLUMNS)
    return quiz_df, student_df

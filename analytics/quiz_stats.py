"""
Quiz Statistics
===============

Per-quiz and global rollups. Attempt-level numbers (counts, averages, pass rate)
are computed over every attempt; score category distributions are computed over
the best attempt of each student, so every student votes once.
"""

import collections
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from analytics.best_attempts import AttemptKey
from analytics.categories import categorize
from models.course_models import Quiz, QuizAttempt
from models.report_models import CategoryCounts, GlobalStats, QuizRollup

UNKNOWN_QUIZ_TITLE = "Unknown Quiz"


@dataclass
class QuizStatsResult:
    global_stats: GlobalStats
    per_quiz: Dict[str, QuizRollup] = field(default_factory=dict)


def pass_rate(passed_attempts: int, total_attempts: int) -> float:
    if total_attempts == 0:
        return 0.0
    return passed_attempts / total_attempts * 100


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _build_rollup(quiz_id: str, attempts: List[QuizAttempt], best: List[QuizAttempt],
                  quiz: Optional[Quiz]) -> QuizRollup:
    passed = sum(1 for a in attempts if a.passed)
    scores = [a.score for a in attempts]

    categories = CategoryCounts()
    for attempt in best:
        categories.add(categorize(attempt.percentage))

    return QuizRollup(
        quiz_id=quiz_id,
        quiz_title=quiz.title if quiz else UNKNOWN_QUIZ_TITLE,
        topic_name=quiz.topic_name if quiz else attempts[0].topic_name,
        course_name=quiz.course_name if quiz else None,
        level_name=quiz.level_name if quiz else None,
        total_attempts=len(attempts),
        passed_attempts=passed,
        failed_attempts=len(attempts) - passed,
        average_score=_mean(scores),
        average_percentage=_mean([a.percentage for a in attempts]),
        pass_rate=pass_rate(passed, len(attempts)),
        total_students=len({a.student_id for a in attempts}),
        best_score=max(scores, default=0.0),
        worst_score=min(scores, default=0.0),
        score_categories=categories,
    )


def _global_stats(attempts: List[QuizAttempt], best_attempts: Mapping[AttemptKey, QuizAttempt]) -> GlobalStats:
    # Best showing per student across every quiz in scope
    student_best: Dict[str, float] = {}
    for (student_id, _), attempt in best_attempts.items():
        if attempt.percentage > student_best.get(student_id, -1):
            student_best[student_id] = attempt.percentage

    categories = CategoryCounts()
    for percentage in student_best.values():
        categories.add(categorize(percentage))

    passed = sum(1 for a in attempts if a.passed)
    return GlobalStats(
        total_attempts=len(attempts),
        completed_attempts=sum(1 for a in attempts if a.status == "completed"),
        passed_attempts=passed,
        failed_attempts=len(attempts) - passed,
        average_score=round(_mean([a.score for a in attempts]), 2),
        average_percentage=round(_mean([a.percentage for a in attempts]), 2),
        total_students=len({a.student_id for a in attempts}),
        unique_quizzes=len({a.quiz_id for a in attempts}),
        score_categories=categories,
    )


def aggregate_quiz_stats(attempts: List[QuizAttempt],
                         best_attempts: Mapping[AttemptKey, QuizAttempt],
                         quizzes: Optional[Mapping[str, Quiz]] = None) -> QuizStatsResult:
    """
    Builds the global stats and one rollup per quiz present in the feed.
    `quizzes` supplies titles and course placement; unknown quizzes fall back to
    the attempt's topic name and a placeholder title.
    """
    quizzes = quizzes or {}

    by_quiz: Dict[str, List[QuizAttempt]] = collections.defaultdict(list)
    for attempt in attempts:
        by_quiz[attempt.quiz_id].append(attempt)

    best_by_quiz: Dict[str, List[QuizAttempt]] = collections.defaultdict(list)
    for (_, quiz_id), attempt in best_attempts.items():
        best_by_quiz[quiz_id].append(attempt)

    per_quiz = {
        quiz_id: _build_rollup(quiz_id, quiz_attempts, best_by_quiz.get(quiz_id, []), quizzes.get(quiz_id))
        for quiz_id, quiz_attempts in by_quiz.items()
    }
    return QuizStatsResult(global_stats=_global_stats(attempts, best_attempts), per_quiz=per_quiz)

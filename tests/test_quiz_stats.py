"""Unit tests for per-quiz and global rollups."""

import pytest

from analytics.best_attempts import reduce_best_attempts
from analytics.quiz_stats import UNKNOWN_QUIZ_TITLE, aggregate_quiz_stats, pass_rate
from models.course_models import Quiz


def _aggregate(attempts, quizzes=None):
    return aggregate_quiz_stats(attempts, reduce_best_attempts(attempts), quizzes)


class TestPassRate:

    def test_ratio_as_percentage(self):
        assert pass_rate(3, 4) == 75.0

    def test_zero_attempts(self):
        assert pass_rate(0, 0) == 0


class TestQuizRollup:

    def test_attempt_level_counts(self, make_attempt):
        attempts = [
            make_attempt(student_id="stu-a", percentage=60, score=6),
            make_attempt(student_id="stu-a", percentage=80, score=8),
            make_attempt(student_id="stu-b", percentage=90, score=9),
            make_attempt(student_id="stu-b", percentage=20, score=2),
        ]

        rollup = _aggregate(attempts).per_quiz["quiz-1"]

        assert rollup.total_attempts == 4
        assert rollup.passed_attempts == 3
        assert rollup.failed_attempts == 1
        assert rollup.pass_rate == 75.0
        assert rollup.total_students == 2
        assert rollup.average_score == pytest.approx(6.25)
        assert rollup.best_score == 9
        assert rollup.worst_score == 2

    def test_categories_count_one_vote_per_student(self, make_attempt):
        attempts = [
            make_attempt(student_id="stu-a", percentage=20),
            make_attempt(student_id="stu-a", percentage=40),
            make_attempt(student_id="stu-a", percentage=90),
            make_attempt(student_id="stu-b", percentage=60),
        ]

        categories = _aggregate(attempts).per_quiz["quiz-1"].score_categories

        assert categories.exceeding == 1
        assert categories.meeting == 1
        assert categories.approaching == 0
        assert categories.below_expectation == 0
        assert categories.total() == 2

    def test_zero_best_counts_as_no_attempt(self, make_attempt):
        categories = _aggregate([make_attempt(percentage=0)]).per_quiz["quiz-1"].score_categories

        assert categories.no_attempt == 1
        assert categories.below_expectation == 0

    def test_metadata_from_quiz_reference(self, make_attempt):
        quizzes = {"quiz-1": Quiz(id="quiz-1", title="Loops A", topic_name="Loops",
                                  course_name="Coding", level_name="Level 1")}

        rollup = _aggregate([make_attempt()], quizzes).per_quiz["quiz-1"]

        assert rollup.quiz_title == "Loops A"
        assert rollup.course_name == "Coding"
        assert rollup.level_name == "Level 1"

    def test_unknown_quiz_falls_back_to_attempt_topic(self, make_attempt):
        rollup = _aggregate([make_attempt(topic_name="Events")]).per_quiz["quiz-1"]

        assert rollup.quiz_title == UNKNOWN_QUIZ_TITLE
        assert rollup.topic_name == "Events"


class TestGlobalStats:

    def test_empty_scope_is_zero_valued(self):
        result = _aggregate([])

        assert result.per_quiz == {}
        assert result.global_stats.total_attempts == 0
        assert result.global_stats.average_score == 0
        assert result.global_stats.score_categories.total() == 0

    def test_global_views(self, make_attempt):
        attempts = [
            make_attempt(student_id="stu-a", quiz_id="quiz-1", percentage=30, score=3),
            make_attempt(student_id="stu-a", quiz_id="quiz-2", percentage=70, score=7),
            make_attempt(student_id="stu-b", quiz_id="quiz-1", percentage=10, score=1, status="in_progress"),
        ]

        stats = _aggregate(attempts).global_stats

        assert stats.total_attempts == 3
        assert stats.completed_attempts == 2
        assert stats.passed_attempts == 1
        assert stats.failed_attempts == 2
        assert stats.total_students == 2
        assert stats.unique_quizzes == 2
        assert stats.average_score == pytest.approx(3.67)
        assert stats.average_percentage == pytest.approx(36.67)
        # Each student's best showing across every quiz
        assert stats.score_categories.meeting == 1
        assert stats.score_categories.below_expectation == 1
        assert stats.score_categories.approaching == 0

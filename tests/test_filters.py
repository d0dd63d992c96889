"""Unit tests for cascading filters and scope matching."""

from datetime import date, datetime

import pytest

from filters.scope import FilterScope, FilterState
from models.course_models import Option, Quiz, Student


@pytest.fixture
def state():
    state = FilterState()
    for key in ("school_id", "class_id", "course_id", "course_level_id", "topic_id", "quiz_id"):
        state.set_options(key, [Option(id=f"{key}-1", name=key)])
    return state


class TestFilterState:

    def test_course_change_clears_downstream_values_and_options(self, state):
        state.set_filter("course_id", "c1")
        state.set_filter("course_level_id", "l1")
        state.set_filter("topic_id", "t1")
        state.set_filter("quiz_id", "q1")
        state.set_options("course_level_id", [Option(id="l1", name="Level 1")])

        cleared = state.set_filter("course_id", None)

        assert cleared == ["course_level_id", "topic_id", "quiz_id"]
        assert state.scope.course_level_id is None
        assert state.scope.topic_id is None
        assert state.scope.quiz_id is None
        assert state.options("course_level_id") == []
        assert state.options("topic_id") == []
        assert state.options("quiz_id") == []
        # The course list itself is not a dependent
        assert state.options("course_id") != []

    def test_middle_of_chain_only_clears_after_it(self, state):
        state.set_filter("course_id", "c1")
        state.set_filter("course_level_id", "l1")
        state.set_filter("topic_id", "t1")

        state.set_filter("course_level_id", "l2")

        assert state.scope.course_id == "c1"
        assert state.scope.course_level_id == "l2"
        assert state.scope.topic_id is None
        assert state.options("topic_id") == []

    def test_chains_are_independent(self, state):
        state.set_filter("school_id", "s1")
        state.set_filter("class_id", "k1")
        state.set_filter("course_id", "c1")
        state.set_options("course_level_id", [Option(id="l1", name="Level 1")])

        state.set_filter("school_id", "s2")

        assert state.scope.class_id is None
        assert state.scope.course_id == "c1"
        assert state.options("course_level_id") != []

    def test_same_value_is_noop(self, state):
        state.set_filter("course_id", "c1")
        state.set_filter("course_level_id", "l1")

        assert state.set_filter("course_id", "c1") == []
        assert state.scope.course_level_id == "l1"

    def test_orthogonal_filters_clear_nothing(self, state):
        state.set_filter("quiz_id", "q1")

        assert state.set_filter("status", "passed") == []
        assert state.set_filter("date_from", date(2025, 1, 1)) == []
        assert state.scope.quiz_id == "q1"

    def test_rejects_unknown_key_and_status(self, state):
        with pytest.raises(ValueError):
            state.set_filter("teacher_id", "x")
        with pytest.raises(ValueError):
            state.set_filter("status", "graded")

    def test_next_option_key(self, state):
        assert state.next_option_key("school_id") == "class_id"
        assert state.next_option_key("topic_id") == "quiz_id"
        assert state.next_option_key("quiz_id") is None
        assert state.next_option_key("status") is None

    def test_reset(self, state):
        state.set_filter("school_id", "s1")
        state.set_filter("status", "failed")

        state.reset()

        assert state.scope == FilterScope()
        assert state.options("school_id") != []
        assert state.options("class_id") == []


class TestFilterScope:

    def test_to_params_drops_empty_and_all(self):
        scope = FilterScope(class_id="k1", date_from=date(2025, 3, 1), status="all")

        assert scope.to_params() == {"class_id": "k1", "date_from": "2025-03-01"}
        assert FilterScope(status="failed").to_params() == {"status": "failed"}

    @pytest.mark.parametrize("status,attempt_status,passed,expected", [
        ("all", "completed", False, True),
        ("all", "in_progress", False, False),
        ("passed", "completed", True, True),
        ("passed", "completed", False, False),
        ("failed", "completed", False, True),
        ("in_progress", "in_progress", False, True),
        ("in_progress", "completed", True, False),
    ])
    def test_status_matching(self, make_attempt, status, attempt_status, passed, expected):
        attempt = make_attempt(status=attempt_status, passed=passed)

        assert FilterScope(status=status).matches(attempt) is expected

    def test_inclusive_date_range(self, make_attempt):
        scope = FilterScope(date_from=date(2025, 3, 1), date_to=date(2025, 3, 31))

        assert scope.matches(make_attempt(attempted_at=datetime(2025, 3, 31, 23, 59)))
        assert not scope.matches(make_attempt(attempted_at=datetime(2025, 4, 1, 0, 0)))

    def test_hierarchy_matching(self, make_attempt):
        quiz = Quiz(id="quiz-1", title="Q", topic_name="Loops", course_name="C", level_name="L",
                    topic_id="t1", course_level_id="l1", course_id="c1")
        student = Student(id="stu-a", first_name="A", last_name="B", username="ab",
                          class_id="k1", school_id="s1")
        attempt = make_attempt()

        assert FilterScope(course_id="c1", school_id="s1").matches(attempt, quiz, student)
        assert not FilterScope(course_level_id="l2").matches(attempt, quiz, student)
        assert not FilterScope(class_id="k2").matches(attempt, quiz, student)

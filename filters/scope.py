"""
Filter Scope
============

Cascading report filters. Two independent chains, school -> class and
course -> level -> topic -> quiz, plus the orthogonal date range and status.
Changing a filter clears every filter after it in the same chain together with
the option lists fetched for those filters.
"""

from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Dict, List, Optional

from models.course_models import Option, Quiz, QuizAttempt, Student

SCHOOL_CHAIN = ("school_id", "class_id")
COURSE_CHAIN = ("course_id", "course_level_id", "topic_id", "quiz_id")
ORTHOGONAL = ("date_from", "date_to", "status")
STATUSES = ("all", "passed", "failed", "in_progress")


@dataclass(frozen=True)
class FilterScope:
    school_id: Optional[str] = None
    class_id: Optional[str] = None
    course_id: Optional[str] = None
    course_level_id: Optional[str] = None
    topic_id: Optional[str] = None
    quiz_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: str = "all"

    def to_params(self) -> Dict[str, str]:
        """Query parameters for the attempt fetch; empty values and status "all" are omitted."""
        params = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if not value or (f.name == "status" and value == "all"):
                continue
            params[f.name] = value.isoformat() if isinstance(value, date) else str(value)
        return params

    def matches_status(self, attempt: QuizAttempt) -> bool:
        if self.status == "in_progress":
            return attempt.status == "in_progress"
        if attempt.status != "completed":
            return False
        if self.status == "passed":
            return attempt.passed
        if self.status == "failed":
            return not attempt.passed
        return True

    def matches_dates(self, attempt: QuizAttempt) -> bool:
        if not (self.date_from or self.date_to):
            return True
        if attempt.attempted_at is None:
            return False
        day = attempt.attempted_at.date()
        if self.date_from and day < self.date_from:
            return False
        if self.date_to and day > self.date_to:
            return False
        return True

    def matches(self, attempt: QuizAttempt, quiz: Optional[Quiz] = None,
                student: Optional[Student] = None) -> bool:
        """Applies the whole scope to one attempt joined with its quiz and student."""
        if self.quiz_id and attempt.quiz_id != self.quiz_id:
            return False
        if not (self.matches_status(attempt) and self.matches_dates(attempt)):
            return False

        for key, actual in (("topic_id", quiz.topic_id if quiz else None),
                            ("course_level_id", quiz.course_level_id if quiz else None),
                            ("course_id", quiz.course_id if quiz else None),
                            ("class_id", student.class_id if student else None),
                            ("school_id", student.school_id if student else None)):
            expected = getattr(self, key)
            if expected and actual != expected:
                return False
        return True


def _chain_of(key: str):
    for chain in (SCHOOL_CHAIN, COURSE_CHAIN):
        if key in chain:
            return chain
    return None


class FilterState:
    """
    Mutable filter selection for one dashboard session. Option lists are cached
    per filter key and invalidated together with the filter they belong to.
    """

    def __init__(self):
        self._scope = FilterScope()
        self._options: Dict[str, List[Option]] = {}

    @property
    def scope(self) -> FilterScope:
        return self._scope

    def get(self, key: str):
        return getattr(self._scope, key)

    def set_filter(self, key: str, value) -> List[str]:
        """
        Sets one filter and returns the keys that were cleared as a consequence.
        Setting a filter to its current value changes nothing.
        """
        if key not in SCHOOL_CHAIN + COURSE_CHAIN + ORTHOGONAL:
            raise ValueError(f"unknown filter {key!r}")
        if key == "status":
            value = value or "all"
            if value not in STATUSES:
                raise ValueError(f"unknown status {value!r}")
        else:
            value = value or None

        if getattr(self._scope, key) == value:
            return []

        updates = {key: value}
        cleared = []
        chain = _chain_of(key)
        if chain:
            for dependent in chain[chain.index(key) + 1:]:
                updates[dependent] = None
                self._options.pop(dependent, None)
                cleared.append(dependent)

        self._scope = replace(self._scope, **updates)
        return cleared

    def next_option_key(self, key: str) -> Optional[str]:
        """The filter whose option list depends on `key`, if any."""
        chain = _chain_of(key)
        if not chain or chain.index(key) + 1 >= len(chain):
            return None
        return chain[chain.index(key) + 1]

    def set_options(self, key: str, options: List[Option]):
        self._options[key] = list(options)

    def options(self, key: str) -> List[Option]:
        return list(self._options.get(key, []))

    def reset(self):
        """Clears every selection; top-level option lists (schools, courses) are kept."""
        self._scope = FilterScope()
        for key in SCHOOL_CHAIN[1:] + COURSE_CHAIN[1:]:
            self._options.pop(key, None)

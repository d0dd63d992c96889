"""
Topic Matrix
============

Builds the per-class progress grid (student x topic) for every enrolled course
level. Quiz feeds identify topics only by name, so names are resolved through a
normalized lookup table built once from the enrolled levels' topics.
"""

import html
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from analytics.best_attempts import reduce_best_attempts, screen_attempts
from analytics.categories import categorize, display_category
from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Quiz,
                                  QuizAttempt, Student, Topic)
from models.report_models import LevelMatrix, MatrixCell, TopicMatrix

logger = logging.getLogger(__name__)


def normalize_topic_name(name: Optional[str]) -> str:
    return (name or "").strip().casefold()


@dataclass(frozen=True)
class TopicResolution:
    name: str
    topic_id: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.topic_id is not None


class TopicLookup:
    """Normalized topic name -> topic id, built once per computation."""

    def __init__(self, topics: Iterable[Topic]):
        self._ids: Dict[str, str] = {}
        # Shadowed topics, as (name, dropped topic id, kept topic id)
        self.duplicates: List[tuple] = []
        for topic in topics:
            key = normalize_topic_name(topic.name)
            if key in self._ids:
                logger.warning("Duplicate topic name %r (topic %s); keeping topic %s",
                               topic.name, topic.id, self._ids[key])
                self.duplicates.append((topic.name, topic.id, self._ids[key]))
                continue
            self._ids[key] = topic.id

    def __len__(self):
        return len(self._ids)

    def resolve(self, name: Optional[str]) -> TopicResolution:
        return TopicResolution(name=name or "", topic_id=self._ids.get(normalize_topic_name(name)))


def _student_sort_key(student: Student):
    return student.last_name.casefold(), student.first_name.casefold()


def _quiz_topic_names(quizzes: Iterable[Quiz], attempts: Iterable[QuizAttempt]) -> Dict[str, str]:
    """Topic name per quiz id; quiz reference data wins over the name carried on attempts."""
    names = {}
    for attempt in attempts:
        names.setdefault(attempt.quiz_id, attempt.topic_name)
    for quiz in quizzes:
        names[quiz.id] = quiz.topic_name
    return names


def build_topic_matrix(class_id: str,
                       enrollments: Iterable[CourseLevelEnrollment],
                       levels: Mapping[str, CourseLevel],
                       topics_by_level: Mapping[str, List[Topic]],
                       quizzes: Iterable[Quiz],
                       attempts: Iterable[QuizAttempt],
                       students: Iterable[Student],
                       class_info: Optional[ClassInfo] = None) -> TopicMatrix:
    """
    One LevelMatrix per enrolled level that has both a CourseLevel record and a
    topic list. Levels missing from `topics_by_level` are omitted, which is how
    a failed topics fetch shows up. Cells hold the best attempt on any quiz
    resolved to the topic; pairs without attempts have no cell.
    """
    enrolled_levels = []
    for enrollment in enrollments:
        if not enrollment.is_enrolled:
            continue
        level = levels.get(enrollment.course_level_id)
        if level is None or enrollment.course_level_id not in topics_by_level:
            continue
        enrolled_levels.append(level)

    enrolled_topics = [topic for level in enrolled_levels for topic in topics_by_level[level.id]]
    lookup = TopicLookup(enrolled_topics)

    attempts = list(attempts)
    accepted, _ = screen_attempts(attempts)

    quiz_topic: Dict[str, str] = {}
    unresolved: List[str] = []
    for quiz_id, topic_name in _quiz_topic_names(list(quizzes), accepted).items():
        resolution = lookup.resolve(topic_name)
        if resolution.resolved:
            quiz_topic[quiz_id] = resolution.topic_id
        else:
            logger.warning("Topic name %r of quiz %s does not match any enrolled topic",
                           resolution.name, quiz_id)
            if resolution.name not in unresolved:
                unresolved.append(resolution.name)

    roster = sorted(students, key=_student_sort_key)
    roster_ids = {student.id for student in roster}

    best_per_topic: Dict[str, Dict[str, QuizAttempt]] = {}
    for (student_id, quiz_id), attempt in reduce_best_attempts(accepted).items():
        topic_id = quiz_topic.get(quiz_id)
        if topic_id is None or student_id not in roster_ids:
            continue
        student_best = best_per_topic.setdefault(student_id, {})
        current = student_best.get(topic_id)
        if current is None or attempt.percentage > current.percentage:
            student_best[topic_id] = attempt

    matrix = TopicMatrix(class_id=class_id, class_info=class_info, unresolved_topics=unresolved)
    matrix.warnings.extend(
        f"Topic name {name!r} is shared by several enrolled topics; quizzes are counted under topic "
        f"{kept_id} and topic {dropped_id} shows no results"
        for name, dropped_id, kept_id in lookup.duplicates
    )
    for level in enrolled_levels:
        level_topics = sorted(topics_by_level[level.id], key=lambda t: t.order_index)
        topic_ids = {topic.id for topic in level_topics}

        cells = {}
        for student in roster:
            row = {
                topic_id: MatrixCell(percentage=best.percentage, category=categorize(best.percentage),
                                     passed=best.passed, quiz_id=best.quiz_id)
                for topic_id, best in best_per_topic.get(student.id, {}).items()
                if topic_id in topic_ids
            }
            if row:
                cells[student.id] = row

        matrix.levels.append(LevelMatrix(level=level, topics=level_topics, students=roster, cells=cells))
    return matrix


def cell_display(cell: Optional[MatrixCell]) -> str:
    return display_category(cell.category if cell else None)


def level_matrix_frame(level: LevelMatrix) -> pd.DataFrame:
    """Display strings, one row per student and one column per topic."""
    names = [student.full_name or student.username for student in level.students]
    counts = Counter(names)
    # Students sharing a name are told apart by username (or id)
    index = [
        f"{name} ({student.username or student.id})" if counts[name] > 1 else name
        for name, student in zip(names, level.students)
    ]
    rows = [[cell_display(level.cell(student.id, topic.id)) for topic in level.topics]
            for student in level.students]
    return pd.DataFrame(rows, index=index, columns=[t.name for t in level.topics])


def matrix_to_html(matrix: TopicMatrix) -> str:
    """Printable report: class header followed by one table per level with topics."""
    parts = []
    info = matrix.class_info
    if info:
        parts.append(f"<h2>{html.escape(info.school_name)} - {html.escape(info.name)}</h2>")
        tutors = [f"{label}: {html.escape(name)}"
                  for label, name in (("Lead Tutor", info.lead_tutor), ("Assistant Tutor", info.assistant_tutor))
                  if name]
        if tutors:
            parts.append(f"<p>{' | '.join(tutors)}</p>")

    tables = [level for level in matrix.levels if level.topics]
    for level in tables:
        parts.append(f"<h3>{html.escape(level.title)}</h3>")
        parts.append(level_matrix_frame(level).to_html(escape=True))

    if not tables:
        parts.append("<p>No enrolled course levels found for this class.</p>")
    return "\n".join(parts)

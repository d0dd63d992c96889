"""
Report Loader (Async Version)
=============================
Gathers everything a report needs with concurrent, bounded fetches
(asyncio.gather behind a semaphore), then hands the collected dataset to the
pure analytics functions. Independent units (one course level, one quiz) are
retried once and skipped on a second failure so the rest of the report survives.
"""

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List

from analytics.report import AggregationContext, build_performance_report
from analytics.topic_matrix import build_topic_matrix
from fetcher.repositories import (AttemptRepository, ClassLookup, CourseStructureRepository,
                                  EnrollmentRepository, RepositoryError, StudentRepository)
from filters.scope import FilterScope
from models.course_models import CourseLevel, Quiz
from models.report_models import PerformanceReport, TopicMatrix

logger = logging.getLogger(__name__)

_FAILED = object()


class ReportLoader:
    def __init__(self, attempts: AttemptRepository, enrollments: EnrollmentRepository,
                 courses: CourseStructureRepository, students: StudentRepository,
                 classes: ClassLookup, max_concurrency: int = 8, retry_backoff: float = 0.5):
        self.attempts = attempts
        self.enrollments = enrollments
        self.courses = courses
        self.students = students
        self.classes = classes
        self.max_concurrency = max_concurrency
        self.retry_backoff = retry_backoff

    @classmethod
    def from_repository(cls, repository, **kwargs) -> "ReportLoader":
        """Builds a loader over one object implementing every repository protocol."""
        kwargs.setdefault("max_concurrency", int(os.getenv("PERFORMANCE_FETCH_CONCURRENCY", 8)))
        kwargs.setdefault("retry_backoff", float(os.getenv("PERFORMANCE_RETRY_BACKOFF", 0.5)))
        return cls(repository, repository, repository, repository, repository, **kwargs)

    async def _fetch(self, label: str, factory: Callable[[], Awaitable[Any]], semaphore: asyncio.Semaphore):
        """Runs one fetch, retrying once after a backoff; the second failure propagates."""
        try:
            async with semaphore:
                return await factory()
        except RepositoryError as e:
            logger.warning("Fetch of %s failed (%s); retrying in %ss", label, e, self.retry_backoff)
        # The slot is released while backing off
        await asyncio.sleep(self.retry_backoff)
        async with semaphore:
            return await factory()

    async def _fetch_unit(self, label: str, factory: Callable[[], Awaitable[Any]],
                          semaphore: asyncio.Semaphore, warnings: List[str]):
        """Like _fetch, but a second failure skips the unit and records a warning."""
        try:
            return await self._fetch(label, factory, semaphore)
        except RepositoryError as e:
            logger.warning("Skipping %s: %s", label, e)
            warnings.append(f"Could not load {label}: {e}")
            return _FAILED

    # ==========================================
    # FLAT REPORT
    # ==========================================

    async def load_performance_report(self, scope: FilterScope, generation: int = 0) -> PerformanceReport:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        warnings: List[str] = []

        attempts = await self._fetch("quiz attempts", lambda: self.attempts.list_attempts(scope), semaphore)

        quiz_ids = list(dict.fromkeys(a.quiz_id for a in attempts))
        student_ids = list(dict.fromkeys(a.student_id for a in attempts))

        quiz_tasks = [
            self._fetch_unit(f"quiz {quiz_id}", lambda q=quiz_id: self.courses.get_quiz(q), semaphore, warnings)
            for quiz_id in quiz_ids
        ]
        student_task = self._fetch_unit("students", lambda: self.students.get_students(student_ids),
                                        semaphore, warnings)
        *quiz_results, student_result = await asyncio.gather(*quiz_tasks, student_task)

        quizzes = {quiz_id: quiz for quiz_id, quiz in zip(quiz_ids, quiz_results) if quiz is not _FAILED}
        students = {} if student_result is _FAILED else {s.id: s for s in student_result}
        missing_students = [sid for sid in student_ids if sid not in students]
        if student_result is not _FAILED and missing_students:
            logger.warning("No student records for %s", ", ".join(missing_students))
            warnings.append(f"Student records not found: {', '.join(missing_students)}")

        class_ids = list(dict.fromkeys(s.class_id for s in students.values() if s.class_id))
        class_results = await asyncio.gather(*[
            self._fetch_unit(f"class {class_id}", lambda c=class_id: self.classes.get_class(c),
                             semaphore, warnings)
            for class_id in class_ids
        ])
        class_infos = [info for info in class_results if info is not _FAILED]

        context = AggregationContext(
            attempts=attempts,
            quizzes=quizzes,
            students=students,
            class_names={info.id: info.name for info in class_infos},
            school_names={info.school_id: info.school_name for info in class_infos if info.school_id},
            warnings=warnings,
            partial=bool(warnings),
            generation=generation,
        )
        return build_performance_report(context)

    # ==========================================
    # CLASS TOPIC MATRIX
    # ==========================================

    async def load_class_matrix(self, class_id: str, generation: int = 0) -> TopicMatrix:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        warnings: List[str] = []

        enrollments, roster, class_info = await asyncio.gather(
            self._fetch("enrollments", lambda: self.enrollments.list_enrollments(class_id), semaphore),
            self._fetch("class students", lambda: self.students.list_class_students(class_id), semaphore),
            self._fetch_unit("class details", lambda: self.classes.get_class(class_id), semaphore, warnings),
        )
        enrolled = [e for e in enrollments if e.is_enrolled]

        # Levels missing from the enrollment payload are looked up individually
        missing = [e.course_level_id for e in enrolled if e.course_level is None]
        looked_up = await asyncio.gather(*[
            self._fetch_unit(f"course level {level_id}", lambda lv=level_id: self.courses.get_level(lv),
                             semaphore, warnings)
            for level_id in missing
        ])
        levels: Dict[str, CourseLevel] = {e.course_level_id: e.course_level for e in enrolled if e.course_level}
        levels.update({lv.id: lv for lv in looked_up if lv is not _FAILED})

        level_ids = list(levels)
        topic_tasks = [
            self._fetch_unit(f"topics of level {level_id}", lambda lv=level_id: self.courses.list_topics(lv),
                             semaphore, warnings)
            for level_id in level_ids
        ]
        quiz_tasks = [
            self._fetch_unit(f"quizzes of level {level_id}", lambda lv=level_id: self.courses.list_level_quizzes(lv),
                             semaphore, warnings)
            for level_id in level_ids
        ]
        results = await asyncio.gather(*topic_tasks, *quiz_tasks)
        topic_results, quiz_results = results[:len(level_ids)], results[len(level_ids):]

        topics_by_level = {}
        quizzes: List[Quiz] = []
        for level_id, topics, level_quizzes in zip(level_ids, topic_results, quiz_results):
            if topics is _FAILED or level_quizzes is _FAILED:
                continue
            topics_by_level[level_id] = topics
            quizzes.extend(level_quizzes)

        attempt_results = await asyncio.gather(*[
            self._fetch_unit(f"attempts of quiz {quiz.id}",
                             lambda q=quiz.id: self.attempts.list_quiz_attempts(q, class_id), semaphore, warnings)
            for quiz in quizzes
        ])
        attempts = [a for result in attempt_results if result is not _FAILED for a in result]

        matrix = build_topic_matrix(
            class_id=class_id,
            enrollments=enrolled,
            levels=levels,
            topics_by_level=topics_by_level,
            quizzes=quizzes,
            attempts=attempts,
            students=roster,
            class_info=None if class_info is _FAILED else class_info,
        )
        matrix.partial = bool(warnings)
        matrix.warnings = warnings + matrix.warnings
        matrix.generation = generation
        return matrix


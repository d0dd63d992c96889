"""
Platform API Client (Async Version)
===================================
Read-only access to the tutoring platform REST API using httpx.AsyncClient.
Implements every repository protocol the report loader consumes.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx

from fetcher.parser import (parse_attempt, parse_class_info, parse_enrollment, parse_level,
                            parse_option, parse_quiz, parse_student, parse_topic)
from fetcher.repositories import RepositoryError
from filters.scope import FilterScope
from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Option, Quiz,
                                  QuizAttempt, Student, Topic)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = "http://localhost:3001/api"
    token: Optional[str] = None
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "ApiSettings":
        return cls(
            base_url=os.getenv("PERFORMANCE_API_URL", cls.base_url),
            token=os.getenv("PERFORMANCE_API_TOKEN") or None,
            timeout=float(os.getenv("PERFORMANCE_API_TIMEOUT", cls.timeout)),
        )


class PerformanceApiClient:
    def __init__(self, settings: ApiSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Accept": "application/json"}
        if settings.token:
            headers["Authorization"] = f"Bearer {settings.token}"
        self.client = httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/"),
            headers=headers,
            follow_redirects=True,
            timeout=settings.timeout,
            transport=transport,
        )

    async def _get(self, path: str, params: Optional[dict] = None):
        try:
            resp = await self.client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RepositoryError(f"GET {path} failed: {e}") from e

    async def _get_list(self, path: str, params: Optional[dict] = None) -> list:
        return await self._get(path, params) or []

    # ---- attempts ----

    async def list_attempts(self, scope: FilterScope) -> List[QuizAttempt]:
        return [parse_attempt(p) for p in await self._get_list("/quizzes/attempts", scope.to_params())]

    async def list_quiz_attempts(self, quiz_id: str, class_id: Optional[str] = None) -> List[QuizAttempt]:
        params = {"quiz_id": quiz_id}
        if class_id:
            params["class_id"] = class_id
        return [parse_attempt(p) for p in await self._get_list("/quizzes/attempts", params)]

    # ---- enrollment ----

    async def list_enrollments(self, class_id: str) -> List[CourseLevelEnrollment]:
        allocation = await self._get(f"/allocations/class/{class_id}") or {}
        return [parse_enrollment(p, class_id) for p in allocation.get("course_levels") or []]

    # ---- course structure ----

    async def list_courses(self) -> List[Option]:
        return [parse_option(p) for p in await self._get_list("/courses")]

    async def list_levels(self, course_id: str) -> List[CourseLevel]:
        return [parse_level(p) for p in await self._get_list(f"/courses/{course_id}/levels")]

    async def get_level(self, level_id: str) -> CourseLevel:
        return parse_level(await self._get(f"/courses/levels/{level_id}"))

    async def list_topics(self, level_id: str) -> List[Topic]:
        return [parse_topic(p, level_id) for p in await self._get_list(f"/courses/levels/{level_id}/topics")]

    async def list_level_quizzes(self, level_id: str) -> List[Quiz]:
        return [parse_quiz(p) for p in await self._get_list(f"/courses/levels/{level_id}/quizzes")]

    async def list_topic_quizzes(self, topic_id: str) -> List[Quiz]:
        return [parse_quiz(p) for p in await self._get_list(f"/quizzes/topic/{topic_id}")]

    async def get_quiz(self, quiz_id: str) -> Quiz:
        return parse_quiz(await self._get(f"/quizzes/{quiz_id}"))

    # ---- students and classes ----

    async def list_class_students(self, class_id: str) -> List[Student]:
        return [parse_student(p) for p in await self._get_list(f"/schools/classes/{class_id}/students")]

    async def get_students(self, student_ids: Sequence[str]) -> List[Student]:
        if not student_ids:
            return []
        payload = await self._get_list("/schools/students", {"ids": ",".join(student_ids)})
        return [parse_student(p) for p in payload]

    async def list_schools(self) -> List[Option]:
        return [parse_option(p) for p in await self._get_list("/schools")]

    async def list_classes(self, school_id: str) -> List[Option]:
        return [parse_option(p) for p in await self._get_list(f"/schools/{school_id}/classes")]

    async def get_class(self, class_id: str) -> ClassInfo:
        class_payload = await self._get(f"/schools/classes/{class_id}")
        school_payload = None
        if class_payload.get("school_id"):
            school_payload = await self._get(f"/schools/{class_payload['school_id']}")

        # Tutor names are optional header data
        try:
            allocation = await self._get(f"/allocations/class/{class_id}")
        except RepositoryError:
            logger.info("No allocation found for class %s", class_id)
            allocation = None
        return parse_class_info(class_payload, school_payload, allocation)

    async def close(self):
        """Closes the async client session."""
        await self.client.aclose()

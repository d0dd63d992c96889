"""Tests for the REST client and payload parsing, against an httpx mock transport."""

import math

import httpx
import pytest

from fetcher.api_client import ApiSettings, PerformanceApiClient
from fetcher.parser import parse_attempt, parse_enrollment, parse_quiz, parse_timestamp
from fetcher.repositories import RepositoryError
from filters.scope import FilterScope

ALLOCATION = {
    "class_id": "cls-1",
    "lead_tutor": {"first_name": "Amina", "last_name": "Odhiambo"},
    "course_levels": [
        {"course_level_id": "lvl-1", "enrollment_status": "enrolled",
         "course_level": {"id": "lvl-1", "name": "Level 1", "level_number": 1, "course_id": "crs-1",
                          "course": {"id": "crs-1", "name": "Coding"}}},
        {"id": "lvl-2", "enrollment_status": "completed", "name": "Level 2", "course_name": "Coding"},
    ],
}


def _client(routes, requests=None):
    def handler(request: httpx.Request):
        if requests is not None:
            requests.append(request)
        payload = routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=payload)

    return PerformanceApiClient(ApiSettings(base_url="http://platform.test/api", token="secret"),
                                transport=httpx.MockTransport(handler))


class TestPerformanceApiClient:

    @pytest.mark.asyncio
    async def test_attempts_use_scope_params_and_token(self):
        requests = []
        client = _client({"/api/quizzes/attempts": [
            {"id": "a1", "student_id": "s1", "quiz_id": "q1", "score": 8, "percentage": 80,
             "passed": True, "status": "completed", "completed_at": "2025-03-14T09:30:00.000Z",
             "quiz": {"title": "Loops A", "topic": {"name": "Loops"}}},
        ]}, requests)
        try:
            attempts = await client.list_attempts(FilterScope(class_id="cls-1", status="passed"))
        finally:
            await client.close()

        assert attempts[0].topic_name == "Loops"
        assert attempts[0].percentage == 80
        assert requests[0].url.params["class_id"] == "cls-1"
        assert requests[0].url.params["status"] == "passed"
        assert requests[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_enrollments_from_allocation(self):
        client = _client({"/api/allocations/class/cls-1": ALLOCATION})
        try:
            enrollments = await client.list_enrollments("cls-1")
        finally:
            await client.close()

        assert [e.course_level_id for e in enrollments] == ["lvl-1", "lvl-2"]
        assert enrollments[0].is_enrolled
        assert enrollments[0].course_level.course_name == "Coding"
        assert not enrollments[1].is_enrolled

    @pytest.mark.asyncio
    async def test_http_errors_become_repository_errors(self):
        client = _client({})
        try:
            with pytest.raises(RepositoryError):
                await client.list_topics("lvl-1")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_class_info_without_allocation(self):
        client = _client({
            "/api/schools/classes/cls-1": {"id": "cls-1", "name": "Grade 5", "school_id": "sch-1"},
            "/api/schools/sch-1": {"id": "sch-1", "name": "Riverside"},
        })
        try:
            info = await client.get_class("cls-1")
        finally:
            await client.close()

        assert info.name == "Grade 5"
        assert info.school_name == "Riverside"
        assert info.lead_tutor == ""


class TestParser:

    def test_timestamp(self):
        assert parse_timestamp("2025-03-14T09:30:00Z").day == 14
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None

    def test_missing_percentage_becomes_nan(self):
        attempt = parse_attempt({"student_id": "s1", "quiz_id": "q1", "percentage": None})

        assert math.isnan(attempt.percentage)
        assert attempt.status == "completed"

    def test_quiz_nested_placement(self):
        quiz = parse_quiz({
            "id": "q1", "title": "Loops A", "topic_id": "t1",
            "topic": {"id": "t1", "name": "Loops", "level_id": "l1",
                      "level": {"id": "l1", "name": "Level 1", "course_id": "c1", "course": {"name": "Coding"}}},
        })

        assert (quiz.topic_name, quiz.level_name, quiz.course_name) == ("Loops", "Level 1", "Coding")
        assert (quiz.topic_id, quiz.course_level_id, quiz.course_id) == ("t1", "l1", "c1")

    def test_flat_enrollment(self):
        enrollment = parse_enrollment(ALLOCATION["course_levels"][1], "cls-1")

        assert enrollment.course_level_id == "lvl-2"
        assert enrollment.course_level.name == "Level 2"

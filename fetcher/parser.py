"""
JSON Payload Parser
===================

Converts platform API payloads into model dataclasses. The API nests related
records (attempt -> quiz -> topic -> level -> course) and some endpoints return
them flattened, so each parser accepts both shapes.
"""

from datetime import datetime
from typing import Optional

from models.course_models import (ClassInfo, CourseLevel, CourseLevelEnrollment, Option, Quiz,
                                  QuizAttempt, Student, Topic)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parses ISO-8601 timestamps as returned by the API.
    Example: "2025-03-14T09:30:00.000Z"
    """
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def _number(value) -> float:
    # Unparseable numbers become NaN so that screening rejects the record
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def _nested(payload: dict, *path) -> dict:
    for key in path:
        payload = payload.get(key) or {}
        if isinstance(payload, list):
            payload = payload[0] if payload else {}
    return payload


def _person_name(payload: Optional[dict]) -> str:
    if not payload:
        return ""
    return f"{payload.get('first_name') or ''} {payload.get('last_name') or ''}".strip()


def parse_option(payload: dict) -> Option:
    return Option(id=str(payload["id"]), name=payload.get("name") or payload.get("title") or "")


def parse_attempt(payload: dict) -> QuizAttempt:
    topic = _nested(payload, "quiz", "topic")
    return QuizAttempt(
        student_id=str(payload["student_id"]),
        quiz_id=str(payload["quiz_id"]),
        topic_name=payload.get("topic_name") or topic.get("name") or "",
        score=_number(payload.get("score", 0)),
        percentage=_number(payload.get("percentage")),
        passed=bool(payload.get("passed")),
        attempted_at=parse_timestamp(payload.get("completed_at") or payload.get("attempted_at")),
        status=payload.get("status") or "completed",
        attempt_id=str(payload["id"]) if payload.get("id") is not None else None,
    )


def parse_quiz(payload: dict) -> Quiz:
    topic = _nested(payload, "topic")
    level = _nested(topic, "level")
    course = _nested(level, "course")
    return Quiz(
        id=str(payload["id"]),
        title=payload.get("title") or "",
        topic_name=payload.get("topic_name") or topic.get("name") or "",
        course_name=payload.get("course_name") or course.get("name") or "",
        level_name=payload.get("level_name") or level.get("name") or "",
        total_points=_number(payload.get("total_points", 0)),
        passing_score=_number(payload.get("passing_score", 0)),
        topic_id=payload.get("topic_id") or topic.get("id"),
        course_level_id=topic.get("level_id") or level.get("id") or payload.get("course_level_id"),
        course_id=level.get("course_id") or payload.get("course_id"),
    )


def parse_topic(payload: dict, level_id: str) -> Topic:
    return Topic(
        id=str(payload["id"]),
        name=payload.get("name") or "",
        order_index=int(payload.get("order_index") or 0),
        level_id=level_id or payload.get("level_id") or "",
    )


def parse_level(payload: dict) -> CourseLevel:
    course = _nested(payload, "course")
    return CourseLevel(
        id=str(payload["id"]),
        name=payload.get("name") or "",
        level_number=int(payload.get("level_number") or 1),
        course_id=payload.get("course_id") or course.get("id") or "",
        course_name=payload.get("course_name") or course.get("name") or "",
    )


def parse_enrollment(payload: dict, class_id: str) -> CourseLevelEnrollment:
    """
    Allocation entries carry the level either nested under "course_level" or
    flattened onto the entry itself.
    """
    nested = _nested(payload, "course_level")
    level_id = str(payload.get("course_level_id") or nested.get("id") or payload.get("id"))

    level = None
    name = nested.get("name") or payload.get("name")
    if name:
        course = _nested(nested, "course")
        level = CourseLevel(
            id=level_id,
            name=name,
            level_number=int(nested.get("level_number") or payload.get("level_number") or 1),
            course_id=nested.get("course_id") or payload.get("course_id") or "",
            course_name=course.get("name") or payload.get("course_name") or "",
        )

    return CourseLevelEnrollment(
        class_id=class_id,
        course_level_id=level_id,
        enrollment_status=payload.get("enrollment_status") or "",
        course_level=level,
    )


def parse_student(payload: dict) -> Student:
    klass = _nested(payload, "class")
    return Student(
        id=str(payload["id"]),
        first_name=payload.get("first_name") or "",
        last_name=payload.get("last_name") or "",
        username=payload.get("username") or "",
        class_id=payload.get("class_id") or klass.get("id"),
        school_id=payload.get("school_id") or klass.get("school_id"),
    )


def parse_class_info(class_payload: dict, school_payload: Optional[dict] = None,
                     allocation: Optional[dict] = None) -> ClassInfo:
    school_payload = school_payload or _nested(class_payload, "school")
    allocation = allocation or {}
    return ClassInfo(
        id=str(class_payload["id"]),
        name=class_payload.get("name") or "",
        school_id=class_payload.get("school_id") or school_payload.get("id"),
        school_name=school_payload.get("name") or "",
        lead_tutor=_person_name(allocation.get("lead_tutor")),
        assistant_tutor=_person_name(allocation.get("assistant_tutor")),
    )

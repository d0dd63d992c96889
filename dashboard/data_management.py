"""
Data Management
===============

Session state and data loading for the dashboard. Every fetch opens its own
repository inside a fresh event loop and closes it afterwards; nothing fetched
is cached at module level.
"""

import asyncio
import logging
import os
from datetime import datetime

import streamlit as st

from fetcher.api_client import ApiSettings, PerformanceApiClient
from fetcher.generation import ReportSession
from fetcher.in_memory import InMemoryRepository
from fetcher.loader import ReportLoader
from fetcher.repositories import RepositoryError
from filters.scope import FilterState
from models.course_models import Option

logger = logging.getLogger(__name__)


def initialize_session_state():
    """Initializes session variables."""
    if 'filters' not in st.session_state:
        st.session_state.filters = FilterState()
    if 'report_session' not in st.session_state:
        st.session_state.report_session = ReportSession()
    if 'matrix_session' not in st.session_state:
        st.session_state.matrix_session = ReportSession()
    if 'last_sync' not in st.session_state:
        st.session_state.last_sync = None
    if 'last_auto_refresh' not in st.session_state:
        st.session_state.last_auto_refresh = 0


def open_repository(source):
    """`source` is either ApiSettings or a path to a JSON dataset."""
    if isinstance(source, ApiSettings):
        return PerformanceApiClient(source)
    return InMemoryRepository.from_json(source)


async def run_with_repository(source, work):
    repository = open_repository(source)
    try:
        return await work(repository)
    finally:
        if isinstance(repository, PerformanceApiClient):
            await repository.close()


def default_source():
    mock_path = os.getenv("PERFORMANCE_MOCK_DATA", "")
    if mock_path and os.path.exists(mock_path):
        return mock_path
    return ApiSettings.from_env()


# ==========================================
# FILTER OPTIONS
# ==========================================

async def _fetch_options(repository, key: str, filters: FilterState):
    if key == "school_id":
        return await repository.list_schools()
    if key == "class_id":
        return await repository.list_classes(filters.get("school_id"))
    if key == "course_id":
        return await repository.list_courses()
    if key == "course_level_id":
        levels = await repository.list_levels(filters.get("course_id"))
        return [Option(id=lv.id, name=lv.name) for lv in sorted(levels, key=lambda lv: lv.level_number)]
    if key == "topic_id":
        topics = await repository.list_topics(filters.get("course_level_id"))
        return [Option(id=t.id, name=t.name) for t in sorted(topics, key=lambda t: t.order_index)]
    if key == "quiz_id":
        return [Option(id=q.id, name=q.title) for q in await repository.list_topic_quizzes(filters.get("topic_id"))]
    raise ValueError(f"no option list for {key!r}")


def load_options(source, key: str):
    """Fetches the option list of one filter into the filter state."""
    filters: FilterState = st.session_state.filters
    try:
        options = asyncio.run(run_with_repository(source, lambda repo: _fetch_options(repo, key, filters)))
    except RepositoryError as e:
        logger.warning("Failed to load options for %s: %s", key, e)
        st.error(f"Failed to load options for {key}: {e}")
        options = []
    filters.set_options(key, options)


def change_filter(source, key: str, value):
    """Applies a filter change, then fetches the option list that depends on it."""
    filters: FilterState = st.session_state.filters
    filters.set_filter(key, value)
    dependent = filters.next_option_key(key)
    if dependent and value:
        load_options(source, dependent)


# ==========================================
# REPORTS
# ==========================================

def sync_performance_report(source):
    session: ReportSession = st.session_state.report_session
    scope = st.session_state.filters.scope

    async def compute(generation):
        return await run_with_repository(
            source,
            lambda repo: ReportLoader.from_repository(repo).load_performance_report(scope, generation))

    with st.spinner("Loading quiz performance..."):
        report = asyncio.run(session.run(compute))
    if report is not None:
        st.session_state.last_sync = report_timestamp()
    return session.result


def sync_class_matrix(source, class_id: str):
    session: ReportSession = st.session_state.matrix_session

    async def compute(generation):
        return await run_with_repository(
            source,
            lambda repo: ReportLoader.from_repository(repo).load_class_matrix(class_id, generation))

    with st.spinner("Loading class progress..."):
        matrix = asyncio.run(session.run(compute))
    if matrix is not None:
        st.session_state.last_sync = report_timestamp()
    return session.result


def report_timestamp():
    return datetime.now().strftime('%H:%M:%S')

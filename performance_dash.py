import logging
import os

import streamlit as st

from dashboard.data_management import (initialize_session_state, sync_class_matrix,
                                       sync_performance_report)
from dashboard.ui import (render_class_selection, render_filters, render_performance_report,
                          render_sidebar, render_topic_matrix)
from fetcher.repositories import RepositoryError


# ==========================================
# ENVIRONMENT & STATE
# ==========================================

def configure_logging():
    logging.basicConfig(
        level=os.getenv("PERFORMANCE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ==========================================
# VIEWS
# ==========================================

def run_quiz_performance(source, refresh):
    st.header("Quiz Performance")
    render_filters(source)

    scope = st.session_state.filters.scope
    session = st.session_state.report_session
    if refresh or session.result is None or st.session_state.get("report_scope") != scope:
        try:
            sync_performance_report(source)
            st.session_state.report_scope = scope
        except RepositoryError as e:
            st.error(f"Failed to fetch performance data: {e}")
            return

    if session.result is not None:
        render_performance_report(session.result)


def run_class_report(source, refresh):
    st.header("Class Student Performance Progress")
    class_id = render_class_selection(source)
    if not class_id:
        st.info("Please select a school and class to view the report.")
        return

    session = st.session_state.matrix_session
    if refresh or session.result is None or session.result.class_id != class_id:
        try:
            sync_class_matrix(source, class_id)
        except RepositoryError as e:
            st.error(f"Failed to load report data: {e}")
            return

    if session.result is not None:
        render_topic_matrix(session.result)


# ==========================================
# MAIN LOOP
# ==========================================

def run_dashboard():
    st.set_page_config(page_title="Quiz Performance Dash", layout="wide")
    configure_logging()
    initialize_session_state()

    view, source, refresh = render_sidebar()
    if view == "Quiz Performance":
        run_quiz_performance(source, refresh)
    else:
        run_class_report(source, refresh)


if __name__ == "__main__":
    run_dashboard()

"""
UI
==

This module implements the dashboard UI.
"""

import os
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from analytics.report import report_frames
from analytics.topic_matrix import level_matrix_frame, matrix_to_html
from dashboard.data_management import change_filter, load_options
from fetcher.api_client import ApiSettings
from filters.scope import STATUSES, FilterState
from models.report_models import PerformanceReport, TopicMatrix

CATEGORY_LABELS = {
    "exceeding": "Exceeding (76-100%)",
    "meeting": "Meeting (51-75%)",
    "approaching": "Approaching (26-50%)",
    "below_expectation": "Below Expectation (1-25%)",
    "no_attempt": "No Attempt (0%)",
}
CATEGORY_COLORS = {
    "Exceeding (76-100%)": "#15803d",
    "Meeting (51-75%)": "#22c55e",
    "Approaching (26-50%)": "#ca8a04",
    "Below Expectation (1-25%)": "#dc2626",
    "No Attempt (0%)": "#9ca3af",
}
CELL_STYLES = {
    "✓ EE": "color: #15803d; background-color: #f0fdf4",
    "✓ ME": "color: #16a34a; background-color: #f0fdf4",
    "AP": "color: #ca8a04; background-color: #fefce8",
    "BE": "color: #dc2626; background-color: #fef2f2",
    "X": "color: #dc2626; background-color: #fef2f2",
}


def render_sidebar():
    with st.sidebar:
        st.title("📊 Quiz Performance")
        st.header("Settings")
        view = st.radio("View", ["Quiz Performance", "Class Progress Report"])

        st.divider()
        st.subheader("Data Source")
        mock_path = st.text_input("Mock dataset (JSON)", value=os.getenv("PERFORMANCE_MOCK_DATA", ""))
        settings = ApiSettings.from_env()
        api_url = st.text_input("API URL", value=settings.base_url, disabled=bool(mock_path))
        token = st.text_input("API Token", type="password", value=settings.token or "", disabled=bool(mock_path))

        if mock_path:
            source = mock_path
        else:
            source = ApiSettings(base_url=api_url, token=token or None, timeout=settings.timeout)

        st.divider()
        st.subheader("Update Settings")
        enable_auto_sync = st.checkbox("Enable Auto-refresh", value=False)
        interval = st.slider("Interval (minutes)", 2, 10, 5, disabled=not enable_auto_sync)
        refresh = st.button("🚀 Refresh Now")

        if enable_auto_sync:
            refresh_count = st_autorefresh(interval=interval * 60 * 1000, key="performance_auto_refresh")
            if refresh_count > st.session_state.last_auto_refresh:
                st.session_state.last_auto_refresh = refresh_count
                refresh = True

    return view, source, refresh


def _select_option(source, filters: FilterState, key: str, label: str, placeholder: str, disabled=False):
    options = filters.options(key)
    ids = [""] + [o.id for o in options]
    names = {o.id: o.name for o in options}
    current = filters.get(key) or ""
    selected = st.selectbox(
        label, ids,
        index=ids.index(current) if current in ids else 0,
        format_func=lambda i: names.get(i, placeholder),
        disabled=disabled,
        key=f"filter_{key}",
    )
    if selected != current:
        change_filter(source, key, selected)
        st.rerun()


def render_filters(source):
    filters: FilterState = st.session_state.filters
    for key in ("school_id", "course_id"):
        if not filters.options(key):
            load_options(source, key)

    with st.expander("Filters", expanded=True):
        c1, c2, c3 = st.columns(3)
        with c1:
            _select_option(source, filters, "school_id", "School", "All Schools")
            _select_option(source, filters, "class_id", "Class", "All Classes",
                           disabled=not filters.get("school_id"))
            status = st.selectbox("Status", STATUSES, index=STATUSES.index(filters.get("status")))
            if status != filters.get("status"):
                filters.set_filter("status", status)
                st.rerun()
        with c2:
            _select_option(source, filters, "course_id", "Course", "All Courses")
            _select_option(source, filters, "course_level_id", "Level", "All Levels",
                           disabled=not filters.get("course_id"))
            date_from = st.date_input("From", value=filters.get("date_from"), max_value=date.today())
            if date_from != filters.get("date_from"):
                filters.set_filter("date_from", date_from)
                st.rerun()
        with c3:
            _select_option(source, filters, "topic_id", "Topic", "All Topics",
                           disabled=not filters.get("course_level_id"))
            _select_option(source, filters, "quiz_id", "Quiz", "All Quizzes",
                           disabled=not filters.get("topic_id"))
            date_to = st.date_input("To", value=filters.get("date_to"), max_value=date.today())
            if date_to != filters.get("date_to"):
                filters.set_filter("date_to", date_to)
                st.rerun()

        if st.button("Reset Filters"):
            filters.reset()
            st.rerun()


def render_warnings(warnings, partial):
    if partial:
        st.warning("Partial results: some data could not be loaded.")
    for message in warnings:
        st.caption(f"⚠️ {message}")


def render_top_indicators(report: PerformanceReport):
    """Renders top indicators."""
    stats = report.stats
    with st.container():
        c1, c2, c3, c4, c5 = st.columns(5)
        c1.metric("Attempts", stats.total_attempts)
        c2.metric("Students", stats.total_students)
        c3.metric("Avg Score", f"{stats.average_score:.2f}")
        c4.metric("Avg Percentage", f"{stats.average_percentage:.1f}%")
        c5.metric("Last Sync", st.session_state.last_sync)


def render_category_chart(report: PerformanceReport):
    counts = report.stats.score_categories.to_dict()
    df_plot = pd.DataFrame({
        "Category": [CATEGORY_LABELS[key] for key in counts],
        "Students": list(counts.values()),
    })
    fig = px.bar(df_plot, x="Category", y="Students", color="Category",
                 color_discrete_map=CATEGORY_COLORS)
    fig.update_layout(showlegend=False, height=300, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig, width="stretch", key="category_distribution")


def render_performance_report(report: PerformanceReport):
    render_warnings(report.warnings, report.partial)
    if report.rejected_records:
        st.caption(f"{report.rejected_records} record(s) rejected for invalid percentages.")

    render_top_indicators(report)
    st.subheader("Score Categories (best attempt per student)")
    render_category_chart(report)

    quiz_df, student_df = report_frames(report)
    st.subheader("Quizzes")
    if quiz_df.empty:
        st.info("No attempts match the selected filters.")
    else:
        st.dataframe(quiz_df.style.background_gradient(subset=["Pass Rate (%)"], cmap="RdYlGn", vmin=0, vmax=100),
                     width="stretch")
    st.subheader("Students")
    if not student_df.empty:
        st.dataframe(student_df, width="stretch")


def _style_cell(value):
    return CELL_STYLES.get(value, "")


def render_class_selection(source):
    filters: FilterState = st.session_state.filters
    if not filters.options("school_id"):
        load_options(source, "school_id")
    c1, c2 = st.columns(2)
    with c1:
        _select_option(source, filters, "school_id", "School", "Select School")
    with c2:
        _select_option(source, filters, "class_id", "Class", "Select Class",
                       disabled=not filters.get("school_id"))
    return filters.get("class_id")


def render_topic_matrix(matrix: TopicMatrix):
    render_warnings(matrix.warnings, matrix.partial)
    if matrix.unresolved_topics:
        st.caption("Unmatched topic names: " + ", ".join(matrix.unresolved_topics))

    info = matrix.class_info
    if info:
        header = f"**School:** {info.school_name} &nbsp; **Class:** {info.name}"
        if info.lead_tutor:
            header += f" &nbsp; **Lead Tutor:** {info.lead_tutor}"
        if info.assistant_tutor:
            header += f" &nbsp; **Assistant Tutor:** {info.assistant_tutor}"
        st.markdown(header, unsafe_allow_html=True)

    st.download_button("🖨️ Download Printable Report", matrix_to_html(matrix),
                       file_name=f"class_progress_{matrix.class_id}.html", mime="text/html")

    tables = [level for level in matrix.levels if level.topics]
    if not tables:
        st.info("No enrolled course levels found for this class.")
    for level in tables:
        with st.expander(level.title, expanded=True):
            st.dataframe(level_matrix_frame(level).style.map(_style_cell), width="stretch")

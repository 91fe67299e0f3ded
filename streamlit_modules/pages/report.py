"""
Report screens for Streamlit app.
One generic renderer drives all four competency screens; the differences
between them live in competency_report.profiles.
"""

import logging

import streamlit as st

from competency_report.aggregation import build_report_table
from competency_report.config import get_settings
from competency_report.directory import DirectoryIndex
from competency_report.errors import ExportError, NoDataError
from competency_report.export import (
    build_legend_lines, build_workbook, export_file_name, export_rows_for,
)
from competency_report.loaders import load_departments, load_filter_options, load_report, run_latest
from competency_report.profiles import ReportKind, get_profile
from competency_report.table import SortDirection, SortState, build_view, sort_options, to_dataframe
from streamlit_modules.session import activate_screen, clear_screen_data, clear_widget_state
from streamlit_modules.ui.components import deliver_download, show_fresh_status, show_legend

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Please select unit(s) and a test/competency"


def _selection_choices(profile, options, directory):
    """{display name: id} for the test / competency picker"""
    if profile.selection_field == 'quiz_id':
        quizzes_result = options.get('quizzes')
        quizzes = quizzes_result.data if quizzes_result and quizzes_result.ok else []
        return {q.get('quiz_name') or str(q['quiz_id']): q['quiz_id'] for q in quizzes}
    return {name: directory.section_id_for(name) for name in directory.section_names()}


def _render_department_filter(profile, selected_units, prefix):
    """Department multiselect on student-level screens. Returns the chosen departments."""
    if not profile.is_student_level or not selected_units:
        return []

    units_key = tuple(selected_units)
    if st.session_state.department_units != units_key:
        result = load_departments(None, selected_units)
        st.session_state.department_units = units_key
        st.session_state.department_options = result.data or []
        st.session_state.department_error = result.error

    if st.session_state.department_error:
        st.warning(st.session_state.department_error)

    return st.multiselect(
        "Departments",
        options=st.session_state.department_options,
        key=f"{prefix}departments",
        placeholder="All departments",
    )


def _apply_filters(profile, selected_units, selection_id, selection_name, directory):
    generation = st.session_state.report_generation

    def fetch():
        return load_report(None, profile, selected_units, selection_id)

    with st.spinner("Fetching report..."):
        result = run_latest(generation, fetch)

    if result is None:
        return

    st.session_state.sort_state = SortState()
    st.session_state.report_table = None
    st.session_state.report_error = None
    st.session_state.report_empty_message = None
    st.session_state.report_filter_label = selection_name

    if not result.ok:
        st.session_state.report_error = result.error
        return

    try:
        st.session_state.report_table = build_report_table(result.data, directory, profile, selection_id)
    except NoDataError as e:
        logger.info(f"{profile.kind.value}: {e}")
        st.session_state.report_empty_message = str(e)


def _render_sort_controls(table, profile, prefix):
    options = sort_options(table, profile)
    labels = [label for label, _ in options]
    keys = dict(options)
    state = st.session_state.sort_state

    col1, col2 = st.columns([3, 1])
    with col1:
        current_label = next((label for label, key in options if key == state.key), labels[0])
        chosen = st.selectbox("Sort by", labels, index=labels.index(current_label), key=f"{prefix}sort_key")
    with col2:
        arrow = "↕"
        if state.is_active and state.key == keys[chosen]:
            arrow = "↑" if state.direction == SortDirection.ASC else "↓"
        st.write("")
        if st.button(f"Sort {arrow}", key=f"{prefix}sort_toggle", use_container_width=True):
            st.session_state.sort_state = state.toggle(keys[chosen])
            st.rerun()

    if state.is_active:
        st.caption(f"Sorted by {current_label} ({state.direction.value})")


def _render_table(table, profile, prefix):
    show_fresh_status(len(table.rows), "rows" if profile.is_student_level else "units")
    show_legend(build_legend_lines(table.columns, include_max=profile.legend_includes_max))

    search_label = "Search by name, unit or department" if profile.is_student_level else "Search by unit"
    search_term = st.text_input(search_label, key=f"{prefix}search", placeholder="Type to filter...")
    departments = st.session_state.get(f"{prefix}departments") or []

    _render_sort_controls(table, profile, prefix)

    view = build_view(
        table,
        search_term=search_term,
        sort_state=st.session_state.sort_state,
        search_fields=profile.search_fields,
        departments=departments,
    )

    if view.is_empty():
        st.info("No rows match the current search.")
    else:
        frame = to_dataframe(view.rows, table, profile)
        column_config = {
            column: st.column_config.ProgressColumn(column, min_value=0, max_value=100, format="%.2f")
            for column in frame.columns if column.endswith('%ile')
        }
        st.dataframe(frame, hide_index=True, use_container_width=True, column_config=column_config)

    # ==========================================================================
    # Export
    # ==========================================================================
    st.divider()
    try:
        data = build_workbook(export_rows_for(profile, table, view), table, profile)
        deliver_download(
            data,
            export_file_name(profile, st.session_state.report_filter_label),
            key=f"{prefix}download",
        )
    except ExportError as e:
        st.error(str(e))


def render_report_screen(profile):
    """Render one report screen: filters, table, legend and export."""
    prefix = f"{profile.kind.value}_"
    if activate_screen(profile.kind.value):
        logger.info(f"Mounted screen {profile.kind.value}")

    st.subheader(profile.title)

    # ==========================================================================
    # Filter options (fetched concurrently on mount)
    # ==========================================================================
    if st.session_state.filter_options is None:
        with st.spinner("Loading filters..."):
            st.session_state.filter_options = load_filter_options(profile, settings=get_settings())
    options = st.session_state.filter_options

    for result in options.values():
        if not result.ok:
            st.error(result.error)

    units = options['units'].data or []
    directory = options['directory'].data or DirectoryIndex()
    choices = _selection_choices(profile, options, directory)

    col1, col2 = st.columns([3, 2])
    with col1:
        select_all = st.checkbox("Select all units", key=f"{prefix}select_all")
        if select_all:
            st.multiselect("Units", options=units, default=units, disabled=True, key=f"{prefix}units_all")
            selected_units = list(units)
        else:
            selected_units = st.multiselect("Units", options=units, key=f"{prefix}units")
    with col2:
        selection_name = st.selectbox(
            profile.selection_label,
            options=list(choices.keys()),
            index=None,
            placeholder=f"Select a {profile.selection_label.lower()}",
            key=f"{prefix}selection",
        )

    _render_department_filter(profile, selected_units, prefix)

    col_apply, col_clear, _ = st.columns([1, 1, 4])
    with col_apply:
        apply_clicked = st.button("Apply", type="primary", key=f"{prefix}apply", use_container_width=True)
    with col_clear:
        clear_clicked = st.button("Clear", key=f"{prefix}clear", use_container_width=True)

    if clear_clicked:
        clear_screen_data(keep_filter_options=True)
        clear_widget_state(prefix)
        st.rerun()

    if apply_clicked:
        selection_id = choices.get(selection_name) if selection_name else None
        if not selected_units or selection_id is None:
            st.error(VALIDATION_MESSAGE)
        else:
            _apply_filters(profile, selected_units, selection_id, selection_name, directory)

    st.divider()

    # ==========================================================================
    # Report
    # ==========================================================================
    if st.session_state.report_error:
        st.error(st.session_state.report_error)
        return
    if st.session_state.report_empty_message:
        st.info(st.session_state.report_empty_message)
        return

    table = st.session_state.report_table
    if table is None:
        st.info(f"Select units and a {profile.selection_label.lower()}, then click Apply.")
        return

    _render_table(table, profile, prefix)


def render_user_main_screen():
    render_report_screen(get_profile(ReportKind.USER_MAIN))


def render_unit_main_screen():
    render_report_screen(get_profile(ReportKind.UNIT_MAIN))


def render_user_sub_screen():
    render_report_screen(get_profile(ReportKind.USER_SUB))


def render_unit_sub_screen():
    render_report_screen(get_profile(ReportKind.UNIT_SUB))

"""
Session state management for Streamlit app.
Centralizes session state initialization and access.

Report state belongs to the active screen only: switching screens clears it,
so every screen fetches fresh filter options and data when it mounts.
"""

import streamlit as st

from competency_report.loaders import RequestGeneration
from competency_report.table import SortState


def _screen_defaults():
    return {
        'filter_options': None,       # {'units'|'directory'|'quizzes': FetchResult}
        'report_table': None,         # ReportTable of the last accepted response
        'report_error': None,
        'report_empty_message': None,
        'report_filter_label': None,  # quiz / competency name used in the export file name
        'report_generation': RequestGeneration(),
        'sort_state': SortState(),
        'department_options': [],
        'department_units': None,     # units the department list was fetched for
        'department_error': None,
    }


def init_session_state():
    """Initialize all session state variables"""
    defaults = {'active_screen': None}
    defaults.update(_screen_defaults())
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def clear_screen_data(keep_filter_options=False):
    """Reset report data, sort and department options for the current screen"""
    options = st.session_state.get('filter_options')
    for key, value in _screen_defaults().items():
        st.session_state[key] = value
    if keep_filter_options:
        st.session_state.filter_options = options


def clear_widget_state(prefix):
    """Drop widget values keyed under `prefix` so the widgets render empty"""
    for key in list(st.session_state.keys()):
        if str(key).startswith(prefix):
            del st.session_state[key]


def activate_screen(screen_id):
    """
    Mark `screen_id` as the mounted screen.
    Returns True when this is a fresh mount (state was cleared).
    """
    if st.session_state.get('active_screen') == screen_id:
        return False
    clear_screen_data()
    st.session_state.active_screen = screen_id
    return True

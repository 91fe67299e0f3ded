"""
Page modules for Streamlit app.
Each render function draws one report screen.
"""

from .report import (
    render_report_screen,
    render_user_main_screen,
    render_unit_main_screen,
    render_user_sub_screen,
    render_unit_sub_screen,
)

__all__ = [
    'render_report_screen',
    'render_user_main_screen',
    'render_unit_main_screen',
    'render_user_sub_screen',
    'render_unit_sub_screen',
]

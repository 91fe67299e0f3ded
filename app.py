#!/usr/bin/env python3
"""
Competency Report Dashboard (Streamlit)
"""

import logging
import streamlit as st

from competency_report.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

from streamlit_modules.ui.styles import apply_custom_css
from streamlit_modules.session import init_session_state
# Screen renderers are lazy-loaded via tab_registry
from streamlit_modules.tab_registry import (
    SCREEN_REGISTRY, DEFAULT_SCREEN, get_all_screen_ids, get_screen_renderer
)

# ============================================================================
# PAGE CONFIG
# ============================================================================

st.set_page_config(
    page_title="Competency Reports",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_custom_css()

# Initialize session state
init_session_state()

# ============================================================================
# MAIN APP
# ============================================================================

def main():
    # Header
    st.markdown('<p class="main-header">📈 Competency Reports</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Main and sub competency scores by student and by unit</p>', unsafe_allow_html=True)

    # Sidebar
    with st.sidebar:
        st.header("📑 Reports")
        screen_ids = get_all_screen_ids()
        current = st.session_state.active_screen or DEFAULT_SCREEN

        screen_id = st.radio(
            "Report",
            options=screen_ids,
            index=screen_ids.index(current) if current in screen_ids else 0,
            format_func=lambda sid: SCREEN_REGISTRY[sid]['name'],
            label_visibility="collapsed"
        )
        st.caption(SCREEN_REGISTRY[screen_id]['description'])

        st.divider()
        st.caption(f"API: {settings.api_base_url}")

    renderer = get_screen_renderer(screen_id)
    if renderer is None:
        st.error(f"Failed to load screen renderer for: {screen_id}")
        return

    try:
        renderer()
    except Exception as e:
        st.error(f"Error rendering screen: {e}")
        logger.error(f"Error in screen {screen_id}: {e}", exc_info=True)


if __name__ == "__main__":
    main()

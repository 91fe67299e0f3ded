"""
Screen registry for the report dashboard.
Defines the available report screens with metadata and provides helper functions.
"""

import importlib
import logging

logger = logging.getLogger(__name__)

# Screen registry with metadata for each report screen
SCREEN_REGISTRY = {
    'user_main': {
        'id': 'user_main',
        'name': '👤 User Wise Main Competency',
        'description': 'Per-student competency scores for one test',
        'module': 'streamlit_modules.pages',
        'function': 'render_user_main_screen',
    },
    'unit_main': {
        'id': 'unit_main',
        'name': '🏢 Unit Wise Main Competency',
        'description': 'Per-unit competency averages for one test',
        'module': 'streamlit_modules.pages',
        'function': 'render_unit_main_screen',
    },
    'user_sub': {
        'id': 'user_sub',
        'name': '🧑‍🎓 User Wise Sub Competency',
        'description': 'Per-student topic scores for one competency',
        'module': 'streamlit_modules.pages',
        'function': 'render_user_sub_screen',
    },
    'unit_sub': {
        'id': 'unit_sub',
        'name': '📊 Unit Wise Sub Competency',
        'description': 'Per-unit topic averages for one competency',
        'module': 'streamlit_modules.pages',
        'function': 'render_unit_sub_screen',
    },
}

# Screen order (for consistent display)
SCREEN_ORDER = ['user_main', 'unit_main', 'user_sub', 'unit_sub']

DEFAULT_SCREEN = 'user_main'


def get_all_screen_ids():
    """Get list of all available screen IDs in order"""
    return SCREEN_ORDER


def get_screen_info(screen_id):
    """Get metadata for a specific screen"""
    return SCREEN_REGISTRY.get(screen_id)


def get_screen_renderer(screen_id):
    """
    Lazy load and return the screen renderer function.
    Only imports the page module when the screen is opened.
    """
    screen_info = SCREEN_REGISTRY.get(screen_id)
    if not screen_info:
        return None

    try:
        module = importlib.import_module(screen_info['module'])
        return getattr(module, screen_info['function'])
    except (ImportError, AttributeError) as e:
        logger.error(f"Error loading screen renderer for {screen_id}: {e}")
        return None

"""
Streamlit layer of the competency report dashboard.
"""

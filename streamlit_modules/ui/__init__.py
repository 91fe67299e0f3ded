"""
Shared Streamlit widgets and styles.
"""

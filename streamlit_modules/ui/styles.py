import streamlit as st

def apply_custom_css():
    st.markdown("""
    <style>
        .main-header {
            font-size: 2.2rem;
            font-weight: 700;
            color: #1f77b4;
            margin-bottom: 0.5rem;
        }
        .sub-header {
            font-size: 1rem;
            color: #666;
            margin-bottom: 1.5rem;
        }
        .fresh-badge {
            padding: 0.25rem 0.75rem;
            border-radius: 1rem;
            background-color: #d4edda;
            color: #155724;
            font-size: 0.85rem;
            display: inline-block;
            margin-bottom: 1rem;
        }
        .competency-legend {
            padding: 0.5rem 1rem;
            border-left: 3px solid #1f77b4;
            background-color: #f7f9fc;
            font-size: 0.9rem;
            margin-bottom: 1rem;
        }
        .competency-legend ul {
            columns: 2;
            margin: 0;
        }
    </style>
    """, unsafe_allow_html=True)

import base64
import html
import logging

import streamlit as st

from competency_report.errors import ExportError
from competency_report.export import XLSX_MIME

logger = logging.getLogger(__name__)


def show_fresh_status(rows_count, label="rows"):
    """Show fresh data status"""
    st.markdown(
        f'<span class="fresh-badge">✓ Fresh data • {rows_count} {label} • Just now</span>',
        unsafe_allow_html=True
    )


def show_legend(lines):
    """Abbreviation legend shown above the report table"""
    if not lines:
        return
    items = []
    for line in lines:
        abbr, _, name = line.partition(' - ')
        items.append(f"<li><strong>{html.escape(abbr)}</strong> - {html.escape(name)}</li>")
    st.markdown(
        f'<div class="competency-legend"><p><strong>Legend:</strong></p><ul>{"".join(items)}</ul></div>',
        unsafe_allow_html=True
    )


def download_link(data, file_name, label="📥 Download Excel"):
    """Markdown anchor carrying the file as a base64 data URI"""
    encoded = base64.b64encode(data).decode()
    return f'<a download="{html.escape(file_name)}" href="data:{XLSX_MIME};base64,{encoded}">{label}</a>'


def deliver_download(data, file_name, key=None):
    """
    Offer the workbook for download.

    Uses st.download_button; if that fails, falls back to a data-URI link.
    Raises ExportError with both causes when neither works.
    """
    try:
        st.download_button(
            "📥 Download Excel",
            data=data,
            file_name=file_name,
            mime=XLSX_MIME,
            key=key,
        )
        return
    except Exception as primary:
        logger.warning(f"Download button failed for {file_name}: {primary}")
        try:
            st.markdown(download_link(data, file_name), unsafe_allow_html=True)
            return
        except Exception as fallback:
            logger.error(f"Fallback download link failed for {file_name}: {fallback}")
            raise ExportError(
                f"Failed to download Excel file. Primary error: {primary}. Fallback error: {fallback}"
            ) from fallback

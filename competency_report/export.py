"""
Excel export for the report screens.

Sheet layout: header row, one row per table row, a blank row, a "Legend:"
row, then one "<abbr> - <name>" line per active column.
"""

import io
import logging
from datetime import date
from typing import List, Optional, Sequence

import pandas as pd
from openpyxl.styles import Alignment
from openpyxl.utils import get_column_letter

from .aggregation import ReportColumn, ReportTable, Row
from .errors import ExportError
from .values import to_number

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EMPTY_EXPORT_MESSAGE = "No data available to download. Please apply filters first."


def _identity_value(row: Row, attr: str):
    if attr == 'units':
        return row.unit_label or '-'
    if attr == 'sno':
        return row.sno
    value = getattr(row, attr, '')
    return value if value not in (None, '') else '-'


def _cell_headers(column: ReportColumn, profile) -> List[tuple]:
    """(header, ScoreCell attribute) pairs for one competency/topic column."""
    headers = [(f"{column.abbreviation} - Score (Out of {column.max_score})", 'average_score')]
    for kind in profile.percentile_order:
        if kind == 'percentile':
            headers.append((f"{column.abbreviation} - MH %ile", 'percentile_score'))
        elif kind == 'secondary' and profile.has_secondary_percentile:
            headers.append((f"{column.abbreviation} - Unit %ile", 'secondary_percentile_score'))
    return headers


def total_header(table: ReportTable) -> str:
    return f"Total Score (Out of {table.total_max_score})"


def build_export_frame(rows: Sequence[Row], table: ReportTable, profile) -> pd.DataFrame:
    """Flatten rows into the sheet's data block (headers carry the max scores)."""
    records = []
    for row in rows:
        record = {header: _identity_value(row, attr) for header, attr in profile.identity_columns}
        record[total_header(table)] = f"{to_number(row.total_score):.2f}"
        for column in table.columns:
            cell = row.cell(column.id)
            for header, attr in _cell_headers(column, profile):
                value = getattr(cell, attr)
                record[header] = value if value is not None else '-'
        records.append(record)

    columns = [header for header, _ in profile.identity_columns] + [total_header(table)]
    for column in table.columns:
        columns.extend(header for header, _ in _cell_headers(column, profile))
    return pd.DataFrame(records, columns=columns)


def build_legend_lines(columns: Sequence[ReportColumn], include_max: bool = False) -> List[str]:
    lines = []
    for column in columns:
        line = f"{column.abbreviation} - {column.name}"
        if include_max:
            line += f" (Out of {column.max_score})"
        lines.append(line)
    return lines


def column_widths(table: ReportTable, profile) -> List[int]:
    widths = list(profile.identity_widths) + [profile.total_width]
    for column in table.columns:
        for _, attr in _cell_headers(column, profile):
            widths.append(profile.score_width if attr == 'average_score' else profile.percentile_width)
    return widths


def build_workbook(rows: Sequence[Row], table: ReportTable, profile) -> bytes:
    """
    Serialize rows to an .xlsx file.

    Raises:
        ExportError: No rows to export, or the workbook could not be written.
    """
    if not rows:
        raise ExportError(EMPTY_EXPORT_MESSAGE)

    frame = build_export_frame(rows, table, profile)
    legend = build_legend_lines(table.columns, include_max=profile.legend_includes_max)

    try:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            frame.to_excel(writer, index=False, sheet_name=profile.sheet_name)
            worksheet = writer.sheets[profile.sheet_name]

            # Header is row 1, data rows 2..n+1, blank row n+2
            legend_row = len(frame) + 3
            worksheet.cell(row=legend_row, column=1, value='Legend:')
            for offset, line in enumerate(legend, start=1):
                worksheet.cell(row=legend_row + offset, column=1, value=line)

            for index, width in enumerate(column_widths(table, profile), start=1):
                worksheet.column_dimensions[get_column_letter(index)].width = width

            alignment = Alignment(horizontal='left', vertical='center')
            for sheet_row in worksheet.iter_rows():
                for cell in sheet_row:
                    cell.alignment = alignment
    except Exception as e:
        logger.error(f"Excel export failed for {profile.kind.value}: {e}")
        raise ExportError(f"Failed to generate Excel file: {e}") from e

    logger.info(f"Exported {len(frame)} rows to sheet '{profile.sheet_name}'")
    return buffer.getvalue()


def export_file_name(profile, filter_label: str, today: Optional[date] = None) -> str:
    """<prefix>_<filter>_<YYYY-MM-DD>.xlsx"""
    today = today or date.today()
    label = (filter_label or 'All').strip().replace(' ', '_').replace('/', '-') or 'All'
    return f"{profile.file_prefix}_{label}_{today.isoformat()}.xlsx"


def export_rows_for(profile, table: ReportTable, view) -> List[Row]:
    """Screens either export exactly what is shown, or every row in ingestion order."""
    if profile.export_view_rows:
        return list(view.rows)
    return list(table.rows)

"""
Table view model: search filter, department filter, tri-state sort and
serial renumbering on top of an aggregated ReportTable.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .aggregation import ReportTable, Row
from .export import build_export_frame
from .values import to_number

logger = logging.getLogger(__name__)

_PERCENTILE_PREFIXES = (
    # longest prefix first: 'unit_percentile_' also ends with 'percentile_'
    ('unit_percentile_', 'secondary_percentile_score'),
    ('percentile_', 'percentile_score'),
    ('score_', 'average_score'),
)


class SortDirection(Enum):
    NONE = 'none'
    ASC = 'asc'
    DESC = 'desc'


@dataclass(frozen=True)
class SortState:
    key: Optional[str] = None
    direction: SortDirection = SortDirection.NONE

    def toggle(self, key: str) -> 'SortState':
        """
        Cycle a column's sort: a new column starts ascending, then
        descending, then back to the original order (key cleared).
        """
        if key != self.key or self.direction == SortDirection.NONE:
            return SortState(key=key, direction=SortDirection.ASC)
        if self.direction == SortDirection.ASC:
            return SortState(key=key, direction=SortDirection.DESC)
        return SortState()

    @property
    def is_active(self) -> bool:
        return self.key is not None and self.direction != SortDirection.NONE


@dataclass(frozen=True)
class TableView:
    rows: List[Row] = field(default_factory=list)
    sort_state: SortState = SortState()
    search_term: str = ''

    def is_empty(self) -> bool:
        return not self.rows


def _field_text(row: Row, name: str) -> str:
    if name in ('unit', 'units'):
        return row.unit_label
    value = getattr(row, name, '')
    return '' if value is None else str(value)


def sort_value(row: Row, key: str):
    """Comparable value for a sort key; score-like keys fall back to 0."""
    if key == 'sno':
        return row.sno
    if key in ('name', 'unit', 'units', 'department'):
        return _field_text(row, key).lower()
    if key == 'total_score':
        return float(row.total_score)

    for prefix, attr in _PERCENTILE_PREFIXES:
        if key.startswith(prefix):
            column_id = key[len(prefix):]
            cell = row.cells.get(column_id)
            if cell is None:
                return 0.0
            return to_number(getattr(cell, attr))

    logger.debug(f"Unknown sort key '{key}', leaving order unchanged")
    return 0


def filter_rows(rows: Iterable[Row], term: str, fields: Sequence[str]) -> List[Row]:
    """Case-insensitive substring match on any of `fields`."""
    rows = list(rows)
    needle = (term or '').strip().lower()
    if not needle:
        return rows
    return [row for row in rows if any(needle in _field_text(row, f).lower() for f in fields)]


def filter_by_departments(rows: Iterable[Row], departments: Optional[Sequence[str]]) -> List[Row]:
    rows = list(rows)
    if not departments:
        return rows
    wanted = {d.strip().lower() for d in departments}
    return [row for row in rows if (row.department or '').strip().lower() in wanted]


def build_view(
    table: ReportTable,
    search_term: str = '',
    sort_state: SortState = SortState(),
    search_fields: Sequence[str] = ('name',),
    departments: Optional[Sequence[str]] = None,
) -> TableView:
    """
    Filter, then sort (stable), then renumber S.No by position.

    With no active sort the rows keep their ingestion order.
    """
    rows = filter_by_departments(table.rows, departments)
    rows = filter_rows(rows, search_term, search_fields)

    if sort_state.is_active:
        rows = sorted(
            rows,
            key=lambda r: sort_value(r, sort_state.key),
            reverse=sort_state.direction == SortDirection.DESC,
        )

    rows = [replace(row, sno=index + 1) for index, row in enumerate(rows)]
    return TableView(rows=rows, sort_state=sort_state, search_term=search_term or '')


def sort_options(table: ReportTable, profile) -> List[tuple]:
    """(label, key) pairs for the sort picker, in display column order."""
    options = [(header, attr) for header, attr in profile.identity_columns]
    options.append(('Total Score', 'total_score'))
    for column in table.columns:
        options.append((f"{column.abbreviation} - Score", f"score_{column.id}"))
        options.append((f"{column.abbreviation} - MH %ile", f"percentile_{column.id}"))
        if profile.has_secondary_percentile:
            options.append((f"{column.abbreviation} - Unit %ile", f"unit_percentile_{column.id}"))
    return options


def to_dataframe(rows: Sequence[Row], table: ReportTable, profile) -> pd.DataFrame:
    """On-screen frame: same headers as the export, percentiles kept numeric for progress bars."""
    frame = build_export_frame(rows, table, profile)
    for column in frame.columns:
        if column.endswith('%ile'):
            frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame

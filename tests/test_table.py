import pytest

from competency_report.aggregation import ReportColumn, ReportTable, Row, ScoreCell, aggregate
from competency_report.profiles import ReportKind, get_profile
from competency_report.table import (
    SortDirection, SortState, build_view, filter_by_departments, filter_rows,
    sort_options, sort_value, to_dataframe,
)


def _unit_table():
    columns = [ReportColumn(id='11', name='Effective Communication', abbreviation='EC', max_score='10')]
    rows = [
        Row(sno=1, key='Unit A', name='Unit A', units=('Unit A',),
            cells={'11': ScoreCell('10', '90')}, total_score=10.0),
        Row(sno=2, key='Unit B', name='Unit B', units=('Unit B',),
            cells={'11': ScoreCell('5', '40')}, total_score=5.0),
    ]
    return ReportTable(rows=rows, columns=columns, total_max_score='10.0')


class TestSortState:
    def test_three_clicks_return_to_unsorted(self):
        state = SortState()
        first = state.toggle('total_score')
        second = first.toggle('total_score')
        third = second.toggle('total_score')

        assert first == SortState('total_score', SortDirection.ASC)
        assert second == SortState('total_score', SortDirection.DESC)
        assert third == SortState(None, SortDirection.NONE)

    def test_new_column_starts_ascending(self):
        state = SortState('name', SortDirection.DESC)
        assert state.toggle('total_score') == SortState('total_score', SortDirection.ASC)


class TestSortValue:
    @pytest.fixture
    def row(self):
        return Row(
            sno=3, key='s1', name='Asha', units=('Unit B', 'Unit A'), department='CSE',
            cells={'11': ScoreCell('-', '80', '55.5')}, total_score=4.0,
        )

    def test_string_keys_are_lowercased(self, row):
        assert sort_value(row, 'name') == 'asha'
        assert sort_value(row, 'units') == 'unit b, unit a'
        assert sort_value(row, 'department') == 'cse'

    def test_numeric_keys(self, row):
        assert sort_value(row, 'sno') == 3
        assert sort_value(row, 'total_score') == 4.0
        assert sort_value(row, 'percentile_11') == 80.0
        assert sort_value(row, 'unit_percentile_11') == 55.5

    def test_placeholder_and_missing_sort_as_zero(self, row):
        assert sort_value(row, 'score_11') == 0
        assert sort_value(row, 'score_99') == 0


def test_filter_then_sort_by_score_ascending():
    view = build_view(_unit_table(), sort_state=SortState('total_score', SortDirection.ASC))
    assert [r.name for r in view.rows] == ['Unit B', 'Unit A']
    assert [r.sno for r in view.rows] == [1, 2]


def test_search_is_case_insensitive():
    view = build_view(_unit_table(), search_term='a', search_fields=('name',))
    assert [r.name for r in view.rows] == ['Unit A']
    assert view.rows[0].sno == 1


def test_search_matches_any_field(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')

    assert [r.name for r in filter_rows(table.rows, 'ece', profile.search_fields)] == ['Bilal']
    assert [r.name for r in filter_rows(table.rows, 'UNIT B', profile.search_fields)] == ['Asha', 'Chitra']
    assert len(filter_rows(table.rows, '  ', profile.search_fields)) == 3


def test_department_filter(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')

    assert [r.name for r in filter_by_departments(table.rows, ['cse'])] == ['Asha', 'Chitra']
    assert len(filter_by_departments(table.rows, [])) == 3


def test_clearing_sort_restores_ingestion_order(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')

    state = SortState().toggle('total_score').toggle('total_score')
    assert [r.name for r in build_view(table, sort_state=state).rows] == ['Bilal', 'Asha', 'Chitra']

    state = state.toggle('total_score')
    assert [r.name for r in build_view(table, sort_state=state).rows] == ['Asha', 'Bilal', 'Chitra']


def test_view_renumbers_after_department_and_search(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')

    view = build_view(table, search_term='chi', search_fields=profile.search_fields, departments=['CSE'])
    assert [(r.sno, r.name) for r in view.rows] == [(1, 'Chitra')]
    # source rows are untouched
    assert table.rows[2].sno == 3


def test_sort_options_cover_every_column(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')
    keys = [key for _, key in sort_options(table, profile)]

    assert keys[:5] == ['sno', 'name', 'units', 'department', 'total_score']
    assert 'unit_percentile_12' in keys
    assert len(keys) == 5 + 3 * len(table.columns)


def test_display_frame_has_numeric_percentiles(directory, user_main_tree):
    profile = get_profile(ReportKind.USER_MAIN)
    table = aggregate(user_main_tree, directory, profile, '101')
    frame = to_dataframe(table.rows, table, profile)

    assert frame['EC - MH %ile'].tolist()[:2] == [80.0, 60.0]
    assert frame['SHC - MH %ile'].isna().tolist() == [True, False, True]
    assert frame['EC - Score (Out of 5.0)'].tolist() == ['4', '3', '-']

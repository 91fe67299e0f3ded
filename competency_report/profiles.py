"""
Per-screen report profiles.

The four report screens differ only in endpoint, tree shape, leaf field
names, aggregation mode, max-score rule and export layout. Each difference
is an explicit field here so the aggregator, table view and exporter stay
generic.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AggregationMode(Enum):
    DIRECT = 'direct'        # one score snapshot per entity
    AVERAGED = 'averaged'    # mean across every nested occurrence


class MaxScoreRule(Enum):
    DIRECTORY_TOTAL_MARKS = 'directory_total_marks'
    CORRECT_MARKS_TIMES_QUESTIONS = 'correct_marks_times_questions'


class TreeShape(Enum):
    UNIT_QUIZ_STUDENT = 'unit_quiz_student'    # unit -> quiz_detail -> quiz -> student -> ... -> section_detail
    UNIT_SCORE_DETAIL = 'unit_score_detail'    # unit -> score_detail -> section
    UNIT_USER = 'unit_user'                    # unit -> user -> section_detail/topic_detail


class ReportKind(Enum):
    USER_MAIN = 'user_main'
    UNIT_MAIN = 'unit_main'
    USER_SUB = 'user_sub'
    UNIT_SUB = 'unit_sub'


@dataclass(frozen=True)
class ReportFields:
    """Ordered alias tuples; the first alias carrying a real value wins."""
    score: Tuple[str, ...]
    percentile: Tuple[str, ...]
    secondary_percentile: Optional[Tuple[str, ...]] = None
    correct_marks: Tuple[str, ...] = ('correct_marks',)
    total_question: Tuple[str, ...] = ('section_total_question',)


@dataclass(frozen=True)
class ReportProfile:
    kind: ReportKind
    title: str
    endpoint: str
    selection_field: str                  # request body key: quiz_id or section_id
    selection_label: str                  # "Test" or "Competency"
    tree_shape: TreeShape
    group_by: str                         # 'student' or 'unit'
    column_level: str                     # 'section' or 'topic'
    mode: AggregationMode
    max_rule: MaxScoreRule
    fields: ReportFields
    identity_columns: Tuple[Tuple[str, str], ...]
    search_fields: Tuple[str, ...]
    percentile_order: Tuple[str, ...]     # export/display order after the score column
    sheet_name: str
    file_prefix: str
    legend_includes_max: bool
    export_view_rows: bool                # True: export filtered/sorted rows, False: all rows
    identity_widths: Tuple[int, ...]
    total_width: int
    score_width: int
    percentile_width: int = 20

    @property
    def has_secondary_percentile(self) -> bool:
        return self.fields.secondary_percentile is not None

    @property
    def is_student_level(self) -> bool:
        return self.group_by == 'student'


STUDENT_IDENTITY = (
    ('S.No', 'sno'),
    ('Student Name', 'name'),
    ('Units', 'units'),
    ('Department', 'department'),
)

UNIT_IDENTITY = (
    ('S.No', 'sno'),
    ('Unit', 'name'),
)


PROFILES = {
    ReportKind.USER_MAIN: ReportProfile(
        kind=ReportKind.USER_MAIN,
        title='User Wise Main Competency',
        endpoint='getMainCompetencyUserReport',
        selection_field='quiz_id',
        selection_label='Test',
        tree_shape=TreeShape.UNIT_QUIZ_STUDENT,
        group_by='student',
        column_level='section',
        mode=AggregationMode.DIRECT,
        max_rule=MaxScoreRule.CORRECT_MARKS_TIMES_QUESTIONS,
        fields=ReportFields(
            score=('section_total_score',),
            percentile=('section_percentile_score',),
            secondary_percentile=('unit_section_percentile_score', 'unit_percentile_score', 'unit_percentile'),
            total_question=('section_total_question',),
        ),
        identity_columns=STUDENT_IDENTITY,
        search_fields=('name', 'units', 'department'),
        percentile_order=('percentile', 'secondary'),
        sheet_name='UserWise Main Competency Report',
        file_prefix='UserWise_Main_Competency_Report',
        legend_includes_max=False,
        export_view_rows=True,
        identity_widths=(10, 30, 30, 20),
        total_width=35,
        score_width=35,
    ),
    ReportKind.UNIT_MAIN: ReportProfile(
        kind=ReportKind.UNIT_MAIN,
        title='Unit Wise Main Competency',
        endpoint='getMainCompetencyUnitReport',
        selection_field='quiz_id',
        selection_label='Test',
        tree_shape=TreeShape.UNIT_SCORE_DETAIL,
        group_by='unit',
        column_level='section',
        mode=AggregationMode.DIRECT,
        max_rule=MaxScoreRule.DIRECTORY_TOTAL_MARKS,
        fields=ReportFields(
            score=('unit_section_score_average',),
            percentile=('unit_section_score_percentile',),
        ),
        identity_columns=UNIT_IDENTITY,
        search_fields=('name',),
        percentile_order=('percentile',),
        sheet_name='UnitWiseMainCompetencyReport',
        file_prefix='UnitWiseMainCompetencyReport',
        legend_includes_max=False,
        export_view_rows=False,
        identity_widths=(10, 25),
        total_width=30,
        score_width=30,
    ),
    ReportKind.USER_SUB: ReportProfile(
        kind=ReportKind.USER_SUB,
        title='User Wise Sub Competency',
        endpoint='getSubCometencyUserReport',
        selection_field='section_id',
        selection_label='Competency',
        tree_shape=TreeShape.UNIT_USER,
        group_by='student',
        column_level='topic',
        mode=AggregationMode.DIRECT,
        max_rule=MaxScoreRule.CORRECT_MARKS_TIMES_QUESTIONS,
        fields=ReportFields(
            score=('topic_total_score',),
            percentile=('topic_percentile_score',),
            secondary_percentile=('unit_topic_percentile_score',),
            total_question=('topic_total_question',),
        ),
        identity_columns=(
            ('S.No', 'sno'),
            ('Student Name', 'name'),
            ('Unit', 'units'),
            ('Department', 'department'),
        ),
        search_fields=('name', 'units', 'department'),
        percentile_order=('secondary', 'percentile'),
        sheet_name='UserWiseSubCompetency',
        file_prefix='UserWiseSubCompetency_Report',
        legend_includes_max=False,
        export_view_rows=True,
        identity_widths=(10, 25, 20, 20),
        total_width=30,
        score_width=30,
    ),
    ReportKind.UNIT_SUB: ReportProfile(
        kind=ReportKind.UNIT_SUB,
        title='Unit Wise Sub Competency',
        endpoint='getSubCometencyUnitReport',
        selection_field='section_id',
        selection_label='Competency',
        tree_shape=TreeShape.UNIT_USER,
        group_by='unit',
        column_level='topic',
        mode=AggregationMode.AVERAGED,
        max_rule=MaxScoreRule.CORRECT_MARKS_TIMES_QUESTIONS,
        fields=ReportFields(
            score=('unit_topic_score_average',),
            percentile=('unit_topic_score_percentile',),
            total_question=('topic_total_question',),
        ),
        identity_columns=UNIT_IDENTITY,
        search_fields=('name',),
        percentile_order=('percentile',),
        sheet_name='UnitWiseSubCompetencyReport',
        file_prefix='UnitWiseSubCompetencyReport',
        legend_includes_max=False,
        export_view_rows=False,
        identity_widths=(10, 25),
        total_width=30,
        score_width=30,
    ),
}


def get_profile(kind) -> ReportProfile:
    """Accepts a ReportKind or its string value."""
    if not isinstance(kind, ReportKind):
        kind = ReportKind(kind)
    return PROFILES[kind]

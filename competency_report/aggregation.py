"""
Row aggregation: flattens a nested report tree into one row per student or
per unit.

Two modes:
- DIRECT: each entity carries one score snapshot per competency/topic.
- AVERAGED: scores are averaged over every nested occurrence under the
  grouping key (e.g. all students of a unit).
"""

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .directory import DirectoryEntry, DirectoryIndex, build_directory_from_report
from .errors import NoDataError
from .profiles import AggregationMode, MaxScoreRule, ReportProfile, TreeShape
from .values import (
    PLACEHOLDER, child, display_value, is_placeholder, parse_number,
    resolve_field, to_number,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreCell:
    average_score: str = PLACEHOLDER
    percentile_score: str = PLACEHOLDER
    secondary_percentile_score: Optional[str] = None


@dataclass(frozen=True)
class Row:
    sno: int
    key: str
    name: str
    units: Tuple[str, ...] = ()
    department: str = PLACEHOLDER
    cells: Dict[str, ScoreCell] = field(default_factory=dict)
    total_score: float = 0.0

    @property
    def unit_label(self) -> str:
        return ', '.join(self.units)

    def cell(self, column_id: str) -> ScoreCell:
        return self.cells.get(column_id) or ScoreCell()


@dataclass(frozen=True)
class ReportColumn:
    id: str
    name: str
    abbreviation: str
    max_score: str


@dataclass(frozen=True)
class ReportTable:
    rows: List[Row] = field(default_factory=list)
    columns: List[ReportColumn] = field(default_factory=list)
    total_max_score: str = '0.0'

    def is_empty(self) -> bool:
        return not self.rows

    def column_max_scores(self) -> Dict[str, str]:
        return {c.id: c.max_score for c in self.columns}


@dataclass
class _Leaf:
    column_id: str
    values: Mapping
    correct_marks: Any = None
    total_question: Any = None


@dataclass
class _EntitySource:
    key: str
    name: str
    unit: str
    department: str
    leaves: List[_Leaf] = field(default_factory=list)


# =============================================================================
# Tree walkers (null-safe at every level)
# =============================================================================

def _basic_detail(node) -> Mapping:
    basic = child(node, 'user_basic_detail')
    return basic if isinstance(basic, Mapping) else {}


def _text(value, default=PLACEHOLDER) -> str:
    if is_placeholder(value):
        return default
    return str(value)


def _walk_unit_quiz_student(tree: Mapping, quiz_id, profile: ReportProfile) -> Iterator[_EntitySource]:
    """unit -> quiz_detail -> <quiz> -> student -> quiz_detail -> <quiz> -> section_detail"""
    fields = profile.fields
    for unit_id, unit in tree.items():
        quiz = child(child(unit, 'quiz_detail'), quiz_id)
        if not isinstance(quiz, Mapping):
            continue
        for student_id, student in quiz.items():
            if not isinstance(student, Mapping):
                continue
            basic = _basic_detail(student)
            source = _EntitySource(
                key=str(student_id),
                name=_text(basic.get('student_name') or basic.get('name')),
                unit=_text(basic.get('unit_name'), default=str(unit_id)),
                department=_text(basic.get('department')),
            )
            sections = child(child(child(student, 'quiz_detail'), quiz_id), 'section_detail')
            if isinstance(sections, Mapping):
                for section_id, section in sections.items():
                    if not isinstance(section, Mapping):
                        continue
                    source.leaves.append(_Leaf(
                        column_id=str(section_id),
                        values=section,
                        correct_marks=resolve_field(section, fields.correct_marks),
                        total_question=resolve_field(section, fields.total_question),
                    ))
            yield source


def _walk_unit_score_detail(tree: Mapping, quiz_id, profile: ReportProfile) -> Iterator[_EntitySource]:
    """unit -> score_detail -> section"""
    for unit_name, unit in tree.items():
        source = _EntitySource(key=str(unit_name), name=str(unit_name), unit=str(unit_name), department=PLACEHOLDER)
        score_detail = child(unit, 'score_detail')
        if isinstance(score_detail, Mapping):
            for section_id, section in score_detail.items():
                if isinstance(section, Mapping):
                    source.leaves.append(_Leaf(column_id=str(section_id), values=section))
        yield source


def _topic_leaves(user: Mapping, profile: ReportProfile) -> List[_Leaf]:
    """
    Topics live either directly on the user (topic_detail, with a flat
    section_detail carrying correct_marks) or under each section of
    section_detail. The direct layout takes precedence.
    """
    fields = profile.fields
    leaves = []
    section_detail = child(user, 'section_detail')

    direct_topics = child(user, 'topic_detail')
    if isinstance(direct_topics, Mapping):
        flat_marks = resolve_field(section_detail, fields.correct_marks)
        if flat_marks is None and isinstance(section_detail, Mapping):
            for section in section_detail.values():
                flat_marks = resolve_field(section, fields.correct_marks)
                if flat_marks is not None:
                    break
        for topic_id, topic in direct_topics.items():
            if isinstance(topic, Mapping):
                leaves.append(_Leaf(
                    column_id=str(topic_id),
                    values=topic,
                    correct_marks=flat_marks,
                    total_question=resolve_field(topic, fields.total_question),
                ))
        return leaves

    if isinstance(section_detail, Mapping):
        for section in section_detail.values():
            if not isinstance(section, Mapping):
                continue
            topics = child(section, 'topic_detail')
            if not isinstance(topics, Mapping):
                continue
            marks = resolve_field(section, fields.correct_marks)
            for topic_id, topic in topics.items():
                if isinstance(topic, Mapping):
                    leaves.append(_Leaf(
                        column_id=str(topic_id),
                        values=topic,
                        correct_marks=marks,
                        total_question=resolve_field(topic, fields.total_question),
                    ))
    return leaves


def _walk_unit_user(tree: Mapping, selection, profile: ReportProfile) -> Iterator[_EntitySource]:
    """unit -> user -> section_detail / topic_detail"""
    for unit_name, users in tree.items():
        if not isinstance(users, Mapping):
            if profile.group_by == 'unit':
                yield _EntitySource(key=str(unit_name), name=str(unit_name), unit=str(unit_name), department=PLACEHOLDER)
            continue

        if profile.group_by == 'unit':
            source = _EntitySource(key=str(unit_name), name=str(unit_name), unit=str(unit_name), department=PLACEHOLDER)
            for user in users.values():
                if isinstance(user, Mapping):
                    source.leaves.extend(_topic_leaves(user, profile))
            yield source
            continue

        for user_id, user in users.items():
            if not isinstance(user, Mapping):
                continue
            basic = _basic_detail(user)
            yield _EntitySource(
                key=str(user_id),
                name=_text(basic.get('student_name') or basic.get('name')),
                unit=_text(basic.get('unit_name'), default=str(unit_name)),
                department=_text(basic.get('department')),
                leaves=_topic_leaves(user, profile),
            )


_WALKERS = {
    TreeShape.UNIT_QUIZ_STUDENT: _walk_unit_quiz_student,
    TreeShape.UNIT_SCORE_DETAIL: _walk_unit_score_detail,
    TreeShape.UNIT_USER: _walk_unit_user,
}


# =============================================================================
# Columns
# =============================================================================

def candidate_columns(directory: DirectoryIndex, profile: ReportProfile, selection) -> List[DirectoryEntry]:
    """
    Directory entries that may become columns, in directory order.
    Topic screens only consider topics of the selected competency (section id).
    """
    if profile.column_level == 'section':
        return list(directory.sections.values())

    competency = directory.sections.get(str(selection)) if selection is not None else None
    if competency is None:
        logger.warning(f"Selected competency {selection!r} is not in the directory")
        return []
    return directory.topics_for(competency.name)


def _has_score(leaf: _Leaf, profile: ReportProfile) -> bool:
    fields = profile.fields
    return (
        resolve_field(leaf.values, fields.score) is not None
        or resolve_field(leaf.values, fields.percentile) is not None
    )


def _max_score(entry: DirectoryEntry, leaves: List[_Leaf], rule: MaxScoreRule) -> str:
    if rule == MaxScoreRule.DIRECTORY_TOTAL_MARKS:
        return entry.max_score or '0'

    # First occurrence carrying both factors; occurrences are not summed
    for leaf in leaves:
        if leaf.column_id != entry.id:
            continue
        marks = parse_number(leaf.correct_marks)
        questions = parse_number(leaf.total_question)
        if marks is not None and questions is not None:
            return f"{marks * questions:.1f}"
    return '0'


# =============================================================================
# Aggregation
# =============================================================================

def _score_cell(leaf: _Leaf, profile: ReportProfile) -> ScoreCell:
    fields = profile.fields
    secondary = None
    if profile.has_secondary_percentile:
        secondary = display_value(resolve_field(leaf.values, fields.secondary_percentile))
    return ScoreCell(
        average_score=display_value(resolve_field(leaf.values, fields.score)),
        percentile_score=display_value(resolve_field(leaf.values, fields.percentile)),
        secondary_percentile_score=secondary,
    )


def _direct_cells(leaves: List[_Leaf], active: Dict[str, ReportColumn], profile: ReportProfile) -> Dict[str, ScoreCell]:
    """First occurrence carrying a score wins; an all-placeholder occurrence is only a fallback."""
    cells = {}
    scored = set()
    for leaf in leaves:
        if leaf.column_id not in active or leaf.column_id in scored:
            continue
        if _has_score(leaf, profile):
            cells[leaf.column_id] = _score_cell(leaf, profile)
            scored.add(leaf.column_id)
        elif leaf.column_id not in cells:
            cells[leaf.column_id] = _score_cell(leaf, profile)
    return cells


def _mean(total: float, count: int) -> str:
    if count == 0:
        return PLACEHOLDER
    return f"{total / count:.2f}"


def _averaged_cells(leaves: List[_Leaf], active: Dict[str, ReportColumn], profile: ReportProfile) -> Dict[str, ScoreCell]:
    """Every occurrence counts; placeholders add 0 to the sum."""
    fields = profile.fields
    # {column_id: {'score': [sum, count], 'percentile': [...], 'secondary': [...]}}
    stats = defaultdict(lambda: defaultdict(lambda: [0.0, 0]))

    for leaf in leaves:
        if leaf.column_id not in active:
            continue
        readings = [('score', fields.score), ('percentile', fields.percentile)]
        if profile.has_secondary_percentile:
            readings.append(('secondary', fields.secondary_percentile))
        for name, aliases in readings:
            stats[leaf.column_id][name][0] += to_number(resolve_field(leaf.values, aliases))
            stats[leaf.column_id][name][1] += 1

    cells = {}
    for column_id, column_stats in stats.items():
        secondary = None
        if profile.has_secondary_percentile:
            secondary = _mean(*column_stats['secondary'])
        cells[column_id] = ScoreCell(
            average_score=_mean(*column_stats['score']),
            percentile_score=_mean(*column_stats['percentile']),
            secondary_percentile_score=secondary,
        )
    return cells


def _empty_cell(profile: ReportProfile) -> ScoreCell:
    return ScoreCell(secondary_percentile_score=PLACEHOLDER if profile.has_secondary_percentile else None)


def total_score(cells: Mapping[str, ScoreCell], columns: List[ReportColumn]) -> float:
    """Sum of the numeric-or-zero average over the active columns."""
    return round(sum(to_number(cells[c.id].average_score) if c.id in cells else 0.0 for c in columns), 2)


def aggregate(
    tree: Any,
    directory: DirectoryIndex,
    profile: ReportProfile,
    selection,
    mode: Optional[AggregationMode] = None,
    max_rule: Optional[MaxScoreRule] = None,
) -> ReportTable:
    """
    Build the report table for one screen.

    Args:
        tree: The `data` payload of a report response
        directory: Competency/topic directory
        profile: Screen profile (tree shape, field aliases, grouping)
        selection: Selected quiz id (main screens) or competency section id (sub screens)
        mode: Overrides profile.mode
        max_rule: Overrides profile.max_rule

    Returns:
        ReportTable with rows in tree order, active columns in directory
        order and the column/grand-total max scores.
    """
    mode = mode or profile.mode
    max_rule = max_rule or profile.max_rule

    if not isinstance(tree, Mapping) or not tree:
        return ReportTable()

    walker = _WALKERS[profile.tree_shape]

    # Merge sources sharing a key (a student listed under several units)
    groups = OrderedDict()
    for source in walker(tree, selection, profile):
        group = groups.get(source.key)
        if group is None:
            groups[source.key] = {
                'name': source.name,
                'units': [source.unit],
                'department': source.department,
                'leaves': list(source.leaves),
            }
            continue
        if source.unit not in group['units']:
            group['units'].append(source.unit)
        if group['name'] == PLACEHOLDER:
            group['name'] = source.name
        if group['department'] == PLACEHOLDER:
            group['department'] = source.department
        group['leaves'].extend(source.leaves)

    all_leaves = [leaf for group in groups.values() for leaf in group['leaves']]
    present = {leaf.column_id for leaf in all_leaves if _has_score(leaf, profile)}

    columns = []
    for entry in candidate_columns(directory, profile, selection):
        if entry.id not in present:
            continue
        columns.append(ReportColumn(
            id=entry.id,
            name=entry.name,
            abbreviation=entry.abbreviation,
            max_score=_max_score(entry, all_leaves, max_rule),
        ))
    active = OrderedDict((c.id, c) for c in columns)

    unknown = present - {entry.id for entry in directory.sections.values()} - {entry.id for entry in directory.topics.values()}
    if unknown:
        logger.debug(f"Ignoring ids missing from the directory: {sorted(unknown)}")

    build_cells = _averaged_cells if mode == AggregationMode.AVERAGED else _direct_cells

    rows = []
    for index, (key, group) in enumerate(groups.items()):
        cells = build_cells(group['leaves'], active, profile)
        for column_id in active:
            cells.setdefault(column_id, _empty_cell(profile))
        ordered = OrderedDict((column_id, cells[column_id]) for column_id in active)
        rows.append(Row(
            sno=index + 1,
            key=key,
            name=group['name'],
            units=tuple(group['units']),
            department=group['department'],
            cells=dict(ordered),
            total_score=total_score(ordered, columns),
        ))

    grand_total = sum(to_number(c.max_score) for c in columns)
    logger.info(f"Aggregated {len(rows)} rows x {len(columns)} columns ({profile.kind.value}, {mode.value})")
    return ReportTable(rows=rows, columns=columns, total_max_score=f"{grand_total:.1f}")


def build_report_table(tree: Any, directory: DirectoryIndex, profile: ReportProfile, selection) -> ReportTable:
    """
    aggregate() plus the per-screen directory handling.

    The unit-wise main report embeds its own section metadata; it fills in
    sections the definitions list does not know.

    Raises:
        NoDataError: The report is valid but yields no rows.
    """
    if profile.tree_shape == TreeShape.UNIT_SCORE_DETAIL:
        directory = directory.merged_with(build_directory_from_report(tree, selection))

    table = aggregate(tree, directory, profile, selection)
    if table.is_empty():
        raise NoDataError("No data available for the selected filters.")
    return table

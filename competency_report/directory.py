"""
Competency/topic directory.

Normalizes the getSubCompetency definition list (or the section metadata
embedded in a unit-wise main report) into an index of
id -> (display name, parent competency, abbreviation, max score).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .abbreviation import get_abbreviation
from .errors import DataFormatError
from .values import child, format_number, to_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    id: str
    name: str
    parent_name: str = ''
    abbreviation: str = ''
    max_score: str = '0'


@dataclass(frozen=True)
class DirectoryIndex:
    sections: Dict[str, DirectoryEntry] = field(default_factory=dict)
    topics: Dict[str, DirectoryEntry] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.sections and not self.topics

    def get(self, entry_id) -> Optional[DirectoryEntry]:
        """Look up a section first, then a topic."""
        key = str(entry_id)
        return self.sections.get(key) or self.topics.get(key)

    def section_names(self) -> List[str]:
        return [entry.name for entry in self.sections.values()]

    def section_id_for(self, name: str) -> Optional[str]:
        for entry in self.sections.values():
            if entry.name == name:
                return entry.id
        return None

    def topics_for(self, competency_name: str) -> List[DirectoryEntry]:
        """Topics whose parent competency is `competency_name`, in directory order."""
        return [t for t in self.topics.values() if t.parent_name == competency_name]

    def merged_with(self, other: 'DirectoryIndex') -> 'DirectoryIndex':
        """Add ids from `other` that this index does not know yet."""
        sections = dict(self.sections)
        for key, entry in other.sections.items():
            sections.setdefault(key, entry)
        topics = dict(self.topics)
        for key, entry in other.topics.items():
            topics.setdefault(key, entry)
        return DirectoryIndex(sections=sections, topics=topics)


def resolve_section_id(raw_id: Any) -> Optional[str]:
    """
    quiz_section_id arrives either as ["12"] or as "12".
    Anything else (numbers, empty lists, None) cannot be resolved.
    """
    if isinstance(raw_id, list):
        if raw_id and isinstance(raw_id[0], (str, int)) and not isinstance(raw_id[0], bool):
            resolved = str(raw_id[0]).strip()
            return resolved or None
        return None
    if isinstance(raw_id, str):
        return raw_id.strip() or None
    return None


def _sum_total_marks(topics) -> float:
    total = 0.0
    if not isinstance(topics, list):
        return total
    for topic in topics:
        if isinstance(topic, Mapping):
            total += to_number(topic.get('total_marks'))
    return total


def _topic_entries(section: Mapping, section_name: str) -> Dict[str, DirectoryEntry]:
    """Collect topics from both `topics` (list) and `topic_detail` (dict) layouts."""
    entries = {}

    topics = section.get('topics')
    if isinstance(topics, list):
        for topic in topics:
            if not isinstance(topic, Mapping):
                continue
            topic_id = topic.get('topic_id')
            topic_name = topic.get('topic_name')
            if topic_id is None or not topic_name:
                continue
            entries[str(topic_id)] = DirectoryEntry(
                id=str(topic_id),
                name=topic_name,
                parent_name=section_name,
                abbreviation=get_abbreviation(topic_name),
                max_score=format_number(to_number(topic.get('total_marks'))),
            )

    topic_detail = section.get('topic_detail')
    if isinstance(topic_detail, Mapping):
        for topic_id, topic in topic_detail.items():
            if not isinstance(topic, Mapping) or not topic.get('topic_name'):
                continue
            key = str(topic_id)
            if key in entries:
                continue
            entries[key] = DirectoryEntry(
                id=key,
                name=topic['topic_name'],
                parent_name=section_name,
                abbreviation=get_abbreviation(topic['topic_name']),
                max_score=format_number(to_number(topic.get('total_marks'))),
            )

    return entries


def build_directory(response: Any) -> DirectoryIndex:
    """
    Build a DirectoryIndex from a getSubCompetency response.

    Raises DataFormatError when the response is not
    {status: 'success', data: [...]}. Entries whose id cannot be resolved
    are skipped with a warning; they never abort the batch.
    """
    if not isinstance(response, Mapping):
        raise DataFormatError("Competency definitions response is not an object")
    if response.get('status') != 'success':
        raise DataFormatError(response.get('message') or "Competency definitions request did not succeed")
    data = response.get('data')
    if not isinstance(data, list):
        raise DataFormatError("Competency definitions response has no data list")

    sections = {}
    topics = {}
    skipped = 0

    for section in data:
        if not isinstance(section, Mapping):
            skipped += 1
            continue

        section_id = resolve_section_id(section.get('quiz_section_id'))
        if not section_id:
            logger.warning(f"Skipping competency with unresolvable id: {section.get('quiz_section_id')!r}")
            skipped += 1
            continue

        name = section.get('section_name') or section_id
        sections[section_id] = DirectoryEntry(
            id=section_id,
            name=name,
            abbreviation=get_abbreviation(name),
            max_score=format_number(_sum_total_marks(section.get('topics'))),
        )
        topics.update(_topic_entries(section, name))

    logger.info(f"Directory built: {len(sections)} competencies, {len(topics)} topics, {skipped} skipped")
    return DirectoryIndex(sections=sections, topics=topics)


def build_directory_from_report(tree: Any, quiz_id) -> DirectoryIndex:
    """
    Build a section directory from the metadata embedded in a unit-wise main
    report: unit -> <quiz_id> -> section_detail -> {section_name, section_total_question}.
    """
    sections = {}
    if not isinstance(tree, Mapping):
        return DirectoryIndex()

    for unit in tree.values():
        quiz = child(unit, quiz_id)
        section_detail = child(quiz, 'section_detail')
        if not isinstance(section_detail, Mapping):
            continue
        for section_id, section in section_detail.items():
            if not isinstance(section, Mapping) or not section.get('section_name'):
                continue
            key = str(section_id)
            if key in sections:
                continue
            name = section['section_name']
            sections[key] = DirectoryEntry(
                id=key,
                name=name,
                abbreviation=get_abbreviation(name),
                max_score=format_number(to_number(section.get('section_total_question'))),
            )

    return DirectoryIndex(sections=sections)

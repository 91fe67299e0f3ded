import pytest

from competency_report.config import Settings
from competency_report.directory import build_directory


@pytest.fixture
def settings():
    return Settings(api_base_url='http://reports.test/api', request_timeout=5.0, log_level='INFO')


@pytest.fixture
def directory_response():
    return {
        'status': 'success',
        'data': [
            {
                'quiz_section_id': ['11'],
                'section_name': 'Effective Communication',
                'topics': [{'topic_id': 't9', 'topic_name': 'Active Listening', 'total_marks': '5'}],
            },
            {
                'quiz_section_id': '12',
                'section_name': 'Stress/Handling Capacity',
                'topics': [
                    {'topic_id': 't1', 'topic_name': 'Time Management', 'total_marks': '3'},
                    {'topic_id': 't2', 'topic_name': 'Work Life Balance', 'total_marks': '3'},
                ],
            },
            {
                'quiz_section_id': ['13'],
                'section_name': 'Leadership',
                'topics': [],
            },
            {
                # numeric ids cannot be resolved and are skipped
                'quiz_section_id': 42,
                'section_name': 'Orphan',
                'topics': [],
            },
        ],
    }


@pytest.fixture
def directory(directory_response):
    return build_directory(directory_response)


@pytest.fixture
def user_main_tree():
    """unit -> quiz_detail -> quiz -> student -> quiz_detail -> quiz -> section_detail"""
    return {
        'Unit A': {'quiz_detail': {'101': {
            's1': {
                'user_basic_detail': {'student_name': 'Asha', 'unit_name': 'Unit A', 'department': 'CSE'},
                'quiz_detail': {'101': {'section_detail': {
                    '11': {
                        'section_total_score': '4', 'section_percentile_score': '80',
                        'unit_section_percentile_score': '90',
                        'correct_marks': '1', 'section_total_question': '5',
                    },
                    '12': {
                        'section_total_score': '-', 'section_percentile_score': '-',
                        'unit_percentile_score': '-',
                        'correct_marks': '2', 'section_total_question': '3',
                    },
                }}},
            },
            's2': {
                'user_basic_detail': {'student_name': 'Bilal', 'unit_name': 'Unit A', 'department': 'ECE'},
                'quiz_detail': {'101': {'section_detail': {
                    '11': {
                        'section_total_score': 3, 'section_percentile_score': 60,
                        'unit_percentile': 70,
                        'correct_marks': '1', 'section_total_question': '5',
                    },
                    '12': {
                        'section_total_score': '5', 'section_percentile_score': '75',
                        'unit_percentile_score': '85',
                        'correct_marks': '2', 'section_total_question': '3',
                    },
                }}},
            },
        }}},
        'Unit B': {'quiz_detail': {'101': {
            's1': {
                'user_basic_detail': {'student_name': 'Asha', 'unit_name': 'Unit B', 'department': 'CSE'},
            },
            's3': {
                'user_basic_detail': {'student_name': 'Chitra', 'unit_name': 'Unit B', 'department': 'CSE'},
            },
        }}},
    }


@pytest.fixture
def unit_main_tree():
    """unit -> {score_detail -> section, <quiz_id> -> section_detail -> section}"""
    return {
        'Unit A': {
            'score_detail': {
                '11': {'unit_section_score_average': '3.5', 'unit_section_score_percentile': '70'},
                '12': {'unit_section_score_average': '-', 'unit_section_score_percentile': '-'},
            },
            '101': {'section_detail': {
                '11': {'section_name': 'Effective Communication', 'section_total_question': '5'},
                '14': {'section_name': 'Team Work', 'section_total_question': '4'},
            }},
        },
        'Unit B': {
            'score_detail': {
                '11': {'unit_section_score_average': '2', 'unit_section_score_percentile': '40'},
                '14': {'unit_section_score_average': '3', 'unit_section_score_percentile': '55'},
            },
        },
    }


@pytest.fixture
def user_sub_tree():
    """unit -> user -> section_detail -> section -> topic_detail -> topic"""
    return {
        'Unit A': {
            'u1': {
                'user_basic_detail': {'student_name': 'Asha', 'unit_name': 'Unit A', 'department': 'CSE'},
                'section_detail': {'12': {
                    'correct_marks': '1',
                    'topic_detail': {
                        't1': {
                            'topic_total_score': '2', 'topic_percentile_score': '50',
                            'unit_topic_percentile_score': '60', 'topic_total_question': '3',
                        },
                        't2': {
                            'topic_total_score': '-', 'topic_percentile_score': '-',
                            'unit_topic_percentile_score': '-', 'topic_total_question': '3',
                        },
                    },
                }},
            },
            'u2': {
                'user_basic_detail': {'student_name': 'Bilal', 'unit_name': 'Unit A', 'department': 'ECE'},
                'section_detail': None,
            },
        },
        'Unit B': 'not-a-dict',
    }


@pytest.fixture
def unit_sub_tree():
    """unit -> user -> {topic_detail -> topic, section_detail{correct_marks}}"""
    return {
        'Unit A': {
            'u1': {
                'topic_detail': {
                    't1': {'unit_topic_score_average': '2', 'unit_topic_score_percentile': '40', 'topic_total_question': '3'},
                    't2': {'unit_topic_score_average': '-', 'unit_topic_score_percentile': '-'},
                },
                'section_detail': {'correct_marks': '2'},
            },
            'u2': {
                'topic_detail': {
                    't1': {'unit_topic_score_average': '3', 'unit_topic_score_percentile': '60', 'topic_total_question': '3'},
                    't2': {'unit_topic_score_average': '4', 'unit_topic_score_percentile': '80', 'topic_total_question': '2'},
                },
                'section_detail': {'correct_marks': '2'},
            },
        },
        'Unit B': {},
    }

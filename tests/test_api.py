from unittest.mock import MagicMock

import pytest
import requests

from competency_report import api
from competency_report.errors import DataFormatError, NetworkError
from competency_report.profiles import ReportKind, get_profile


def _response(payload=None, ok=True, status_code=200, json_error=False):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status_code
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = payload
    return resp


def _session(*responses):
    session = MagicMock()
    session.post.side_effect = list(responses)
    return session


def test_setup_session_sends_json():
    session = api.setup_session()
    assert session.headers['Content-Type'] == 'application/json'


def test_unit_list_is_flattened_and_sorted(settings):
    session = _session(_response({'status': 'success', 'units': {'North': ['Unit B', 'Unit A'], 'South': ['Unit C']}}))

    assert api.get_unit_list(session, settings=settings) == ['Unit A', 'Unit B', 'Unit C']
    url = session.post.call_args.args[0]
    assert url == 'http://reports.test/api/reportanalytics/getUnitList'
    assert session.post.call_args.kwargs['timeout'] == 5.0


def test_unit_list_requires_success(settings):
    session = _session(_response({'status': 'failed'}))
    with pytest.raises(DataFormatError):
        api.get_unit_list(session, settings=settings)


def test_quiz_list_must_be_an_array(settings):
    session = _session(_response({'status': 'success'}))
    with pytest.raises(DataFormatError):
        api.get_quiz_list(session, settings=settings)


def test_quiz_list_drops_entries_without_id(settings):
    session = _session(_response([{'quiz_id': 101, 'quiz_name': 'Mid Term'}, {'quiz_name': 'Broken'}]))
    assert api.get_quiz_list(session, settings=settings) == [{'quiz_id': 101, 'quiz_name': 'Mid Term'}]


def test_department_list(settings):
    session = _session(_response({'status': 'success', 'department': ['ECE', 'CSE', '', 'CSE']}))

    assert api.get_department_list(session, ['Unit A'], settings=settings) == ['CSE', 'ECE']
    assert session.post.call_args.kwargs['json'] == {'unit': ['Unit A']}


@pytest.mark.parametrize('kind, field', [
    (ReportKind.USER_MAIN, 'quiz_id'),
    (ReportKind.UNIT_MAIN, 'quiz_id'),
    (ReportKind.USER_SUB, 'section_id'),
    (ReportKind.UNIT_SUB, 'section_id'),
])
def test_fetch_report_body(settings, kind, field):
    profile = get_profile(kind)
    session = _session(_response({'status': 'success', 'data': {'Unit A': {}}}))

    data = api.fetch_report(session, profile, ['Unit A', 'Unit B'], '12', settings=settings)

    assert data == {'Unit A': {}}
    assert session.post.call_args.args[0].endswith(f"/reportanalytics/{profile.endpoint}")
    assert session.post.call_args.kwargs['json'] == {'unit': ['Unit A', 'Unit B'], field: ['12']}


def test_fetch_report_rejects_failed_status(settings):
    session = _session(_response({'status': 'error', 'message': 'bad quiz'}))
    with pytest.raises(DataFormatError, match='bad quiz'):
        api.fetch_report(session, get_profile(ReportKind.USER_MAIN), ['Unit A'], '1', settings=settings)


def test_connection_error_becomes_network_error(settings):
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(NetworkError):
        api.get_unit_list(session, settings=settings)


def test_http_error_becomes_network_error(settings):
    session = _session(_response(ok=False, status_code=500))
    with pytest.raises(NetworkError, match='500'):
        api.get_sub_competency(session, settings=settings)


def test_invalid_json_becomes_network_error(settings):
    session = _session(_response(json_error=True))
    with pytest.raises(NetworkError):
        api.get_quiz_list(session, settings=settings)

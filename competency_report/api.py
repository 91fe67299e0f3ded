import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .config import Settings, get_settings
from .errors import DataFormatError, NetworkError

logger = logging.getLogger(__name__)

API_PREFIX = "reportanalytics"
JSON_HEADERS = {
    'Content-Type': 'application/json',
    'Accept': 'application/json',
}


def setup_session() -> requests.Session:
    """Create a session with JSON headers for the report analytics API"""
    session = requests.Session()
    session.headers.update(JSON_HEADERS)
    return session


def endpoint_url(endpoint: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.api_base_url}/{API_PREFIX}/{endpoint}"


def _post(session, endpoint: str, payload: Optional[Dict] = None, settings: Optional[Settings] = None) -> Any:
    """
    POST a JSON body and decode the JSON response.

    Raises:
        NetworkError: Connection failure, non-2xx status or undecodable body
    """
    settings = settings or get_settings()
    url = endpoint_url(endpoint, settings)
    logger.info(f"POST {endpoint} payload={payload or {}}")

    try:
        resp = session.post(url, json=payload or {}, timeout=settings.request_timeout)
    except requests.RequestException as e:
        logger.error(f"Request to {endpoint} failed: {e}")
        raise NetworkError(f"Could not reach {endpoint}: {e}") from e

    if not resp.ok:
        logger.error(f"{endpoint} returned HTTP {resp.status_code}")
        raise NetworkError(f"{endpoint} returned HTTP {resp.status_code}")

    try:
        return resp.json()
    except ValueError as e:
        logger.error(f"{endpoint} returned a non-JSON body: {e}")
        raise NetworkError(f"{endpoint} returned an invalid response") from e


def _require_success(endpoint: str, response: Any) -> Dict:
    if not isinstance(response, dict) or response.get('status') != 'success':
        message = response.get('message') if isinstance(response, dict) else None
        raise DataFormatError(message or f"{endpoint}: status is not \"success\"")
    return response


def get_unit_list(session, settings: Optional[Settings] = None) -> List[str]:
    """All units across regions, flattened and sorted"""
    response = _require_success('getUnitList', _post(session, 'getUnitList', settings=settings))

    regions = response.get('units')
    if isinstance(regions, dict):
        groups = regions.values()
    elif isinstance(regions, list):
        groups = [regions]
    else:
        raise DataFormatError("getUnitList: units missing from response")

    units = set()
    for group in groups:
        if isinstance(group, list):
            units.update(str(unit) for unit in group if unit)
        elif group:
            units.add(str(group))

    logger.info(f"Fetched {len(units)} units")
    return sorted(units)


def get_quiz_list(session, settings: Optional[Settings] = None) -> List[Dict]:
    """[{quiz_id, quiz_name}, ...]"""
    response = _post(session, 'getQuizList', settings=settings)
    if not isinstance(response, list):
        raise DataFormatError("Failed to fetch quizzes: Data not in expected format.")

    quizzes = [q for q in response if isinstance(q, dict) and q.get('quiz_id') is not None]
    logger.info(f"Fetched {len(quizzes)} quizzes")
    return quizzes


def get_sub_competency(session, settings: Optional[Settings] = None) -> Any:
    """Raw competency definitions; validated by directory.build_directory"""
    return _post(session, 'getSubCompetency', settings=settings)


def get_department_list(session, units: Sequence[str], settings: Optional[Settings] = None) -> List[str]:
    response = _require_success(
        'getDepartmentList',
        _post(session, 'getDepartmentList', {'unit': list(units)}, settings=settings),
    )
    departments = response.get('department')
    if not isinstance(departments, list):
        raise DataFormatError("getDepartmentList: department list missing from response")

    cleaned = sorted({str(d).strip() for d in departments if d and str(d).strip()})
    logger.info(f"Fetched {len(cleaned)} departments for {len(units)} units")
    return cleaned


def fetch_report(session, profile, units: Sequence[str], selection_id, settings: Optional[Settings] = None) -> Any:
    """
    Fetch one screen's report tree.

    Body: {unit: [...], <quiz_id|section_id>: [id]}
    Returns the `data` payload (may be empty).
    """
    payload = {
        'unit': list(units),
        profile.selection_field: [selection_id],
    }
    response = _require_success(profile.endpoint, _post(session, profile.endpoint, payload, settings=settings))
    data = response.get('data')
    logger.info(f"{profile.endpoint}: {len(data) if isinstance(data, dict) else 0} units in report")
    return data

"""
Fetch boundary between the API client and the Streamlit pages.

Every loader returns a FetchResult; network and format errors are logged
and turned into a user-facing message here, so pages only render
`result.error` or `result.data`.
"""

import logging
import threading
from contextlib import contextmanager
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from . import api
from .directory import build_directory
from .errors import DashboardError

logger = logging.getLogger(__name__)

DEFAULT_THREADS = 3

# Thread-local storage for sessions
thread_local = threading.local()


def get_thread_session():
    """Get or create a session for the current worker thread"""
    if not hasattr(thread_local, 'session'):
        thread_local.session = api.setup_session()
    return thread_local.session


@dataclass(frozen=True)
class FetchResult:
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _guarded(label: str, fn: Callable, *args, **kwargs) -> FetchResult:
    try:
        return FetchResult(data=fn(*args, **kwargs))
    except DashboardError as e:
        logger.error(f"{label} failed: {e}")
        return FetchResult(error=f"Failed to fetch {label}. {e}")


def load_units(session, settings=None) -> FetchResult:
    return _guarded('units', api.get_unit_list, session, settings=settings)


def load_quizzes(session, settings=None) -> FetchResult:
    return _guarded('quizzes', api.get_quiz_list, session, settings=settings)


def load_directory(session, settings=None) -> FetchResult:
    """FetchResult whose data is a DirectoryIndex"""
    def fetch():
        return build_directory(api.get_sub_competency(session, settings=settings))
    return _guarded('competency definitions', fetch)


@contextmanager
def session_scope(session=None):
    """Yield `session`, or a fresh one that is closed on exit"""
    if session is not None:
        yield session
        return
    with api.setup_session() as owned:
        yield owned


def load_departments(session, units: Sequence[str], settings=None) -> FetchResult:
    if not units:
        return FetchResult(data=[])
    with session_scope(session) as active:
        return _guarded('departments', api.get_department_list, active, units, settings=settings)


def load_report(session, profile, units: Sequence[str], selection_id, settings=None) -> FetchResult:
    with session_scope(session) as active:
        return _guarded('report', api.fetch_report, active, profile, units, selection_id, settings=settings)


def load_filter_options(profile, settings=None, max_workers: int = DEFAULT_THREADS) -> Dict[str, FetchResult]:
    """
    Fetch a screen's filter options concurrently.

    Returns {'units': ..., 'directory': ...} plus 'quizzes' on main screens.
    Each worker uses its own requests session.
    """
    jobs = {
        'units': load_units,
        'directory': load_directory,
    }
    if profile.selection_field == 'quiz_id':
        jobs['quizzes'] = load_quizzes

    def run(loader):
        return loader(get_thread_session(), settings=settings)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {name: executor.submit(run, loader) for name, loader in jobs.items()}
        results = {name: future.result() for name, future in futures.items()}

    failed = [name for name, result in results.items() if not result.ok]
    logger.info(f"Loaded filter options for {profile.kind.value} (failed: {failed or 'none'})")
    return results


class RequestGeneration:
    """
    Monotonic counter tagging report requests.

    A response is only accepted when its ticket is still the latest one;
    anything older was superseded by a newer Apply and is dropped.
    """

    def __init__(self, current: int = 0):
        self._current = current
        self._lock = threading.Lock()

    @property
    def current(self) -> int:
        return self._current

    def begin(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def accept(self, ticket: int) -> bool:
        with self._lock:
            if ticket == self._current:
                return True
        logger.warning(f"Dropping stale response (ticket {ticket}, latest {self._current})")
        return False


def run_latest(generation: RequestGeneration, fetch: Callable[[], FetchResult]) -> Optional[FetchResult]:
    """
    Tag a fetch with a new ticket and return its result only if no newer
    request began while it was in flight; stale results come back as None.
    """
    ticket = generation.begin()
    result = fetch()
    if not generation.accept(ticket):
        return None
    return result

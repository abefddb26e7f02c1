import enum
import logging
import threading
import time
import uuid
from collections import OrderedDict

from records import DEFAULT_TIMESTAMP_FORMAT, add_record, is_valid_address, query_records
from request_state import Failed, RequestTracker, Succeeded

logger = logging.getLogger(__name__)


class SubmissionPhase(enum.Enum):
    IDLE = 'idle'
    VALIDATING = 'validating'
    SUBMITTING = 'submitting'


class RecordBrowser:
    """UI state of one client: search input, fetched records, add-record form, error banner."""

    def __init__(self, session, timestamp_format=DEFAULT_TIMESTAMP_FORMAT, tx_timeout=120):
        self.session = session
        self.timestamp_format = timestamp_format
        self.tx_timeout = tx_timeout
        self.search_input = ''
        self.query = RequestTracker()
        self.submission = SubmissionPhase.IDLE
        self.error = None

    # --- Derived state ---

    @property
    def is_owner(self):
        return self.session.is_owner

    @property
    def loading(self):
        return self.query.loading or self.submission is SubmissionPhase.SUBMITTING

    @property
    def page(self):
        state = self.query.state
        return state.data if isinstance(state, Succeeded) else None

    @property
    def current_address(self):
        # taken from the displayed page, never stored separately
        page = self.page
        return page.address if page else ''

    @property
    def failed(self):
        return isinstance(self.query.state, Failed)

    @property
    def records(self):
        page = self.page
        return page.records if page else ()

    @property
    def can_search(self):
        return not self.loading and is_valid_address(self.search_input)

    @property
    def heading(self):
        if self.current_address:
            return f"Records for {self.current_address}"
        return 'Patient Records'

    @property
    def empty_message(self):
        if not self.search_input:
            return 'Enter a patient 0x address to view records'
        if not is_valid_address(self.search_input):
            return 'Please enter a valid Ethereum address'
        return f"No records found for {self.search_input}"

    # --- Actions ---

    def clear_results(self):
        self.query.reset()

    def change_search(self, value):
        self.search_input = (value or '').strip()
        if not is_valid_address(self.search_input):
            self.clear_results()

    def search(self, value):
        """Loads records for value; returns the page shown, or None."""
        self.change_search(value)
        if not is_valid_address(self.search_input):
            return None

        seq = self.query.begin()
        self.error = None
        try:
            page = query_records(self.session, self.search_input, self.timestamp_format)
        except Exception as e:
            logger.exception(f"Error loading records for {self.search_input}")
            if self.query.fail(seq, e):
                self.error = f"Failed to load records: {e}"
            return None

        if not self.query.finish(seq, page):
            logger.info(f"Discarding stale records response #{seq} for {page.address}")
            return None
        return page

    def submit_record(self, form):
        """
        Validates and sends an add-record form.
        Returns True when the record was mined and the view refreshed.
        Non-owners get a no-op.
        """
        if not self.is_owner:
            logger.warning(f"Ignoring add-record request from non-owner {self.session.account}")
            return False

        self.submission = SubmissionPhase.VALIDATING
        if not form.validate():
            self.submission = SubmissionPhase.IDLE
            return False

        self.submission = SubmissionPhase.SUBMITTING
        patient_address = form.patient_address.data.strip()
        try:
            add_record(
                self.session,
                patient_address,
                form.patient_name.data,
                form.diagnosis.data,
                form.treatment.data,
                timeout=self.tx_timeout,
            )
        except Exception as e:
            logger.exception(f"Error adding record for {patient_address}")
            self.error = f"Failed to add record: {e}"
            return False
        finally:
            self.submission = SubmissionPhase.IDLE

        self.search(patient_address)
        return True

    def dismiss_error(self):
        self.error = None


class BrowserRegistry:
    """
    Keeps one RecordBrowser per client id.

    At most max_clients browsers are held; the least recently used one is
    evicted first, and browsers idle for longer than idle_seconds are dropped.
    """

    def __init__(self, factory, max_clients=1000, idle_seconds=3600, clock=time.monotonic):
        self._factory = factory
        self._max_clients = max_clients
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._browsers = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def new_client_id():
        return uuid.uuid4().hex

    def _expire(self, now):
        while self._browsers:
            client_id, (_, last_seen) = next(iter(self._browsers.items()))
            if now - last_seen <= self._idle_seconds:
                break
            del self._browsers[client_id]

    def get(self, client_id):
        with self._lock:
            now = self._clock()
            self._expire(now)
            entry = self._browsers.pop(client_id, None)
            browser = entry[0] if entry else self._factory()
            self._browsers[client_id] = (browser, now)
            while len(self._browsers) > self._max_clients:
                evicted, _ = self._browsers.popitem(last=False)
                logger.debug(f"Evicting browser state of client {evicted}")
            return browser

    def __len__(self):
        return len(self._browsers)

"""
Request states for asynchronous contract calls.

A request is exactly one of Idle, InFlight, Succeeded or Failed, so a view
can never be "loading" and "errored" at the same time. RequestTracker tags
every request with a monotonic sequence number and drops any response that
does not belong to the most recent request.
"""
import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class InFlight:
    seq: int


@dataclass(frozen=True)
class Succeeded:
    data: object
    seq: int


@dataclass(frozen=True)
class Failed:
    error: str
    seq: int


IDLE = Idle()


class RequestTracker:

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = 0
        self.state = IDLE

    @property
    def latest(self):
        return self._seq

    @property
    def loading(self):
        return isinstance(self.state, InFlight)

    def begin(self):
        with self._lock:
            self._seq += 1
            self.state = InFlight(self._seq)
            return self._seq

    def finish(self, seq, data):
        """Records a result; returns False if a newer request superseded this one."""
        with self._lock:
            if seq != self._seq:
                return False
            self.state = Succeeded(data, seq)
            return True

    def fail(self, seq, error):
        with self._lock:
            if seq != self._seq:
                return False
            self.state = Failed(str(error), seq)
            return True

    def reset(self):
        """Invalidates any in-flight request and returns to Idle."""
        with self._lock:
            self._seq += 1
            self.state = IDLE

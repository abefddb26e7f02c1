from request_state import IDLE, Failed, InFlight, RequestTracker, Succeeded


def test_begin_marks_in_flight():
    tracker = RequestTracker()
    assert tracker.state is IDLE
    assert not tracker.loading

    seq = tracker.begin()
    assert tracker.state == InFlight(seq)
    assert tracker.loading


def test_finish_latest_request():
    tracker = RequestTracker()
    seq = tracker.begin()

    assert tracker.finish(seq, 'data')
    assert tracker.state == Succeeded('data', seq)
    assert not tracker.loading


def test_fail_is_not_loading():
    tracker = RequestTracker()
    seq = tracker.begin()

    assert tracker.fail(seq, ValueError('reverted'))
    assert tracker.state == Failed('reverted', seq)
    assert not tracker.loading


def test_stale_responses_are_discarded():
    tracker = RequestTracker()
    first = tracker.begin()
    second = tracker.begin()

    assert tracker.finish(second, 'new')
    assert not tracker.finish(first, 'old')
    assert not tracker.fail(first, 'old error')
    assert tracker.state == Succeeded('new', second)


def test_reset_invalidates_in_flight_request():
    tracker = RequestTracker()
    seq = tracker.begin()
    tracker.reset()

    assert tracker.state is IDLE
    assert not tracker.finish(seq, 'late')
    assert tracker.state is IDLE
    assert tracker.latest == seq + 1

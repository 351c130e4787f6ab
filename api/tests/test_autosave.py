import threading

import pytest

from dmgt_assessment.client.autosave import AutosaveController, AutosaveRunner


def test_save_is_due_one_interval_after_last_change():
    c = AutosaveController(30)
    assert not c.is_due(dirty=True, now=0)
    c.notify_change(now=0)
    assert not c.is_due(dirty=True, now=29)
    assert c.is_due(dirty=True, now=30)
    assert not c.is_due(dirty=False, now=30)


def test_further_edits_push_the_deadline():
    c = AutosaveController(30)
    c.notify_change(now=0)
    c.notify_change(now=20)
    assert not c.is_due(dirty=True, now=30)
    assert c.is_due(dirty=True, now=50)


def test_no_overlapping_saves():
    c = AutosaveController(30)
    c.notify_change(now=0)
    c.begin(now=30)
    assert not c.is_due(dirty=True, now=100)


def test_failure_retries_one_interval_later():
    c = AutosaveController(30)
    c.notify_change(now=0)
    c.begin(now=30)
    c.failed(RuntimeError("boom"), now=31)
    assert c.failures == 1
    assert not c.is_due(dirty=True, now=60)
    assert c.is_due(dirty=True, now=61)


def test_success_clears_schedule_unless_edited_in_flight():
    c = AutosaveController(30)
    c.notify_change(now=0)
    c.begin(now=30)
    c.succeeded(now=31)
    assert c.next_attempt_at is None

    c.notify_change(now=40)
    c.begin(now=70)
    c.notify_change(now=72)
    c.succeeded(now=73)
    assert c.is_due(dirty=True, now=102)


def test_disabled_controller_never_fires():
    c = AutosaveController(30, enabled=False)
    c.notify_change(now=0)
    assert not c.is_due(dirty=True, now=1000)


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        AutosaveController(0)


def test_runner_ticks_until_stopped():
    ticked = threading.Event()
    runner = AutosaveRunner(ticked.set, poll_seconds=0.01)
    runner.start()
    try:
        assert ticked.wait(2)
        assert runner.running
    finally:
        runner.stop()
    assert not runner.running

# tests/test_scheduling.py

import threading

from core.prompts import always_confirm, console_confirm
from core.scheduling import TimerScheduler


def test_timer_scheduler_runs_callback():
    done = threading.Event()
    seen = []

    def callback(value):
        seen.append(value)
        done.set()

    scheduler = TimerScheduler()
    scheduler.schedule(0.01, callback, "resync")

    assert done.wait(timeout=5)
    assert seen == ["resync"]


def test_timer_scheduler_survives_failing_callback():
    done = threading.Event()

    def broken():
        raise RuntimeError("boom")

    scheduler = TimerScheduler()
    scheduler.schedule(0.01, broken)
    scheduler.schedule(0.02, done.set)

    assert done.wait(timeout=5)


def test_cancel_all():
    scheduler = TimerScheduler()
    scheduler.schedule(60, lambda: None)

    assert scheduler.pending_count == 1
    scheduler.cancel_all()
    assert scheduler.pending_count == 0


def test_console_confirm_retries_until_valid(monkeypatch):
    answers = iter(["maybe", "Y"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

    assert console_confirm("Delete Task?", "This will remove the task and all submissions.")


def test_console_confirm_declines(monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "no")
    assert not console_confirm("Already Submitted!", "Replace?")


def test_always_confirm():
    assert always_confirm("anything", "at all")

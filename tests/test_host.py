"""Tests for the host notification target and exit policy."""

import logging
import os
import signal

from parity_launcher import host
from parity_launcher.errors import HostExitRequested, ParityCrashError, ParityTransportError
from parity_launcher.host import GracefulExit, HostExitPolicy, HostState


def test_parity_running_notification_sets_flag():
    state = HostState()

    state.send("parity-running", True)

    assert state.is_parity_running is True
    assert [event.channel for event in state.events()] == ["parity-running"]


def test_events_are_newest_first_and_bounded():
    state = HostState(max_events=2)

    state.send("a", 1)
    state.send("b", 2)
    state.send("c", 3)

    assert [event.payload for event in state.events()] == [3, 2]
    assert state.events(limit=1)[0].to_dict()["channel"] == "c"


class TestHostExitPolicy:
    def setup_method(self):
        self.statuses = []
        self.policy = HostExitPolicy(terminate=self.statuses.append)

    def test_host_exit_uses_requested_status(self):
        self.policy(HostExitRequested(status=1))

        assert self.statuses == [1]

    def test_crash_is_logged_and_exits(self, caplog):
        with caplog.at_level(logging.CRITICAL, logger="parity_launcher.host"):
            self.policy(ParityCrashError(101, None))

        assert self.statuses == [1]
        assert "Parity failed unexpectedly" in caplog.text
        assert "Exit code 101, with signal None." in caplog.text

    def test_transport_error_exits(self):
        self.policy(ParityTransportError("Lost parity output"))

        assert self.statuses == [1]


def test_graceful_exit_signals_the_server_and_keeps_status(monkeypatch):
    sent = []
    monkeypatch.setattr(host.os, "kill", lambda pid, sig: sent.append((pid, sig)))
    graceful = GracefulExit()

    HostExitPolicy(terminate=graceful)(HostExitRequested(status=1))

    assert sent == [(os.getpid(), signal.SIGTERM)]
    assert graceful.status == 1


def test_default_policy_exits_gracefully():
    assert HostExitPolicy()._terminate is host.graceful_exit

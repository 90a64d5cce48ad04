"""Tests for service control."""

import subprocess

import pytest

from deployex.exceptions import ServiceOperationException, ServiceTimeoutException
from deployex.services import RUNNING, WindowsServices
from deployex.status import StatusFlags
from deployex.tests.utils import FakeServices, make_interpreter


def query_output(state_code, state):
    return (
        "SERVICE_NAME: svc\n"
        "        TYPE               : 10  WIN32_OWN_PROCESS\n"
        f"        STATE              : {state_code}  {state}\n"
    )


class FakeSc:
    """Stands in for sc.exe, reporting a sequence of states."""

    def __init__(self, states, returncode=0):
        self.states = list(states)
        self.returncode = returncode
        self.commands = []

    def __call__(self, command, **kwargs):
        self.commands.append(command[1:])
        if command[1] == "query":
            state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
            stdout = query_output(4 if state == RUNNING else 1, state)
        else:
            stdout = "[SC] failure 1060" if self.returncode else ""
        return subprocess.CompletedProcess(command, self.returncode, stdout, "")


def test_start_waits_for_running(monkeypatch):
    sc = FakeSc(["START_PENDING", "START_PENDING", RUNNING])
    monkeypatch.setattr("deployex.services.subprocess.run", sc)
    WindowsServices(poll_interval=0).start("svc", timeout=5)
    assert sc.commands[0] == ["start", "svc"]
    assert sc.commands.count(["query", "svc"]) == 3


def test_stop_without_timeout(monkeypatch):
    sc = FakeSc(["STOP_PENDING", "STOPPED"])
    monkeypatch.setattr("deployex.services.subprocess.run", sc)
    WindowsServices(poll_interval=0).stop("svc")
    assert sc.commands == [["stop", "svc"], ["query", "svc"], ["query", "svc"]]


def test_start_times_out(monkeypatch):
    monkeypatch.setattr("deployex.services.subprocess.run", FakeSc(["START_PENDING"]))
    with pytest.raises(ServiceTimeoutException):
        WindowsServices(poll_interval=0).start("svc", timeout=0)


def test_sc_failure_is_invalid_operation(monkeypatch):
    monkeypatch.setattr("deployex.services.subprocess.run", FakeSc([RUNNING], returncode=1060))
    with pytest.raises(ServiceOperationException) as info:
        WindowsServices().start("svc")
    assert "1060" in str(info.value)


def test_missing_sc_is_invalid_operation(monkeypatch):
    def run(command, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", command[0])

    monkeypatch.setattr("deployex.services.subprocess.run", run)
    with pytest.raises(ServiceOperationException):
        WindowsServices().stop("svc")


class SlowServices(FakeServices):
    def start(self, name, timeout=3):
        raise ServiceTimeoutException(name, RUNNING)


def test_service_timeout_aborts_script(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "s.txt": "$(IgnoreErrors) = yes\n$(ServiceStart) svc\n$(Message) after\n",
    }, services=SlowServices())
    assert interp.run("s.txt") is False
    assert events.messages == []
    assert "did not reach state RUNNING" in events.failures[0].error_message
    assert events.failures[0].status == StatusFlags.OK

"""
Utility functions shared across deployex tests.
"""
import io
from pathlib import Path

from deployex.events import EventHandlers
from deployex.exceptions import ResourceNotFoundException, ServiceOperationException
from deployex.interpreter import Interpreter
from deployex.resources import DirectoryResources


class MemoryResources:
    """Resource provider serving scripts from a dict."""

    def __init__(self, items: dict):
        self.items = dict(items)

    def _get(self, name):
        if name not in self.items:
            raise ResourceNotFoundException(name, "<memory>")
        return self.items[name]

    def read_text(self, name):
        value = self._get(name)
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def open_binary(self, name):
        value = self._get(name)
        return io.BytesIO(value.encode("utf-8") if isinstance(value, str) else value)


class Recorder:
    """Collects every event an interpreter emits."""

    def __init__(self):
        self.messages = []
        self.notifications = []
        self.successes = 0
        self.failures = []

    def handlers(self) -> EventHandlers:
        return EventHandlers(
            on_message=self.messages.append,
            on_notification=self.notifications.append,
            on_success=self._success,
            on_failure=self.failures.append,
        )

    def _success(self):
        self.successes += 1


class FakeServices:
    """Service manager recording calls instead of touching real services."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.calls = []

    def start(self, name, timeout=3):
        if name in self.fail:
            raise ServiceOperationException(name, "not installed")
        self.calls.append(("start", name, timeout))

    def stop(self, name, timeout=None):
        if name in self.fail:
            raise ServiceOperationException(name, "not installed")
        self.calls.append(("stop", name, timeout))


def make_interpreter(tmp_path: Path, scripts: dict[str, str], **kwargs):
    """
    Write scripts into tmp_path and return an interpreter reading them from
    there, working in tmp_path, along with its event recorder.
    """
    for name, text in scripts.items():
        (tmp_path / name).write_text(text, encoding="utf-8")
    recorder = Recorder()
    kwargs.setdefault("services", FakeServices())
    interpreter = Interpreter(
        DirectoryResources(tmp_path),
        handlers=recorder.handlers(),
        working_dir=str(tmp_path),
        **kwargs,
    )
    return interpreter, recorder

"""Tests for resource providers."""

import io
import os

import pytest

from deployex.arc import ArcDeflate
from deployex.exceptions import ResourceNotFoundException
from deployex.interpreter import Interpreter
from deployex.resources import DirectoryResources, PackageResources
from deployex.tests.utils import FakeServices, MemoryResources, Recorder


def test_directory_resources(tmp_path):
    (tmp_path / "s.txt").write_bytes(b"\xef\xbb\xbf$(Message) hi\n")
    res = DirectoryResources(tmp_path)
    assert res.read_text("s.txt") == "$(Message) hi\n"
    with res.open_binary("s.txt") as f:
        assert f.read().startswith(b"\xef\xbb\xbf")
    with pytest.raises(ResourceNotFoundException) as info:
        res.read_text("missing.txt")
    assert "missing.txt" in str(info.value)


def test_package_resources():
    res = PackageResources("deployex")
    assert "class Interpreter" in res.read_text("interpreter.py")
    assert res.open_binary("__init__.py").read()
    with pytest.raises(ResourceNotFoundException):
        res.read_text("no-such-script.txt")


def test_interpreter_unpacks_embedded_archive(tmp_path):
    (tmp_path / "payload").mkdir()
    (tmp_path / "payload" / "app.exe").write_bytes(b"binary")
    archive = io.BytesIO()
    ArcDeflate(tmp_path / "payload").write_archive(archive, [tmp_path / "payload" / "app.exe"])

    resources = MemoryResources({
        "install.txt": "$(Source) = payload.bin\n$(Target) = installed\n$(Unpack)\n$(Message) $(app.exe)\n",
        "payload.bin": archive.getvalue(),
    })
    recorder = Recorder()
    interp = Interpreter(
        resources, handlers=recorder.handlers(), services=FakeServices(), working_dir=str(tmp_path)
    )
    assert interp.run("install.txt"), recorder.failures
    assert (tmp_path / "installed" / "app.exe").read_bytes() == b"binary"
    assert recorder.messages == [os.path.join("installed", "app.exe")]


@pytest.mark.parametrize("module", [
    "arc.py", "cli.py", "events.py", "exceptions.py", "interpreter.py", "lexer.py",
    "macros.py", "operations.py", "processes.py", "resources.py", "services.py",
    "status.py", "variables.py", "versions.py",
])
def test_module_carries_file_header(module):
    source = PackageResources("deployex").read_text(module)
    assert f"File: {module}\n" in source
    assert "License: MIT" in source

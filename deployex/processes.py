"""External processes.

:func:`launch` runs an executable without a shell and blocks until it exits
or its timeout expires. :func:`kill_by_path` terminates the first running
process named after an executable path.


File: processes.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass

import psutil

from deployex.exceptions import ProcessTimeoutException
from deployex.lexer import split_arguments

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    exit_code: int
    stdout: str | None = None
    stderr: str | None = None

    @property
    def output(self) -> str | None:
        """Captured stdout and stderr, or None when nothing was captured."""
        parts = [p.strip() for p in (self.stdout, self.stderr) if p and p.strip()]
        return "\n".join(parts) if parts else None


def command_line(path: str, arguments: str) -> list[str] | str:
    """
    Build the command for :mod:`subprocess` from a path and an argument string.

    Windows receives a single command line, other platforms an argument list
    split the way script lines are tokenized.
    """
    if os.name == "nt":
        return f"{subprocess.list2cmdline([path])} {arguments}".rstrip()
    return [path, *split_arguments(arguments)]


def launch(
    path: str,
    arguments: str = "",
    *,
    cwd: str | None = None,
    redirect: bool = False,
    timeout: int | None = None,
) -> ProcessResult:
    """
    Run an executable and wait for it to exit.

    Parameters:
        path (str): Executable path.
        arguments (str): Argument string.
        cwd (str | None): Working directory.
        redirect (bool): Capture stdout and stderr.
        timeout (int | None): Seconds to wait before the process is killed.

    Returns:
        ProcessResult: Exit code and captured output.

    Raises:
        ProcessTimeoutException: If the process did not exit in time.
        OSError: If the executable could not be started.
    """
    command = command_line(path, arguments)
    logger.debug("Launching %s", command)
    try:
        completed = subprocess.run(
            command,
            cwd=cwd,
            capture_output=redirect,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ProcessTimeoutException(path, timeout) from e
    return ProcessResult(completed.returncode, completed.stdout, completed.stderr)


def process_name(path: str) -> str:
    """
    File name of an executable path without its extension.
    """
    return os.path.splitext(os.path.basename(path.replace("\\", "/")))[0]


def kill_by_path(path: str) -> bool:
    """
    Kill the first running process named after the executable path.

    Returns:
        bool: True if a process was killed, False if none was running.

    Raises:
        PermissionError: If the matching process may not be killed.
    """
    name = process_name(path).lower()
    for proc in psutil.process_iter(["name"]):
        proc_name = proc.info.get("name") or ""
        if os.path.splitext(proc_name)[0].lower() != name:
            continue
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as e:
            raise PermissionError(f"Cannot kill process {proc_name} (pid {proc.pid})") from e
        logger.debug("Killed process %s (pid %s)", proc_name, proc.pid)
        return True
    return False

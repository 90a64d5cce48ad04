"""Status flags and failure diagnostics.


File: status.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from dataclasses import dataclass
from enum import IntFlag


class StatusFlags(IntFlag):
    """Kinds of failure accumulated during a run."""

    OK = 0
    NULL_REFERENCE = 1
    FILE_NOT_FOUND = 2
    DIRECTORY_NOT_FOUND = 4
    FILE_ACCESS_DENIED = 8
    DIRECTORY_ACCESS_DENIED = 16
    ALREADY_INSTALLED = 32
    NON_ZERO_EXIT_CODE = 64


@dataclass
class Diagnostics:
    """Failure record produced once per aborted run."""

    script: str | None
    line: str | None
    status: StatusFlags
    error_message: str | None = None
    exit_code: int | None = None

    def __str__(self) -> str:
        parts = [f"status={self.status!r}"]
        if self.script is not None:
            parts.append(f"script={self.script}")
        if self.line is not None:
            parts.append(f"line={self.line!r}")
        if self.exit_code is not None:
            parts.append(f"exit_code={self.exit_code}")
        text = " ".join(parts)
        if self.error_message:
            text += f"\n{self.error_message}"
        return text

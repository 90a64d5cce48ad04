"""Script variables and resolvable values.

The variable store holds the five assignable script variables. Every name is
bound to an explicit :class:`Variable` accessor describing the attribute it
maps to and the type its assigned text is coerced to, so no name can reach an
attribute that is not listed here.

Resolvable values are read-only values derived from the environment. Each is
computed by a module level function on first use and memoized for the rest of
the process.


File: variables.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import glob
import os
import platform
import re
import struct
import sys
from dataclasses import dataclass
from functools import cache
from typing import Callable

from deployex.exceptions import MalformedScriptException, UndefinedVariableException
from deployex.lexer import unquote

DEFAULT_PROCESS_TIMEOUT = 300

SOLUTION_MARKER = "*.sln"

RX_FALSY = re.compile(r"(?:0+|false|no|nope|off|disable)", re.IGNORECASE)


def to_bool(text: str) -> bool:
    """
    Coerce script text to a boolean. Only the falsy vocabulary is False.
    """
    return RX_FALSY.fullmatch(unquote(text).strip()) is None


def to_int(text: str) -> int:
    """
    Coerce script text to a base-10 integer.
    """
    try:
        return int(unquote(text).strip(), 10)
    except ValueError as e:
        raise MalformedScriptException(f"'{text}' is not an integer") from e


@dataclass
class ScriptVariables:
    """Values assignable from scripts."""

    source: str = ""
    target: str = ""
    ignore_errors: bool = False
    redirect_output: bool = False
    process_timeout: int = DEFAULT_PROCESS_TIMEOUT


@dataclass(frozen=True)
class Variable:
    """Accessor binding a script name to a typed store attribute."""

    attr: str
    coerce: Callable[[str], object]

    def get(self, store: ScriptVariables) -> object:
        return getattr(store, self.attr)

    def set(self, store: ScriptVariables, text: str) -> None:
        setattr(store, self.attr, self.coerce(text))


VARIABLES: dict[str, Variable] = {
    "Source": Variable("source", str),
    "Target": Variable("target", str),
    "IgnoreErrors": Variable("ignore_errors", to_bool),
    "RedirectOutput": Variable("redirect_output", to_bool),
    "ProcessTimeoutSeconds": Variable("process_timeout", to_int),
}


def assign(store: ScriptVariables, name: str, text: str) -> None:
    """
    Assign script text to the named variable, coercing it to the variable type.

    Raises:
        UndefinedVariableException: If the name is not a script variable.
        MalformedScriptException: If an integer variable receives non-numeric text.
    """
    variable = VARIABLES.get(name)
    if variable is None:
        raise UndefinedVariableException(name)
    variable.set(store, text)


# ----------------------------------------------------------------------
# Resolvable values
# ----------------------------------------------------------------------

@cache
def solution_dir() -> str | None:
    """Nearest ancestor of the working directory holding a solution marker."""
    here = os.getcwd()
    while True:
        if glob.glob(os.path.join(glob.escape(here), SOLUTION_MARKER)):
            return here
        parent = os.path.dirname(here)
        if parent == here:
            return None
        here = parent


@cache
def platform_tag() -> str:
    machine = platform.machine().lower()
    if machine in {"amd64", "x86_64"}:
        return "x64" if struct.calcsize("P") == 8 else "x86"
    if machine in {"x86", "i386", "i686"}:
        return "x86"
    return ""


@cache
def program_files_dir() -> str | None:
    # ProgramFiles(x86) only exists on 64-bit Windows
    if platform_tag() == "x86" and os.environ.get("ProgramFiles(x86)"):
        return os.environ["ProgramFiles(x86)"]
    return os.environ.get("ProgramFiles")


@cache
def windows_dir() -> str | None:
    return os.environ.get("SystemRoot") or os.environ.get("windir")


@cache
def system_dir() -> str | None:
    root = windows_dir()
    return os.path.join(root, "System32") if root else None


@cache
def runtime_dir() -> str:
    return os.path.dirname(os.path.abspath(sys.executable))


@cache
def ngen_path() -> str:
    return os.path.join(runtime_dir(), "NGen.exe")


RESOLVABLES: dict[str, Callable[[], str | None]] = {
    "SolutionDir": solution_dir,
    "Platform": platform_tag,
    "ProgramFiles": program_files_dir,
    "Windows": windows_dir,
    "System": system_dir,
    "Runtime": runtime_dir,
    "NGen": ngen_path,
}

"""Errors.

Every error raised while interpreting a script derives from
:class:`ScriptException`. These unwind through nested ``Run`` invocations and
are turned into a single failure diagnostic by the outermost run. Resource and
service lookups raise their own exceptions which the interpreter converts into
status flags.


File: exceptions.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from deployex.status import StatusFlags


def _located(message, line=None, file=None) -> str:
    if line is not None:
        message += f" on line '{line}'"
    if file is not None:
        message += f" in {file}"
    return message


class ScriptException(Exception):
    """
    Base error for anything that aborts a script run.
    """
    status = StatusFlags.OK

    def __init__(self, message, line=None, file=None):
        self.line = line
        self.script = file
        super().__init__(_located(message, line, file))


class MalformedScriptException(ScriptException):
    """
    Error for lines that cannot be parsed or resolved.
    """


class UndefinedVariableException(MalformedScriptException):
    """
    Error for assignments to names outside the variable store.
    """
    def __init__(self, varname, line=None, file=None):
        self.varname = varname
        super().__init__(f"Undefined variable '{varname}'", line, file)


class UnresolvedMacroException(MalformedScriptException):
    """
    Error for macros that resolve to nothing.
    """
    status = StatusFlags.NULL_REFERENCE

    def __init__(self, name, line=None, file=None):
        self.name = name
        super().__init__(f"Macro '$({name})' resolved to nothing", line, file)


class CommandArgumentException(ScriptException):
    """
    Error for built-in commands called with invalid arguments.
    """


class ProcessTimeoutException(ScriptException):
    """
    Error for external processes that did not exit in time.
    """
    def __init__(self, path, timeout, line=None, file=None):
        self.path = path
        self.timeout = timeout
        super().__init__(
            f"Process '{path}' hasn't exited in {timeout} seconds", line, file
        )


class ServiceTimeoutException(ScriptException):
    """
    Error for services that did not reach the requested state in time.
    """
    def __init__(self, name, state, line=None, file=None):
        self.name = name
        self.state = state
        super().__init__(f"Service '{name}' did not reach state {state}", line, file)


class ResourceNotFoundException(LookupError):
    """
    Error for embedded resources that do not exist.
    """
    def __init__(self, name, location=None):
        self.name = name
        message = f"Resource '{name}' not found"
        if location is not None:
            message += f" in {location}"
        super().__init__(message)


class ServiceOperationException(RuntimeError):
    """
    Error for invalid service operations (missing service, wrong state).
    """
    def __init__(self, name, detail=None):
        self.name = name
        message = f"Invalid operation on service '{name}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ArchiveFormatException(ValueError):
    """
    Error for archive streams that are not valid archives.
    """
    def __init__(self, detail):
        super().__init__(f"Invalid archive: {detail}")

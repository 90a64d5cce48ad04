"""Built-in commands and command classification.

A tokenized line is classified exactly once into one of three invocations:
:class:`Exit` for the exit sentinel, :class:`Builtin` for one of the
:class:`Command` names, or :class:`External` for anything else, which is run
as an executable.


File: operations.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from dataclasses import dataclass
from enum import Enum

EXIT = "Exit"
EXIT_SENTINEL = f"$({EXIT})"


class Command(Enum):
    """Built-in script commands."""

    RUN = "Run"
    MESSAGE = "Message"
    NOTIFY = "Notify"
    PACK = "Pack"
    UNPACK = "Unpack"
    DELETE = "Delete"
    KILL = "Kill"
    SERVICE_START = "ServiceStart"
    SERVICE_STOP = "ServiceStop"
    IF_EXISTS = "IfExists"
    IF_NOT_EXISTS = "IfNotExists"
    IF_UPGRADE_TO = "IfUpgradeTo"
    PASS_ASSEMBLY_VERSION = "PassAssemblyVersion"

    @classmethod
    def lookup(cls, token: str) -> "Command | None":
        """
        Find the command named by ``$(Name)`` or the bare ``Name``.
        """
        name = token[2:-1] if token.startswith("$(") and token.endswith(")") else token
        try:
            return cls(name)
        except ValueError:
            return None


RESERVED_NAMES = frozenset([EXIT, *(c.value for c in Command)])


@dataclass(frozen=True)
class Exit:
    """Stop the current script and every enclosing one."""


@dataclass(frozen=True)
class Builtin:
    command: Command
    args: tuple[str, ...]


@dataclass(frozen=True)
class External:
    path: str
    arguments: str


Invocation = Exit | Builtin | External


def classify(tokens: list[str]) -> Invocation:
    """
    Classify a token sequence as an exit, a built-in or an external process.

    Parameters:
        tokens (list[str]): Command name followed by its arguments.

    Returns:
        Invocation: The classified invocation.
    """
    name, args = tokens[0], tokens[1:]
    if name == EXIT_SENTINEL:
        return Exit()
    command = Command.lookup(name)
    if command is not None:
        return Builtin(command, tuple(args))
    return External(name, " ".join(args))

"""Macro resolution.

Every ``$(Identifier)`` span of a line is replaced independently, in a single
pass, by the text of the identified value:

1. a script variable of that name,
2. a resolvable value of that name,
3. a file name such as ``$(setup.log)``, rooted under the ``Target`` directory.

Built-in command names and ``$(Exit)`` are left untouched for the dispatcher.
Anything else is an error. A resolved value containing a space is quoted.


File: macros.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import os
import re
from typing import Callable

from deployex.exceptions import UnresolvedMacroException
from deployex.lexer import quote, unquote
from deployex.operations import RESERVED_NAMES
from deployex.variables import RESOLVABLES, VARIABLES, ScriptVariables

RX_MACRO = re.compile(r"\$\([^()$]+\)")
RX_MACRO_NAME = re.compile(r"\$\(([^()$]+)\)")
RX_FILE_NAME = re.compile(r"[^)]+\.[a-z]{2,}")


def macro_name(expression: str) -> str | None:
    """
    Return the identifier of an expression that is exactly ``$(Identifier)``.
    """
    match = RX_MACRO_NAME.fullmatch(expression.strip())
    return match.group(1) if match else None


class MacroResolver:
    """Resolves macros against a variable store and the resolvable values."""

    def __init__(
        self,
        variables: ScriptVariables,
        resolvables: dict[str, Callable[[], str | None]] | None = None,
    ):
        self.variables = variables
        self.resolvables = RESOLVABLES if resolvables is None else resolvables

    def value_of(self, name: str) -> str:
        """
        Resolve one identifier to its textual value.

        Raises:
            UnresolvedMacroException: If the identifier resolves to nothing.
        """
        if name in RESERVED_NAMES:
            return f"$({name})"
        if name in VARIABLES:
            value = VARIABLES[name].get(self.variables)
        elif name in self.resolvables:
            value = self.resolvables[name]()
        elif RX_FILE_NAME.fullmatch(name):
            value = os.path.join(unquote(self.variables.target), name)
        else:
            value = None
        if value is None:
            raise UnresolvedMacroException(name)
        return quote(str(value))

    def resolve(self, line: str) -> str:
        """
        Replace every macro in a line with its value.
        """
        return RX_MACRO.sub(lambda m: self.value_of(m.group()[2:-1]), line)

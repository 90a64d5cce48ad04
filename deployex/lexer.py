"""Lexer for deployment scripts.

A script is processed one line at a time. :func:`split_lines` breaks the
script text into trimmed lines, :func:`strip_comment` removes a trailing
``#`` comment that is not inside double quotes, :func:`split_assignment`
detects ``$(Name) = value`` lines and :func:`tokenize` splits a command line
into shell-like tokens.

Tokenizing is deliberately simple. Double quotes group words containing
spaces and a backslash directly before a space keeps that space inside the
token. Quotes and backslashes are never removed from the tokens, it is up to
the individual commands to unquote their arguments.


File: lexer.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import re

RX_LINES = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """
    Split script text into lines with surrounding whitespace removed.

    Parameters:
        text (str): The script text.

    Returns:
        list[str]: Every line of the script, blank lines included.
    """
    return [line.strip() for line in RX_LINES.split(text)]


def is_skipped(line: str) -> bool:
    """
    Return True for blank lines and full-line comments.
    """
    return not line or line[0] == "#"


def _unquoted_index(line: str, char: str) -> int:
    quoting = False
    for i, c in enumerate(line):
        if c == '"':
            quoting = not quoting
        elif c == char and not quoting:
            return i
    return -1


def strip_comment(line: str) -> str:
    """
    Remove a trailing comment that starts outside double quotes.

    Parameters:
        line (str): A trimmed script line.

    Returns:
        str: The line without its comment and trailing whitespace.
    """
    index = _unquoted_index(line, "#")
    if index > 0:
        return line[:index].rstrip()
    return line


def split_assignment(line: str) -> tuple[str, str] | None:
    """
    Split a line at its first unquoted ``=``.

    Only the first ``=`` is significant, the value may contain more of them.

    Returns:
        tuple[str, str] | None: The left and right operands, stripped, or
        None when the line holds no assignment.
    """
    index = _unquoted_index(line, "=")
    if index < 0:
        return None
    return line[:index].strip(), line[index + 1:].strip()


def tokenize(line: str) -> list[str]:
    """
    Split a line into tokens on spaces that are neither quoted nor escaped.

    Parameters:
        line (str): A line with its macros already resolved.

    Returns:
        list[str]: The tokens. An empty line yields a single empty token.
    """
    tokens = [""]
    quoting = False
    backslash = False
    for c in line:
        if c == '"':
            quoting = not quoting
        escaped = backslash and c == " "
        if c == " " and not quoting and not escaped:
            tokens.append("")
        else:
            tokens[-1] += c
        backslash = c == "\\"
    return tokens


def unquote(text: str) -> str:
    """
    Remove every double quote from a value.
    """
    return text.replace('"', "")


def quote(text: str) -> str:
    """
    Wrap a value in double quotes when it contains a space.
    """
    if " " in text:
        return f'"{unquote(text)}"'
    return text


def split_arguments(arguments: str) -> list[str]:
    """
    Split an argument string into process arguments.

    Words are grouped by the :func:`tokenize` rules and then unquoted.
    Backslashes and single quotes are passed through unchanged.
    """
    return [unquote(token) for token in tokenize(arguments) if token]

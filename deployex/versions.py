"""Version probing and assembly version passing.


File: versions.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import logging
import os
import re

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

Version = tuple[int, ...]

ASSEMBLY_INFO = os.path.join("Properties", "AssemblyInfo.cs")

RX_ASSEMBLY_VERSION = re.compile(r'\[assembly: *AssemblyVersion\("([0-9.]+)"\)\]')
RX_ASSEMBLY_FILE_VERSION = re.compile(r'\[assembly: *AssemblyFileVersion\("([0-9.]+)"\)\]')
RX_PY_VERSION = re.compile(r"""__version__\s*=\s*["']([0-9.]+)["']""")


def parse_version(text: str) -> Version:
    """
    Parse a dotted numeric version. Trailing zero components are ignored so
    ``1.2`` and ``1.2.0.0`` compare equal.

    Raises:
        ValueError: If a component is not a number.
    """
    parts = [int(p) for p in text.strip().split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def probe_version(path: str) -> Version | None:
    """
    Read the version declared in a file.

    The file is searched for an ``AssemblyVersion`` attribute or a Python
    ``__version__`` assignment.

    Returns:
        Version | None: The declared version, or None when nothing usable is declared.
    """
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        content = f.read()
    for rx in (RX_ASSEMBLY_VERSION, RX_PY_VERSION):
        match = rx.search(content)
        if match:
            try:
                return parse_version(match.group(1))
            except ValueError:
                logger.debug("Unparsable version %r in %s", match.group(1), path)
                return None
    return None


def _read(path: str) -> str:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return f.read()


def pass_assembly_version(source_project: str, target_project: str) -> tuple[str, str]:
    """
    Copy the assembly and file versions of one project to another.

    Parameters:
        source_project (str): Project directory holding the versions to pass.
        target_project (str): Project directory whose metadata is rewritten.

    Returns:
        tuple[str, str]: The passed assembly version and file version.

    Raises:
        FileNotFoundError: If either metadata file is missing.
    """
    source = os.path.join(source_project, ASSEMBLY_INFO)
    target = os.path.join(target_project, ASSEMBLY_INFO)
    for path in (source, target):
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Project metadata '{path}' not found")
    source_content = _read(source)
    target_content = _read(target)

    versions = []
    for rx in (RX_ASSEMBLY_VERSION, RX_ASSEMBLY_FILE_VERSION):
        match = rx.search(source_content)
        version = match.group(1) if match else ""
        target_content = rx.sub(
            lambda m, v=version: m.group(0).replace(m.group(1), v), target_content
        )
        versions.append(version)

    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(target_content)
    return versions[0], versions[1]

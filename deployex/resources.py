"""Embedded resource lookup.

Scripts, file lists and archives are looked up by bare resource name. Two
providers are available: :class:`DirectoryResources` reads them from a
directory on disk and :class:`PackageResources` reads them from data files
shipped inside a Python package.


File: resources.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import io
import os
from importlib import resources
from typing import BinaryIO, Protocol

from deployex.exceptions import ResourceNotFoundException


class ResourceProvider(Protocol):
    def read_text(self, name: str) -> str: ...

    def open_binary(self, name: str) -> BinaryIO: ...


class DirectoryResources:
    """Resources stored as files in a directory."""

    def __init__(self, root: str | os.PathLike):
        self.root = os.path.abspath(root)

    def _path(self, name: str) -> str:
        path = os.path.join(self.root, name)
        if not os.path.isfile(path):
            raise ResourceNotFoundException(name, self.root)
        return path

    def read_text(self, name: str) -> str:
        with open(self._path(name), "r", encoding="utf-8-sig") as f:
            return f.read()

    def open_binary(self, name: str) -> BinaryIO:
        return open(self._path(name), "rb")


class PackageResources:
    """Resources stored as data files of an importable package."""

    def __init__(self, package: str):
        self.package = package

    def _traversable(self, name: str):
        resource = resources.files(self.package).joinpath(name)
        if not resource.is_file():
            raise ResourceNotFoundException(name, self.package)
        return resource

    def read_text(self, name: str) -> str:
        return self._traversable(name).read_text(encoding="utf-8-sig")

    def open_binary(self, name: str) -> BinaryIO:
        return io.BytesIO(self._traversable(name).read_bytes())

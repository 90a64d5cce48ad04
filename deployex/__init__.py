"""Deployment script interpreter and archiver.

The :class:`Interpreter` runs install, uninstall and upgrade scripts looked up
from a resource provider. :class:`Arc` and :class:`ArcDeflate` create and
extract the archives the ``Pack`` and ``Unpack`` commands work with.


File: __init__.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from .arc import Arc, ArcDeflate
from .events import EventHandlers
from .interpreter import Flow, Interpreter
from .resources import DirectoryResources, PackageResources
from .status import Diagnostics, StatusFlags
from .versions import __version__

__all__ = [
    "Arc",
    "ArcDeflate",
    "Diagnostics",
    "DirectoryResources",
    "EventHandlers",
    "Flow",
    "Interpreter",
    "PackageResources",
    "StatusFlags",
    "__version__",
]

"""
Command-line host for deployment scripts and archives.

Usage:
    deployex run SCRIPT [SCRIPT ...] [--resources DIR] [--set NAME=VALUE] [--require-admin]
    deployex pack ARCHIVE PATH [PATH ...] [--base DIR] [--plain]
    deployex unpack ARCHIVE DEST [--plain]
    deployex list ARCHIVE [--plain]

Set DEPLOYEX_DEBUG (or pass --verbose) to log every executed script line.


File: cli.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import argparse
import ctypes
import logging
import os
import sys

from deployex.arc import Arc, ArcDeflate
from deployex.events import EventHandlers
from deployex.exceptions import ArchiveFormatException, ScriptException
from deployex.interpreter import Interpreter
from deployex.resources import DirectoryResources
from deployex.status import Diagnostics
from deployex.versions import __version__


def is_elevated() -> bool:
    """
    Return True when the process runs with administrative rights.
    """
    if os.name == "nt":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except OSError:
            return False
    return os.geteuid() == 0


def _print_failure(diagnostics: Diagnostics) -> None:
    print(f"❌ Failed in {diagnostics.script}: {diagnostics.line}", file=sys.stderr)
    print(f"   status: {diagnostics.status!r}", file=sys.stderr)
    if diagnostics.exit_code is not None:
        print(f"   exit code: {diagnostics.exit_code}", file=sys.stderr)
    if diagnostics.error_message:
        print(diagnostics.error_message, file=sys.stderr)


def _expand(paths: list[str]) -> list[str]:
    """
    Expand directories into their files, sorted so archives are reproducible.
    """
    files = []
    for path in paths:
        if os.path.isdir(path):
            for dirpath, _dirnames, filenames in os.walk(path):
                files.extend(os.path.join(dirpath, name) for name in filenames)
        else:
            files.append(path)
    return sorted(files)


def _archiver(args) -> Arc:
    return Arc() if args.plain else ArcDeflate()


def _run(args) -> int:
    if args.require_admin and not is_elevated():
        print("❌ Administrative rights are required", file=sys.stderr)
        return 2

    handlers = EventHandlers(
        on_message=print,
        on_notification=lambda text: print(f"🔔 {text}"),
        on_success=lambda: print("✅ Done"),
        on_failure=_print_failure,
    )
    interpreter = Interpreter(DirectoryResources(args.resources), handlers=handlers)
    for assignment in args.set:
        name, sep, value = assignment.partition("=")
        if not sep:
            print(f"❌ Expected NAME=VALUE, got '{assignment}'", file=sys.stderr)
            return 1
        try:
            interpreter.assign(name.strip(), value.strip())
        except ScriptException as e:
            print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
            return 1
    return 0 if interpreter.run(*args.scripts) else 1


def _pack(args) -> int:
    files = _expand(args.paths)
    with _archiver(args) as arc:
        if args.base:
            arc.base_dir = args.base
        arc.create_archive(args.archive, files)
    print(f"✅ Packed {len(files)} files into {args.archive}")
    return 0


def _unpack(args) -> int:
    try:
        with _archiver(args) as arc:
            arc.extract_archive(args.archive, args.dest)
    except ArchiveFormatException as e:
        print(f"❌ {args.archive}: {e}", file=sys.stderr)
        return 1
    print(f"✅ Extracted {args.archive} to {args.dest}")
    return 0


def _list(args) -> int:
    try:
        with open(args.archive, "rb") as f, _archiver(args) as arc:
            for record in arc.read_records(f):
                print(f"{len(record.content):>10}  {record.path}")
    except ArchiveFormatException as e:
        print(f"❌ {args.archive}: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deployex",
        description="Deployment script interpreter and archiver.",
        allow_abbrev=False,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every executed line (same as setting DEPLOYEX_DEBUG)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # run
    p_run = sub.add_parser("run", help="Run one or more scripts")
    p_run.add_argument("scripts", nargs="+", help="Script resource names")
    p_run.add_argument(
        "--resources",
        default=os.getcwd(),
        help="Directory holding scripts, file lists and archives (default: current directory)",
    )
    p_run.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Preset a script variable, e.g. --set IgnoreErrors=yes",
    )
    p_run.add_argument(
        "--require-admin",
        action="store_true",
        help="Refuse to run without administrative rights",
    )
    p_run.set_defaults(handler=_run)

    # pack
    p_pack = sub.add_parser("pack", help="Create an archive")
    p_pack.add_argument("archive", help="Archive file to create")
    p_pack.add_argument("paths", nargs="+", help="Files or directories to add")
    p_pack.add_argument("--base", default=None, help="Base directory of stored paths")
    p_pack.add_argument("--plain", action="store_true", help="Do not compress")
    p_pack.set_defaults(handler=_pack)

    # unpack
    p_unpack = sub.add_parser("unpack", help="Extract an archive")
    p_unpack.add_argument("archive", help="Archive file to extract")
    p_unpack.add_argument("dest", help="Target directory")
    p_unpack.add_argument("--plain", action="store_true", help="Archive is not compressed")
    p_unpack.set_defaults(handler=_unpack)

    # list
    p_list = sub.add_parser("list", help="List archive contents")
    p_list.add_argument("archive", help="Archive file to list")
    p_list.add_argument("--plain", action="store_true", help="Archive is not compressed")
    p_list.set_defaults(handler=_list)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the CLI.
    """
    args = build_parser().parse_args(argv)
    debug = args.verbose or bool(os.environ.get("DEPLOYEX_DEBUG"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

"""Interpreter.

This is a line-oriented interpreter for install, uninstall and upgrade
scripts. Scripts are looked up by name from a resource provider and executed
one line at a time.

1. Execution Model
Each line is either an assignment (``$(Name) = value``) or a command. Commands
have their macros resolved, are tokenized and then classified as the exit
sentinel, a built-in command or an external process. Built-ins that run
further lines (``Run``, ``IfExists``, ``IfNotExists``, ``IfUpgradeTo``) call
back into :meth:`Interpreter.execute`, so nesting is plain recursion tracked by
a depth counter.

2. Variables
The interpreter owns a :class:`ScriptVariables` store. Assignments coerce the
assigned text to the variable's type. Everything else only reads it.

3. Control Flow
Every step returns a :class:`Flow` signal. ``Flow.EXIT`` unwinds the current
script and every enclosing ``Run`` without executing another line. It is
returned for ``$(Exit)`` and for every failure that is not suppressed by
``IgnoreErrors``.

4. Error Handling
Failures reported through status flags (missing resources, access denied,
non-zero exit codes, already installed versions) go through :meth:`fail`,
which records the flag and, unless ``IgnoreErrors`` is set, emits the failure
diagnostic. Malformed scripts, process timeouts and invalid command arguments
raise a :class:`ScriptException` that is always fatal; the outermost run turns
it into the failure diagnostic. Exactly one failure is emitted per aborted run
and success is only emitted when the outermost run completes cleanly.


File: interpreter.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

import logging
import os
import re
import shutil
from enum import Enum
from typing import Callable

from deployex.arc import ArcDeflate
from deployex.events import EventHandlers
from deployex.exceptions import (
    ArchiveFormatException,
    CommandArgumentException,
    MalformedScriptException,
    ResourceNotFoundException,
    ScriptException,
    ServiceOperationException,
)
from deployex.lexer import is_skipped, split_assignment, split_lines, strip_comment, tokenize, unquote
from deployex.macros import MacroResolver, macro_name
from deployex.operations import EXIT_SENTINEL, Builtin, Command, Exit, External, classify
from deployex.processes import kill_by_path, launch
from deployex.resources import ResourceProvider
from deployex.services import START_TIMEOUT, ServiceManager, WindowsServices
from deployex.status import Diagnostics, StatusFlags
from deployex.variables import ScriptVariables, assign
from deployex.versions import Version, __version__, parse_version, pass_assembly_version, probe_version

logger = logging.getLogger(__name__)

RX_LIST_SEPARATORS = re.compile(r"[\\/]+")


class Flow(Enum):
    """Signal returned by every executed step."""

    NEXT = "next"
    EXIT = "exit"


class Interpreter:
    """Interpreter for deployment scripts."""

    def __init__(
        self,
        resources: ResourceProvider,
        *,
        handlers: EventHandlers | None = None,
        version: str | None = None,
        version_probe: Callable[[str], Version | None] | None = None,
        services: ServiceManager | None = None,
        working_dir: str | None = None,
    ):
        """
        Initialize the interpreter.

        Parameters:
            resources (ResourceProvider): Lookup for scripts, file lists and archives.
            handlers (EventHandlers | None): Host callbacks for interpreter events.
            version (str | None): Version being installed, compared by ``IfUpgradeTo``.
            version_probe (Callable | None): Reads the version of an installed file.
            services (ServiceManager | None): Service control used by ``ServiceStart``/``ServiceStop``.
            working_dir (str | None): Directory relative paths are resolved against.
        """
        self.resources = resources
        self.handlers = handlers if handlers is not None else EventHandlers()
        self.version = parse_version(version or __version__)
        self.version_probe = version_probe or probe_version
        self.services = services if services is not None else WindowsServices()
        self.working_dir = os.path.abspath(working_dir or os.getcwd())

        self.variables = ScriptVariables()
        self.macros = MacroResolver(self.variables)

        self.script: str | None = None
        self.line: str | None = None
        self.depth = 0
        self.status = StatusFlags.OK
        self.failed = False
        self.diagnostics: Diagnostics | None = None

        self.builtins: dict[Command, Callable[[tuple[str, ...]], Flow]] = {
            Command.RUN: self.run_scripts,
            Command.MESSAGE: self._message,
            Command.NOTIFY: self._notify,
            Command.PACK: self._pack,
            Command.UNPACK: self._unpack,
            Command.DELETE: self._delete,
            Command.KILL: self._kill,
            Command.SERVICE_START: self._service_start,
            Command.SERVICE_STOP: self._service_stop,
            Command.IF_EXISTS: self._if_exists,
            Command.IF_NOT_EXISTS: self._if_not_exists,
            Command.IF_UPGRADE_TO: self._if_upgrade_to,
            Command.PASS_ASSEMBLY_VERSION: self._pass_assembly_version,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, *names: str) -> bool:
        """
        Run one or more scripts as a new run.

        Parameters:
            names (str): Resource names of the scripts, executed in order.

        Returns:
            bool: True if the run succeeded and the success event was emitted.
        """
        self.status = StatusFlags.OK
        self.failed = False
        self.diagnostics = None
        self.script = self.line = None
        try:
            self.run_scripts(names)
        except ScriptException as e:
            self.status |= e.status
            self._failure(Diagnostics(self.script, self.line, self.status, str(e)))
        return not self.failed and self.status == StatusFlags.OK

    def assign(self, name: str, value: str) -> None:
        """
        Assign a script variable as an assignment line would.
        """
        assign(self.variables, name, self.macros.resolve(value))

    def run_scripts(self, names: tuple[str, ...]) -> Flow:
        """
        Execute scripts in order, stopping at the first exit signal.

        ``$(Exit)`` given in place of a script name stops the remaining scripts.
        Success is emitted when the outermost call returns without failure.
        """
        flow = Flow.NEXT
        self.depth += 1
        try:
            for name in names:
                if name == EXIT_SENTINEL:
                    flow = Flow.EXIT
                    break
                flow = self.run_script(unquote(name))
                if flow is Flow.EXIT:
                    break
        finally:
            self.depth -= 1
        if self.depth == 0 and not self.failed and self.status == StatusFlags.OK:
            logger.info("Run completed successfully")
            self.handlers.success()
        return flow

    def run_script(self, name: str) -> Flow:
        """
        Execute every line of a single script.
        """
        try:
            text = self.resources.read_text(name)
        except ResourceNotFoundException as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, str(e))

        for line in split_lines(text):
            if is_skipped(line):
                continue
            self.script, self.line = name, line
            logger.debug("%s: %s", name, line)
            if self.execute_line(strip_comment(line)) is Flow.EXIT:
                return Flow.EXIT
        return Flow.NEXT

    def execute_line(self, line: str) -> Flow:
        """
        Execute a line holding either an assignment or a command.
        """
        operands = split_assignment(line)
        if operands is not None:
            self.parse_assignment(*operands)
            return Flow.NEXT
        return self.execute(tokenize(self.macros.resolve(line)))

    def parse_assignment(self, lhs: str, rhs: str) -> None:
        """
        Assign the macro-resolved right operand to the variable named on the left.

        Raises:
            MalformedScriptException: If the left operand is not ``$(Name)``.
            UndefinedVariableException: If the name is not a script variable.
        """
        name = macro_name(lhs)
        if name is None:
            raise MalformedScriptException("Invalid assignment", self.line, self.script)
        assign(self.variables, name, self.macros.resolve(rhs))
        logger.debug("%s = %r", name, self.macros.value_of(name))

    def execute(self, tokens: list[str]) -> Flow:
        """
        Dispatch a tokenized command.

        Parameters:
            tokens (list[str]): Command name followed by its arguments.

        Returns:
            Flow: ``Flow.EXIT`` if execution must stop.
        """
        match classify(tokens):
            case Exit():
                logger.debug("Exit requested")
                return Flow.EXIT
            case Builtin(command=command, args=args):
                logger.debug("Built-in %s %s", command.value, args)
                return self.builtins[command](args)
            case External(path=path, arguments=arguments):
                return self.run_process(path, arguments)

    def run_process(self, path: str, arguments: str) -> Flow:
        """
        Run an external process and check its exit code.

        Raises:
            ProcessTimeoutException: If the process exceeds ``ProcessTimeoutSeconds``.
        """
        try:
            result = launch(
                unquote(path),
                arguments,
                cwd=self.working_dir,
                redirect=self.variables.redirect_output,
                timeout=self.variables.process_timeout,
            )
        except FileNotFoundError as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, f"Cannot start '{path}': {e}")
        except PermissionError as e:
            return self.fail(StatusFlags.FILE_ACCESS_DENIED, f"Cannot start '{path}': {e}")
        if result.exit_code != 0:
            return self.fail(StatusFlags.NON_ZERO_EXIT_CODE, result.output, result.exit_code)
        return Flow.NEXT

    # ------------------------------------------------------------------
    # Status and events
    # ------------------------------------------------------------------

    def fail(self, status: StatusFlags, message: str | None = None, exit_code: int | None = None) -> Flow:
        """
        Record a failure status and stop unless errors are ignored.

        Returns:
            Flow: ``Flow.NEXT`` when ``IgnoreErrors`` is set, otherwise ``Flow.EXIT``.
        """
        self.status |= status
        if self.variables.ignore_errors:
            logger.warning("Ignoring %r on line '%s' in %s", status, self.line, self.script)
            return Flow.NEXT
        self._failure(Diagnostics(self.script, self.line, self.status, message, exit_code))
        return Flow.EXIT

    def _failure(self, diagnostics: Diagnostics) -> None:
        self.failed = True
        self.diagnostics = diagnostics
        logger.error("Script failed: %s", diagnostics)
        self.handlers.failure(diagnostics)

    def _path(self, path: str) -> str:
        return os.path.join(self.working_dir, unquote(path))

    def _require(self, value: str, what: str, command: Command) -> None:
        if not value:
            raise CommandArgumentException(
                f"{what} cannot be empty for {command.value} command", self.line, self.script
            )

    # ------------------------------------------------------------------
    # Built-in commands
    # ------------------------------------------------------------------

    def _message(self, args: tuple[str, ...]) -> Flow:
        text = " ".join(unquote(arg) for arg in args)
        logger.info("Message: %s", text)
        self.handlers.message(text)
        return Flow.NEXT

    def _notify(self, args: tuple[str, ...]) -> Flow:
        text = " ".join(unquote(arg) for arg in args)
        logger.info("Notification: %s", text)
        self.handlers.notification(text)
        return Flow.NEXT

    def _pack(self, args: tuple[str, ...]) -> Flow:
        """
        Pack the files listed in a resource from ``$(Source)`` into the ``$(Target)`` archive.
        """
        self._require(args[0] if args else "", "File list argument", Command.PACK)
        self._require(self.variables.source, "Source", Command.PACK)
        self._require(self.variables.target, "Target", Command.PACK)
        source_dir = self._path(self.variables.source)
        target_path = self._path(self.variables.target)
        try:
            listing = self.resources.read_text(unquote(args[0]))
        except ResourceNotFoundException as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, str(e))

        files = []
        for entry in listing.splitlines():
            parts = [p for p in RX_LIST_SEPARATORS.split(entry.strip()) if p]
            if parts:
                files.append(os.path.join(source_dir, *parts))
        try:
            os.makedirs(os.path.dirname(target_path), exist_ok=True)
            with ArcDeflate(source_dir) as arc:
                arc.create_archive(target_path, files)
        except FileNotFoundError as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, str(e))
        except OSError as e:
            return self.fail(StatusFlags.FILE_ACCESS_DENIED, str(e))
        logger.debug("Packed %d files into %s", len(files), target_path)
        return Flow.NEXT

    def _unpack(self, _args: tuple[str, ...]) -> Flow:
        """
        Extract the ``$(Source)`` archive resource into the ``$(Target)`` directory.
        """
        self._require(self.variables.source, "Source", Command.UNPACK)
        self._require(self.variables.target, "Target", Command.UNPACK)
        target_dir = self._path(self.variables.target)
        try:
            stream = self.resources.open_binary(unquote(self.variables.source))
        except ResourceNotFoundException as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, str(e))
        try:
            with stream, ArcDeflate() as arc:
                arc.extract_archive(stream, target_dir)
        except ArchiveFormatException as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, f"Cannot unpack '{self.variables.source}': {e}")
        except OSError as e:
            return self.fail(StatusFlags.FILE_ACCESS_DENIED, str(e))
        return Flow.NEXT

    def _delete(self, args: tuple[str, ...]) -> Flow:
        for arg in args:
            path = self._path(arg)
            if os.path.isfile(path):
                try:
                    os.remove(path)
                except OSError as e:
                    if self.fail(StatusFlags.FILE_ACCESS_DENIED, str(e)) is Flow.EXIT:
                        return Flow.EXIT
            elif os.path.isdir(path):
                try:
                    shutil.rmtree(path)
                except OSError as e:
                    if self.fail(StatusFlags.DIRECTORY_ACCESS_DENIED, str(e)) is Flow.EXIT:
                        return Flow.EXIT
        return Flow.NEXT

    def _kill(self, args: tuple[str, ...]) -> Flow:
        for arg in args:
            try:
                killed = kill_by_path(unquote(arg))
            except PermissionError as e:
                if self.fail(StatusFlags.FILE_ACCESS_DENIED, str(e)) is Flow.EXIT:
                    return Flow.EXIT
                continue
            if not killed:
                logger.debug("No running process for %s", arg)
        return Flow.NEXT

    def _service_start(self, args: tuple[str, ...]) -> Flow:
        for name in args:
            try:
                self.services.start(unquote(name), START_TIMEOUT)
            except ServiceOperationException as e:
                logger.debug("%s", e)
        return Flow.NEXT

    def _service_stop(self, args: tuple[str, ...]) -> Flow:
        for name in args:
            try:
                self.services.stop(unquote(name), None)
            except ServiceOperationException as e:
                logger.debug("%s", e)
        return Flow.NEXT

    def _exists(self, args: tuple[str, ...], command: Command) -> bool:
        self._require(args[0] if args else "", "Path", command)
        return os.path.exists(self._path(args[0]))

    def _execute_rest(self, args: tuple[str, ...]) -> Flow:
        rest = list(args[1:])
        return self.execute(rest) if rest else Flow.NEXT

    def _if_exists(self, args: tuple[str, ...]) -> Flow:
        if self._exists(args, Command.IF_EXISTS):
            return self._execute_rest(args)
        return Flow.NEXT

    def _if_not_exists(self, args: tuple[str, ...]) -> Flow:
        if not self._exists(args, Command.IF_NOT_EXISTS):
            return self._execute_rest(args)
        return Flow.NEXT

    def _if_upgrade_to(self, args: tuple[str, ...]) -> Flow:
        """
        Execute the rest of the line unless the installed target is the same or newer.

        A missing target counts as an upgrade. An equal version counts as installed.
        """
        self._require(args[0] if args else "", "Path", Command.IF_UPGRADE_TO)
        path = self._path(args[0])
        if os.path.isfile(path):
            installed = self.version_probe(path) or (0,)
            if not self.version > installed:
                return self.fail(
                    StatusFlags.ALREADY_INSTALLED,
                    f"Version {'.'.join(map(str, installed))} is already installed at {path}",
                )
        return self._execute_rest(args)

    def _pass_assembly_version(self, args: tuple[str, ...]) -> Flow:
        if len(args) != 2:
            raise CommandArgumentException(
                f"{Command.PASS_ASSEMBLY_VERSION.value} requires 2 project paths",
                self.line,
                self.script,
            )
        try:
            version, file_version = pass_assembly_version(self._path(args[0]), self._path(args[1]))
        except FileNotFoundError as e:
            return self.fail(StatusFlags.FILE_NOT_FOUND, str(e))
        logger.debug("Passed version %s (file version %s)", version, file_version)
        return Flow.NEXT

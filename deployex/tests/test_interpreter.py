"""Tests for the interpreter core: lines, assignments, control flow and events."""

import os

from deployex.status import StatusFlags
from deployex.tests.utils import make_interpreter


def test_assignments_and_messages(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "install.txt": (
            "# install script\n"
            "\n"
            "$(Target) = C:\\out\n"
            "$(IgnoreErrors) = off   # trailing comment\n"
            "$(ProcessTimeoutSeconds) = 10\n"
            '$(Message) "Installing to $(Target)"\n'
            '$(Notify) "Done #1"\n'
        ),
    })
    assert interp.run("install.txt") is True
    assert interp.variables.target == "C:\\out"
    assert interp.variables.ignore_errors is False
    assert interp.variables.process_timeout == 10
    assert events.messages == ["Installing to C:\\out"]
    assert events.notifications == ["Done #1"]
    assert events.successes == 1
    assert events.failures == []


def test_bare_builtin_names_are_accepted(tmp_path):
    interp, events = make_interpreter(tmp_path, {"s.txt": 'Message "hi"\n'})
    assert interp.run("s.txt")
    assert events.messages == ["hi"]


def test_exit_stops_this_and_enclosing_scripts(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "main.txt": "$(Message) before\n$(Run) child.txt\n$(Message) after-main\n",
        "child.txt": "$(Message) child\n$(Exit)\n$(Message) after-child\n",
    })
    assert interp.run("main.txt") is True
    assert events.messages == ["before", "child"]
    assert events.successes == 1
    assert interp.depth == 0


def test_exit_in_run_file_list(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "a.txt": "$(Message) a\n",
        "b.txt": "$(Message) b\n",
        "main.txt": "$(Run) a.txt $(Exit) b.txt\n",
    })
    interp.run("main.txt")
    assert events.messages == ["a"]


def test_nested_runs_emit_single_success(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "main.txt": "$(Run) one.txt two.txt\n$(Message) main\n",
        "one.txt": "$(Message) one\n$(Run) two.txt\n",
        "two.txt": "$(Message) two\n",
    })
    assert interp.run("main.txt")
    assert events.messages == ["one", "two", "two", "main"]
    assert events.successes == 1


def test_variables_shared_across_nested_scripts(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "main.txt": "$(Run) setvars.txt\n$(Message) $(Source)\n",
        "setvars.txt": "$(Source) = from-child\n",
    })
    interp.run("main.txt")
    assert events.messages == ["from-child"]


def test_unknown_variable_aborts_with_one_failure(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "main.txt": "$(IgnoreErrors) = yes\n$(Run) bad.txt\n$(Message) never\n",
        "bad.txt": "$(Bogus) = 1\n$(Message) never\n",
    })
    assert interp.run("main.txt") is False
    assert events.messages == []
    assert events.successes == 0
    assert len(events.failures) == 1
    failure = events.failures[0]
    assert failure.script == "bad.txt"
    assert failure.line == "$(Bogus) = 1"
    assert "Bogus" in failure.error_message
    assert interp.depth == 0


def test_invalid_assignment_left_side(tmp_path):
    interp, events = make_interpreter(tmp_path, {"s.txt": "Target = x\n"})
    assert interp.run("s.txt") is False
    assert "Invalid assignment" in events.failures[0].error_message


def test_unresolved_macro_sets_null_reference(tmp_path):
    interp, events = make_interpreter(tmp_path, {"s.txt": "$(Message) $(Missing)\n"})
    assert interp.run("s.txt") is False
    assert events.failures[0].status == StatusFlags.NULL_REFERENCE


def test_missing_script_is_file_not_found(tmp_path):
    interp, events = make_interpreter(tmp_path, {"main.txt": "$(Run) nope.txt\n$(Message) after\n"})
    assert interp.run("main.txt") is False
    assert events.failures[0].status == StatusFlags.FILE_NOT_FOUND
    assert events.messages == []


def test_missing_script_ignored_records_status(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "main.txt": "$(IgnoreErrors) = 1\n$(Run) nope.txt\n$(Message) after\n",
    })
    assert interp.run("main.txt") is False
    assert interp.status == StatusFlags.FILE_NOT_FOUND
    assert events.messages == ["after"]
    assert events.failures == []
    assert events.successes == 0


def test_state_is_reset_between_runs(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "bad.txt": "$(Run) nope.txt\n",
        "good.txt": "$(Message) ok\n",
    })
    assert interp.run("bad.txt") is False
    assert interp.run("good.txt") is True
    assert interp.status == StatusFlags.OK
    assert interp.diagnostics is None
    assert events.successes == 1


def test_host_preset_assignment(tmp_path):
    interp, events = make_interpreter(tmp_path, {"s.txt": "$(Message) $(Target)\n"})
    interp.assign("Target", "preset")
    interp.run("s.txt")
    assert events.messages == ["preset"]


def test_file_name_macro_rooted_at_target(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "s.txt": "$(Target) = out\n$(Message) $(app.config)\n",
    })
    interp.run("s.txt")
    assert events.messages == [os.path.join("out", "app.config")]


def test_message_unquotes_every_argument(tmp_path):
    interp, events = make_interpreter(tmp_path, {
        "s.txt": '$(Message) "a b" "c d"\n$(Notify) "x y" z\n',
    })
    assert interp.run("s.txt")
    assert events.messages == ["a b c d"]
    assert events.notifications == ["x y z"]

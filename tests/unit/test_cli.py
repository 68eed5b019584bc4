"""Unit tests for the interactive shell and its entry point."""

import io
import json
import logging

import pytest
from rich.console import Console

from zd_search import cli
from zd_search.cli import CommandShell, main, render_fields, split_command_line


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def shell(related_index, console):
    return CommandShell(related_index, console)


def _output(console) -> str:
    return console.file.getvalue()


class FakeSession:
    """Feeds scripted lines to the shell, then signals end of input."""

    lines: list = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.prompts = []

    def prompt(self, message):
        self.prompts.append(message)
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line


class TestSplitCommandLine:
    def test_splits_on_whitespace(self):
        assert split_command_line("search  user.name   bob") == ["search", "user.name", "bob"]

    def test_double_quotes_keep_spaces(self):
        assert split_command_line('search ticket.subject "A Catastrophe"') == [
            "search",
            "ticket.subject",
            "A Catastrophe",
        ]

    def test_empty_quotes_yield_an_empty_term(self):
        assert split_command_line('search organization.details ""') == ["search", "organization.details", ""]

    def test_apostrophes_are_ordinary_characters(self):
        assert split_command_line("search ticket.subject can't") == ["search", "ticket.subject", "can't"]

    def test_unbalanced_quotes_raise(self):
        with pytest.raises(ValueError):
            split_command_line('search user.name "bob')

    def test_blank_line_has_no_tokens(self):
        assert split_command_line("   ") == []


class TestCommandShell:
    def test_exit_stops_the_shell(self, shell):
        assert shell.handle_line("exit") is False

    def test_blank_lines_are_ignored(self, shell, console):
        assert shell.handle_line("") is True
        assert _output(console) == ""

    def test_help_prints_usage(self, shell, console):
        assert shell.handle_line("help") is True
        assert "To discover what fields are available to query" in _output(console)

    def test_unknown_command(self, shell, console):
        shell.handle_line("frobnicate now")

        assert "Unknown command frobnicate. Try `help` for help." in _output(console)

    def test_malformed_search_reports_the_reason(self, shell, console):
        shell.handle_line("search hooser.name bob")

        assert "Unknown object type. Malformed command" in _output(console)

    def test_unbalanced_quote_is_malformed(self, shell, console):
        shell.handle_line('search user.name "bob')

        assert "Malformed command" in _output(console)

    def test_search_prints_enriched_results(self, shell, console):
        shell.handle_line("search ticket.subject broken")

        output = _output(console)
        assert "Field name" in output
        assert '"it is broken"' in output
        assert '"Org no2Agent"' in output
        assert "_submitter" in output
        assert "(found 1 result(s))" in output

    def test_search_without_matches(self, shell, console):
        shell.handle_line("search user.name nobody")

        assert "(found 0 result(s))" in _output(console)

    def test_fields_lists_field_names(self, shell, console):
        shell.handle_line("fields user")

        output = _output(console)
        for field_name in ("_id", "_type", "name", "organization_id"):
            assert field_name in output

    def test_malformed_fields_command(self, shell, console):
        shell.handle_line("fields")

        assert "No object type given" in _output(console)

    def test_run_reads_until_end_of_input(self, shell, console):
        session = FakeSession()
        session.lines = ["help", KeyboardInterrupt(), "search user.name first"]

        shell.run(session, "> ")

        assert session.prompts == ["> "] * 4
        assert "(found 1 result(s))" in _output(console)

    def test_run_stops_at_exit(self, shell):
        session = FakeSession()
        session.lines = ["exit", "help"]

        shell.run(session)

        assert session.lines == ["help"]


class TestRenderFields:
    def test_pads_the_last_row(self, console):
        render_fields(console, ["a", "b", "c", "d"])

        lines = [line.rstrip() for line in _output(console).splitlines()]
        assert len(lines) == 2
        assert lines[1] == "d"


class TestMain:
    @pytest.fixture
    def data_files(self, tmp_path, related_records):
        paths = {}
        for object_type in ("organization", "ticket", "user"):
            records = [
                {key: value for key, value in record.items() if key != "_type"}
                for record in related_records
                if record["_type"] == object_type
            ]
            path = tmp_path / f"{object_type}s.json"
            path.write_text(json.dumps(records), encoding="utf-8")
            paths[object_type] = path
        return paths

    def test_runs_the_shell_over_the_given_files(self, monkeypatch, console, data_files):
        FakeSession.lines = ["search organization.name no2", "exit"]
        monkeypatch.setattr(cli, "PromptSession", FakeSession)

        code = main(
            [
                "--organization-data",
                str(data_files["organization"]),
                "--ticket-data",
                str(data_files["ticket"]),
                "--user-data",
                str(data_files["user"]),
            ],
            console=console,
        )

        output = _output(console)
        assert code == 0
        assert "Loading data..." in output
        assert "Now dropping to the search shell." in output
        assert '"Organisation no2"' in output
        assert "(found 1 result(s))" in output

    def test_uses_the_data_dir_from_settings(self, monkeypatch, console, tmp_path, data_files):
        monkeypatch.setenv("ZD_SEARCH_DATA_DIR", str(tmp_path))
        FakeSession.lines = []
        monkeypatch.setattr(cli, "PromptSession", FakeSession)

        assert main([], console=console) == 0
        assert f"Using user data from {data_files['user']}" in _output(console)

    def test_unreadable_data_fails_startup(self, monkeypatch, console, tmp_path):
        broken = tmp_path / "users.json"
        broken.write_text("{not json", encoding="utf-8")
        monkeypatch.setattr(cli, "PromptSession", FakeSession)

        code = main(["--user-data", str(broken)], console=console)

        assert code == 1
        assert "Error: Failed to load" in _output(console)

    def test_unindexable_values_fail_startup(self, monkeypatch, console, tmp_path):
        users = tmp_path / "users.json"
        users.write_text(json.dumps([{"_id": 1, "details": None}]), encoding="utf-8")
        monkeypatch.setattr(cli, "PromptSession", FakeSession)

        code = main(["--user-data", str(users)], console=console)

        assert code == 1
        assert "Cannot tokenize None in field 'details'" in _output(console)

    def test_invalid_configuration_fails_startup(self, monkeypatch, console):
        monkeypatch.setenv("ZD_SEARCH_TOKEN_PATTERN", "[unclosed")
        monkeypatch.setattr(cli, "PromptSession", FakeSession)

        code = main([], console=console)

        assert code == 1
        assert "Error: invalid ZD_SEARCH_* configuration" in _output(console)
        assert "Invalid token pattern" in _output(console)

    def test_help_names_the_data_dir(self, capsys):
        with pytest.raises(SystemExit):
            main(["--help"])

        assert "DATA_DIR is" in capsys.readouterr().out

"""
Tests for the neostow command-line front end.
"""

import os

import pytest

from conftest import check_file, check_link, check_not_exists
from neostow import cli
from neostow.types import NeostowCLIError
from neostow.util import VERSION


@pytest.fixture
def cli_env(link_env, monkeypatch):
    """Run the CLI from the project directory with a private HOME."""
    monkeypatch.chdir(link_env.project_dir)
    monkeypatch.setenv("HOME", link_env.home_dir)
    monkeypatch.setenv("TARGET", link_env.target_dir)
    return link_env


def run_cli(*args):
    """Run main() and return its exit status."""
    try:
        cli.main(list(args))
    except SystemExit as e:
        return e.code
    return 0


class TestParseOptions:
    def test_defaults(self):
        assert cli.parse_cli_options([]) == ({}, None)

    def test_flags_and_command(self):
        options, command = cli.parse_cli_options(["-o", "-F", "-d", "-V", "delete"])
        assert options == {"overwrite": True, "force": True, "dry": True, "verbose": True}
        assert command == "delete"

    def test_long_flags(self):
        options, command = cli.parse_cli_options(
            ["--overwrite", "--force", "--dry", "--verbose", "--debug", "edit"]
        )
        assert options["debug"] is True
        assert command == "edit"

    def test_file_option_forms(self):
        assert cli.parse_cli_options(["-f", "x"])[0]["file"] == "x"
        assert cli.parse_cli_options(["--file", "y"])[0]["file"] == "y"
        assert cli.parse_cli_options(["--file=z"])[0]["file"] == "z"

    def test_file_without_argument(self):
        with pytest.raises(NeostowCLIError):
            cli.parse_cli_options(["-f"])

    def test_unknown_argument(self):
        with pytest.raises(NeostowCLIError) as excinfo:
            cli.parse_cli_options(["--bogus"])
        assert excinfo.value.message == "Unknown argument: --bogus"


class TestMain:
    def test_creates_links_from_default_manifest(self, cli_env, capsys):
        cli_env.create_source("a")
        cli_env.write_manifest("a = $TARGET/a\n")

        assert run_cli() == 0

        check_link(cli_env.target("a"), cli_env.source("a"))
        assert capsys.readouterr().out.strip() == "1 operations were performed."

    def test_verbose_prints_each_outcome(self, cli_env, capsys):
        cli_env.create_source("a")
        cli_env.write_manifest("a = ~/a\n")

        run_cli("--verbose")

        out = capsys.readouterr().out
        link = os.path.join(cli_env.home_dir, "a")
        assert f"Created symlink: {link} → {cli_env.source('a')}" in out

    def test_dry_run_prints_previews(self, cli_env, capsys):
        cli_env.create_source("a")
        cli_env.write_manifest("a = $TARGET/a\n")

        assert run_cli("-d") == 0

        check_not_exists(cli_env.target("a"))
        out = capsys.readouterr().out
        assert "Would create:" in out
        assert "1 operations would be performed." in out

    def test_delete(self, cli_env):
        cli_env.create_source("a")
        cli_env.write_manifest("a = $TARGET/a\n")
        run_cli()

        assert run_cli("delete") == 0

        check_not_exists(cli_env.target("a"))

    def test_alternative_manifest_file(self, cli_env, tmp_path):
        other = tmp_path / "elsewhere"
        other.mkdir()
        (other / "b").write_text("b")
        (other / "links").write_text("b = $TARGET/b\n")

        assert run_cli("-f", str(other / "links")) == 0

        check_link(cli_env.target("b"), str(other / "b"))

    def test_missing_manifest_is_fatal(self, cli_env, capsys):
        assert run_cli() == 1
        assert "FATAL: .neostow not found" in capsys.readouterr().err

    def test_unknown_argument_is_fatal(self, cli_env, capsys):
        assert run_cli("--nope") == 1
        assert "FATAL: Unknown argument: --nope" in capsys.readouterr().err

    def test_entry_error_sets_exit_status(self, cli_env, capsys):
        cli_env.create_source("a")
        cli_env.write_manifest("a = $NEOSTOW_UNDEFINED_VAR/a\n")

        assert run_cli() == 1

        err = capsys.readouterr().err
        assert "ERROR: .neostow:1: unresolved variable: NEOSTOW_UNDEFINED_VAR" in err

    def test_diagnostics_are_warnings(self, cli_env, capsys):
        cli_env.write_manifest("not an entry\n")

        assert run_cli() == 0

        assert "WARNING: .neostow:1: missing '=' separator" in capsys.readouterr().err

    def test_conflict_does_not_fail(self, cli_env):
        cli_env.create_source("a")
        cli_env.create_target_file("a", "old")
        cli_env.write_manifest("a = $TARGET/a\n")

        assert run_cli() == 0

        check_file(cli_env.target("a"), "old")

    def test_help_and_version(self, capsys):
        assert run_cli("-h") == 0
        assert "Usage:" in capsys.readouterr().out
        assert run_cli("--version") == 0
        assert capsys.readouterr().out.strip() == VERSION


class TestOverwritePrompt:
    @pytest.fixture
    def conflict(self, cli_env):
        cli_env.create_source("a", "new")
        cli_env.create_target_file("a", "old")
        cli_env.write_manifest("a = $TARGET/a\n")
        return cli_env

    def test_answer_no_keeps_file(self, conflict, monkeypatch):
        monkeypatch.setattr(cli, "files_differ", lambda source, dest: True)
        monkeypatch.setattr("builtins.input", lambda: "n")

        assert run_cli("-o") == 0

        check_file(conflict.target("a"), "old")

    def test_answer_yes_overwrites(self, conflict, monkeypatch):
        monkeypatch.setattr(cli, "files_differ", lambda source, dest: True)
        monkeypatch.setattr("builtins.input", lambda: "Yes")

        run_cli("-o")

        check_link(conflict.target("a"), conflict.source("a"))

    def test_identical_files_are_replaced_without_asking(self, conflict, monkeypatch):
        monkeypatch.setattr(cli, "files_differ", lambda source, dest: False)

        def no_input():
            raise AssertionError("should not prompt")

        monkeypatch.setattr("builtins.input", no_input)

        run_cli("-o")

        check_link(conflict.target("a"), conflict.source("a"))

    def test_force_never_asks(self, conflict, monkeypatch):
        def no_confirm(entry, link_path):
            raise AssertionError("should not prompt")

        monkeypatch.setattr(cli, "confirm_overwrite", no_confirm)

        run_cli("-o", "-F")

        check_link(conflict.target("a"), conflict.source("a"))

    def test_end_of_input_means_no(self, monkeypatch):
        def eof():
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        assert cli.prompt_user("Overwrite?") is False


class TestEdit:
    def test_runs_editor_on_manifest(self, cli_env, monkeypatch):
        calls = []

        class Done:
            returncode = 0

        def fake_run(cmd):
            calls.append(cmd)
            return Done()

        monkeypatch.setenv("EDITOR", "myeditor")
        monkeypatch.setattr(cli.subprocess, "run", fake_run)

        assert run_cli("edit") == 0
        assert calls == [["myeditor", ".neostow"]]

    def test_editor_failure(self, cli_env, monkeypatch, capsys):
        class Failed:
            returncode = 2

        monkeypatch.setattr(cli.subprocess, "run", lambda cmd: Failed())

        assert run_cli("edit") == 1
        assert "ERROR: Editor failed" in capsys.readouterr().err

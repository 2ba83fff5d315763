# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Command-line interface for neostow.

This module contains the CLI functions including argument parsing,
overwrite confirmation, manifest editing and the main entry point.
"""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Sequence

from neostow.manifest import DEFAULT_MANIFEST
from neostow.reconcile import run
from neostow.report import RunReport, format_result
from neostow.types import (
    LinkConfig,
    LinkEntry,
    Mode,
    NeostowCLIError,
    NeostowError,
    OutcomeKind,
)
from neostow.util import PROGRAM_NAME, VERSION

DEBUG_LEVEL = 3


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for neostow command."""
    try:
        _main(sys.argv[1:] if argv is None else list(argv))
    except NeostowCLIError as e:
        print(f"{PROGRAM_NAME}: FATAL: {e.message}", file=sys.stderr)
        sys.exit(e.errno)
    except NeostowError as e:
        print(f"{PROGRAM_NAME}: ERROR: {e.message}", file=sys.stderr)
        sys.exit(e.errno)


def _main(args: list[str]) -> None:
    """Main implementation (can raise NeostowError)."""
    options, command = parse_cli_options(args)
    manifest_path = options.get("file", DEFAULT_MANIFEST)

    if command == "edit":
        edit_file(manifest_path)
        return

    if not os.path.isfile(manifest_path):
        raise NeostowCLIError(f"{manifest_path} not found")

    mode = Mode.DELETE if command == "delete" else Mode.CREATE
    verbose = options.get("verbose", False)
    config = LinkConfig(
        force=options.get("force", False),
        overwrite=options.get("overwrite", False) and mode == Mode.CREATE,
        dry_run=options.get("dry", False),
        verbose=DEBUG_LEVEL if options.get("debug") else int(verbose),
        confirm_overwrite=confirm_overwrite,
    )

    report = run(manifest_path, mode, config)
    print_report(report, verbose=verbose)
    if not report.success:
        sys.exit(1)


def parse_cli_options(args: Sequence[str]) -> tuple[dict, str | None]:
    """Parse command line options.

    Returns: (options, command) where command is None, "delete" or "edit"
    """
    options: dict = {}
    command = None

    i = 0
    while i < len(args):
        arg = args[i]
        match arg:
            case "delete" | "edit":
                command = arg
            case "-o" | "--overwrite":
                options["overwrite"] = True
            case "-F" | "--force":
                options["force"] = True
            case "-V" | "--verbose":
                options["verbose"] = True
            case "-D" | "--debug":
                options["debug"] = True
            case "-d" | "--dry":
                options["dry"] = True
            case "-f" | "--file" if i + 1 < len(args):
                i += 1
                options["file"] = args[i]
            case "-f" | "--file":
                raise NeostowCLIError(f"Option {arg} requires an argument")
            case _ if arg.startswith("--file="):
                options["file"] = arg.removeprefix("--file=")
            case "-h" | "--help":
                show_usage_and_exit()
            case "-v" | "--version":
                show_version_and_exit()
            case _:
                raise NeostowCLIError(f"Unknown argument: {arg}")
        i += 1

    return options, command


def print_report(report: RunReport, verbose: bool = False) -> None:
    """Print diagnostics, per-entry lines and the totals line."""
    for diagnostic in report.diagnostics:
        print(
            f"{PROGRAM_NAME}: WARNING: {report.manifest_path}:{diagnostic.line_number}: "
            f"{diagnostic.message}",
            file=sys.stderr,
        )

    for entry, outcome in report.results:
        if outcome.kind == OutcomeKind.ERROR:
            print(
                f"{PROGRAM_NAME}: ERROR: {report.manifest_path}:{entry.line_number}: "
                f"{outcome.reason}",
                file=sys.stderr,
            )
        elif outcome.kind == OutcomeKind.DRY_RUN_PREVIEW or verbose:
            print(format_result(entry, outcome))

    print(report.summary())


def confirm_overwrite(entry: LinkEntry, link_path: str) -> bool:
    """Ask before replacing a real file or directory with a symlink.

    Shows a unified diff first; identical content is replaced without asking.
    """
    if not files_differ(entry.source, link_path):
        print("Files are identical.")
        return True
    print("Files differ.")
    return prompt_user(f"Destination '{link_path}' exists and is not a symlink. Overwrite?")


def files_differ(source: str, dest: str) -> bool:
    """Run diff -u between source and dest, return True if they differ."""
    cmd = ["diff"]
    if os.path.isdir(source):
        cmd.append("-r")
    cmd += ["-u", source, dest]
    try:
        return subprocess.run(cmd).returncode != 0
    except FileNotFoundError:
        return True


def prompt_user(prompt: str) -> bool:
    """Ask a yes/no question on stdin; anything but y/yes means no."""
    print(f"{prompt} [y/N] ")
    try:
        answer = input()
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def edit_file(path: str) -> None:
    """Open the manifest in $EDITOR (vim by default)."""
    editor = os.environ.get("EDITOR") or "vim"
    try:
        status = subprocess.run([editor, path]).returncode
    except FileNotFoundError as e:
        raise NeostowError(f"Editor not found: {editor}") from e
    if status != 0:
        raise NeostowError("Editor failed")


def show_usage_and_exit() -> None:
    """Print program usage message and exit."""
    print(f"""{PROGRAM_NAME} | The Declarative GNU Stow

Usage:  {PROGRAM_NAME} [OPTIONS] [COMMAND]

Commands:
  delete
          Delete symlinks
  edit
          Edit the {DEFAULT_MANIFEST} file

Options:
  -F, --force
          Skip prompt dialogs
  -V, --verbose
          Enable verbosity
  -D, --debug
          Trace every entry
  -d, --dry
          Describe potential operations
  -f, --file <FILE>
          Load an alternative {DEFAULT_MANIFEST} file
  -h, --help
          Displays this message and exits
  -o, --overwrite
          Overwrite existing symlinks
  -v, --version
          Displays program version""")
    sys.exit(0)


def show_version_and_exit() -> None:
    """Print version and exit."""
    print(VERSION)
    sys.exit(0)


if __name__ == "__main__":
    main()

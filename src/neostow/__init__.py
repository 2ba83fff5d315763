# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
neostow - declarative symlink manager

A project keeps a ``.neostow`` manifest mapping files in the project to
places anywhere on the filesystem::

    # source = destination
    vimrc = ~/.vimrc
    nvim/ = $XDG_CONFIG_HOME/

Basic usage::

    from neostow import run_create, run_delete

    report = run_create(".neostow")
    for line in report.lines():
        print(line)

    # Replace conflicting files, but only describe what would happen
    report = run_create(".neostow", overwrite=True, dry_run=True)

    # Remove the links again (only links pointing at their source)
    report = run_delete(".neostow")
    if not report.success:
        print("Errors:", report.errors)

With configuration reuse::

    from neostow import run_create, LinkConfig

    config = LinkConfig(home_dir="/home/user", environ={"XDG_CONFIG_HOME": "/cfg"})
    run_create("dotfiles/.neostow", config=config)
"""

from neostow.manifest import parse, read_manifest
from neostow.reconcile import run, run_create, run_delete, reconcile, iter_reconcile
from neostow.report import RunReport
from neostow.types import (
    Action,
    LinkConfig,
    LinkEntry,
    Manifest,
    ManifestUnreadable,
    Mode,
    NeostowCLIError,
    NeostowError,
    OperationOutcome,
    OutcomeKind,
    ParseDiagnostic,
    UnresolvedVariable,
)
from neostow.util import VERSION as __version__, expand_path

# CLI entry point
from neostow.cli import main

__all__ = [
    "run",
    "run_create",
    "run_delete",
    "reconcile",
    "iter_reconcile",
    "parse",
    "read_manifest",
    "expand_path",
    "RunReport",
    "Action",
    "LinkConfig",
    "LinkEntry",
    "Manifest",
    "Mode",
    "OperationOutcome",
    "OutcomeKind",
    "ParseDiagnostic",
    "NeostowError",
    "ManifestUnreadable",
    "UnresolvedVariable",
    "NeostowCLIError",
    "__version__",
    "main",
]

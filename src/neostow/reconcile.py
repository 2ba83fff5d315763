# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Core neostow operations - reconcile manifest entries with the filesystem.

This module provides the public API for creating and deleting the symlinks
declared in a manifest, as well as the internal _Reconciler class that
decides and performs the action for each entry.
"""

from __future__ import annotations

import dataclasses
import os
from typing import Iterable, Iterator

from neostow.manifest import read_manifest
from neostow.report import RunReport
from neostow.types import (
    Action,
    LinkConfig,
    LinkEntry,
    Mode,
    OperationOutcome,
    OutcomeKind,
    UnresolvedVariable,
)
from neostow.util import debug, link_points_to, remove_path, set_debug_level


# =============================================================================
# Public API
# =============================================================================


def run_create(
    manifest_path: str,
    config: LinkConfig | None = None,
    **kwargs,
) -> RunReport:
    """Create the symlinks declared in a manifest.

    Args:
        manifest_path: Path to the manifest file
        config: Optional LinkConfig for configuration
        **kwargs: Override config fields (overwrite, dry_run, force, etc.)

    Returns:
        RunReport with one outcome per entry and the parse diagnostics

    Raises:
        ManifestUnreadable: if the manifest cannot be read
    """
    return run(manifest_path, Mode.CREATE, config, **kwargs)


def run_delete(
    manifest_path: str,
    config: LinkConfig | None = None,
    **kwargs,
) -> RunReport:
    """Remove the symlinks declared in a manifest.

    Only symlinks that point at their entry's source are removed.

    Args:
        manifest_path: Path to the manifest file
        config: Optional LinkConfig for configuration
        **kwargs: Override config fields (dry_run, force, etc.)

    Returns:
        RunReport with one outcome per entry and the parse diagnostics

    Raises:
        ManifestUnreadable: if the manifest cannot be read
    """
    return run(manifest_path, Mode.DELETE, config, **kwargs)


def run(
    manifest_path: str,
    mode: Mode,
    config: LinkConfig | None = None,
    **kwargs,
) -> RunReport:
    """Read a manifest and reconcile every entry in the given mode."""
    cfg = _make_config(config, **kwargs)
    set_debug_level(cfg.verbose)

    manifest, diagnostics = read_manifest(manifest_path, cfg.comment_marker)
    debug(2, 0, f"Planning {mode.value} of {len(manifest)} entries from {manifest_path}")

    results = list(iter_reconcile(manifest, mode, cfg))
    return RunReport(
        mode=mode,
        dry_run=cfg.dry_run,
        results=results,
        diagnostics=diagnostics,
        manifest_path=manifest_path,
    )


def iter_reconcile(
    entries: Iterable[LinkEntry],
    mode: Mode,
    config: LinkConfig | None = None,
) -> Iterator[tuple[LinkEntry, OperationOutcome]]:
    """Lazily reconcile entries in order, yielding (entry, outcome) pairs."""
    reconciler = _Reconciler(config if config is not None else LinkConfig())
    for entry in entries:
        yield entry, reconciler.reconcile(entry, mode)


def reconcile(
    entry: LinkEntry,
    mode: Mode,
    config: LinkConfig | None = None,
) -> OperationOutcome:
    """Reconcile a single entry and return its outcome."""
    return _Reconciler(config if config is not None else LinkConfig()).reconcile(
        entry, mode
    )


def _make_config(config: LinkConfig | None, **kwargs) -> LinkConfig:
    """Create a LinkConfig from optional base config and overrides."""
    if config is None:
        return LinkConfig(**kwargs)
    elif kwargs:
        return dataclasses.replace(config, **kwargs)
    else:
        return config


# =============================================================================
# Internal reconciler class
# =============================================================================


class _Reconciler:
    """
    Decides and applies the filesystem action for each manifest entry.

    Entries are independent: every error is caught and turned into that
    entry's ERROR outcome so the remaining entries are still processed.
    """

    def __init__(self, config: LinkConfig):
        self.c = config
        self.home_dir = config.resolved_home()
        self.environ = config.resolved_environ()

    def reconcile(self, entry: LinkEntry, mode: Mode) -> OperationOutcome:
        debug(3, 0, f"Evaluating line {entry.line_number}: {entry.source_raw} = {entry.destination_raw}")
        try:
            link_path = entry.resolve_link_path(self.home_dir, self.environ)
        except UnresolvedVariable as e:
            debug(2, 1, f"--- {e.message}")
            return OperationOutcome.error(e.message)

        debug(3, 1, f"source {entry.source}")
        debug(3, 1, f"link {link_path}")

        match mode:
            case Mode.CREATE:
                action = self._create
            case Mode.DELETE:
                action = self._delete
            case _:
                raise ValueError(f"bad mode: {mode!r}")

        try:
            return action(entry, link_path)
        except OSError as e:
            debug(2, 1, f"--- Error on {link_path}: {e}")
            return OperationOutcome.error(_describe_os_error(e), link_path)
        except ValueError as e:
            # e.g. an embedded NUL byte in the expanded path
            debug(2, 1, f"--- Error on {link_path!r}: {e}")
            return OperationOutcome.error(str(e), link_path)

    def _create(self, entry: LinkEntry, link_path: str) -> OperationOutcome:
        if not os.path.exists(entry.source):
            debug(2, 1, f"--- Skipping {link_path}: source {entry.source} not found")
            return OperationOutcome(OutcomeKind.SKIPPED_MISSING_SOURCE, link_path)

        if _same_file(link_path, entry.source):
            return OperationOutcome.error("destination is the source itself", link_path)

        if not os.path.lexists(link_path):
            if self.c.dry_run:
                return OperationOutcome.preview(Action.CREATE, link_path)
            self._do_link(entry.source, link_path)
            return OperationOutcome(OutcomeKind.CREATED, link_path)

        if link_points_to(link_path, entry.source):
            debug(2, 1, f"--- Skipping {link_path} as it already points to {entry.source}")
            return OperationOutcome(OutcomeKind.ALREADY_LINKED, link_path)

        if not self.c.overwrite:
            debug(2, 1, f"--- CONFLICT: existing target is not ours: {link_path}")
            return OperationOutcome(OutcomeKind.SKIPPED_CONFLICT, link_path)

        if self.c.dry_run:
            return OperationOutcome.preview(Action.OVERWRITE, link_path)

        if (
            not os.path.islink(link_path)
            and not self.c.force
            and self.c.confirm_overwrite is not None
            and not self.c.confirm_overwrite(entry, link_path)
        ):
            debug(2, 1, f"--- Overwrite of {link_path} declined")
            return OperationOutcome(
                OutcomeKind.SKIPPED_CONFLICT, link_path, reason="declined"
            )

        self._do_remove(link_path)
        self._do_link(entry.source, link_path)
        return OperationOutcome(OutcomeKind.OVERWRITTEN, link_path)

    def _delete(self, entry: LinkEntry, link_path: str) -> OperationOutcome:
        if not os.path.lexists(link_path):
            debug(2, 1, f"{link_path} did not exist to be removed")
            return OperationOutcome(OutcomeKind.REMOVAL_SKIPPED_NOT_OURS, link_path)

        if not link_points_to(link_path, entry.source):
            debug(2, 1, f"--- Ignoring {link_path}: not a link to {entry.source}")
            return OperationOutcome(OutcomeKind.REMOVAL_SKIPPED_NOT_OURS, link_path)

        if self.c.dry_run:
            return OperationOutcome.preview(Action.REMOVE, link_path)

        debug(1, 0, f"UNLINK: {link_path}")
        os.unlink(link_path)
        return OperationOutcome(OutcomeKind.REMOVED, link_path)

    def _do_link(self, source: str, link_path: str) -> None:
        parent = os.path.dirname(link_path)
        if parent and not os.path.isdir(parent):
            debug(1, 0, f"MKDIR: {parent}")
            os.makedirs(parent, exist_ok=True)
        debug(1, 0, f"LINK: {link_path} => {source}")
        os.symlink(source, link_path)

    def _do_remove(self, path: str) -> None:
        if os.path.isdir(path) and not os.path.islink(path):
            debug(1, 0, f"RMDIR: {path}")
        else:
            debug(1, 0, f"UNLINK: {path}")
        remove_path(path)


def _describe_os_error(e: OSError) -> str:
    """Render an OSError as 'strerror: path'."""
    # symlink() reports the link as filename2
    path = e.filename2 or e.filename
    if e.strerror and path:
        return f"{e.strerror}: {path}"
    return e.strerror or str(e)


def _same_file(link_path: str, source: str) -> bool:
    """True if link_path names the source itself, possibly via a linked parent."""
    if link_path == source:
        return True
    if not os.path.lexists(link_path):
        return False
    return os.path.samestat(os.lstat(link_path), os.lstat(source))

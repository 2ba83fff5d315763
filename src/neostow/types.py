# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Type definitions for neostow.

This module contains the enums, dataclasses and exceptions that define the
core data structures used throughout neostow.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Mapping, Optional


class Mode(Enum):
    """High-level neostow operations."""

    CREATE = "create"
    DELETE = "delete"


class Action(Enum):
    """Filesystem actions that a dry run can preview."""

    CREATE = "create"
    OVERWRITE = "overwrite"
    REMOVE = "remove"


class OutcomeKind(Enum):
    """Result of reconciling a single manifest entry."""

    CREATED = "created"
    ALREADY_LINKED = "already linked"
    OVERWRITTEN = "overwritten"
    SKIPPED_CONFLICT = "skipped (conflict)"
    SKIPPED_MISSING_SOURCE = "skipped (missing source)"
    REMOVED = "removed"
    REMOVAL_SKIPPED_NOT_OURS = "skipped (not ours)"
    DRY_RUN_PREVIEW = "dry run"
    ERROR = "error"


# =============================================================================
# Exceptions
# =============================================================================


class NeostowError(Exception):
    """Base error for neostow. Carries a message and an exit status."""

    def __init__(self, message: str, errno: int = 1):
        super().__init__(message)
        self.message = message
        self.errno = errno


class ManifestUnreadable(NeostowError):
    """The manifest file is missing or cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot read manifest {path}: {reason}")
        self.path = path
        self.reason = reason


class UnresolvedVariable(NeostowError):
    """A destination references an undefined variable."""

    def __init__(self, name: str):
        super().__init__(f"unresolved variable: {name}")
        self.name = name


class NeostowCLIError(NeostowError):
    """Usage error raised by the command-line front end."""


# =============================================================================
# Manifest model
# =============================================================================


@dataclass(frozen=True)
class LinkEntry:
    """
    One source => destination declaration from a manifest.

    Attributes:
        source_raw: The source exactly as written in the manifest
        source: Absolute, normalized source path (relative to the manifest dir)
        destination_raw: The destination as written, before expansion
        line_number: 1-based line number in the manifest
    """

    source_raw: str
    source: str
    destination_raw: str
    line_number: int

    @property
    def into_directory(self) -> bool:
        """True if the destination names a directory to place the link into."""
        return self.destination_raw.endswith("/")

    def resolve_link_path(
        self, home_dir: str, environ: Mapping[str, str] | None = None
    ) -> str:
        """Expand the destination into the absolute path of the symlink.

        Raises UnresolvedVariable if the destination references an
        undefined variable.
        """
        from neostow.util import expand_path

        dest = expand_path(self.destination_raw, home_dir, environ)
        if self.into_directory:
            dest = os.path.join(dest, os.path.basename(self.source))
        return dest


@dataclass(frozen=True)
class ParseDiagnostic:
    """A malformed manifest line. Non-fatal."""

    line_number: int
    message: str
    line: str = ""

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.message}"


@dataclass
class Manifest:
    """Ordered link entries parsed from one manifest."""

    base_dir: str
    entries: list[LinkEntry] = field(default_factory=list)
    path: Optional[str] = None

    def __iter__(self) -> Iterator[LinkEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


# =============================================================================
# Outcomes and configuration
# =============================================================================


_CHANGING_KINDS = frozenset(
    {OutcomeKind.CREATED, OutcomeKind.OVERWRITTEN, OutcomeKind.REMOVED}
)


@dataclass(frozen=True)
class OperationOutcome:
    """
    What happened (or would happen) to one entry.

    Attributes:
        kind: The outcome category
        link_path: Resolved symlink path, None if the destination could not
                   be expanded
        action: The previewed action, only set for DRY_RUN_PREVIEW
        reason: Error message for ERROR, optional detail for skips
    """

    kind: OutcomeKind
    link_path: Optional[str] = None
    action: Optional[Action] = None
    reason: Optional[str] = None

    @classmethod
    def preview(cls, action: Action, link_path: str) -> OperationOutcome:
        return cls(OutcomeKind.DRY_RUN_PREVIEW, link_path, action=action)

    @classmethod
    def error(cls, reason: str, link_path: str | None = None) -> OperationOutcome:
        return cls(OutcomeKind.ERROR, link_path, reason=reason)

    @property
    def changed(self) -> bool:
        """Return True if this outcome modified the filesystem."""
        return self.kind in _CHANGING_KINDS


ConfirmOverwrite = Callable[[LinkEntry, str], bool]


@dataclass(frozen=True)
class LinkConfig:
    """
    Resolved configuration for a neostow run.

    Attributes:
        force: Skip the caller's confirmation before overwriting
        overwrite: Replace destinations that conflict with an entry
        dry_run: Only describe what would be done
        verbose: Verbosity level (0-3)
        home_dir: Directory that ~ and $HOME expand to (None: process home)
        environ: Variable lookup for expansion (None: os.environ)
        comment_marker: Prefix of comment lines in the manifest
        confirm_overwrite: Called before a non-symlink destination is
            replaced, unless force is set; returning False skips the entry
    """

    force: bool = False
    overwrite: bool = False
    dry_run: bool = False
    verbose: int = 0
    home_dir: Optional[str] = None
    environ: Optional[Mapping[str, str]] = None
    comment_marker: str = "#"
    confirm_overwrite: Optional[ConfirmOverwrite] = None

    def resolved_home(self) -> str:
        return self.home_dir if self.home_dir is not None else os.path.expanduser("~")

    def resolved_environ(self) -> Mapping[str, str]:
        return self.environ if self.environ is not None else os.environ

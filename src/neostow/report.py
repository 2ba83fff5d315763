# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Aggregation of per-entry outcomes into a run report.

The report only classifies outcomes. Whether conflicts or parse
diagnostics should fail a run is a policy the caller chooses through
RunReport.is_success().
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from neostow.types import (
    Action,
    LinkEntry,
    Mode,
    OperationOutcome,
    OutcomeKind,
    ParseDiagnostic,
)

_PREVIEW_VERBS = {
    Action.CREATE: "create",
    Action.OVERWRITE: "overwrite",
    Action.REMOVE: "remove",
}


@dataclass
class RunReport:
    """
    Result of one neostow run.

    Attributes:
        mode: Whether links were created or deleted
        dry_run: True if no filesystem changes were made
        results: (entry, outcome) pairs in manifest order
        diagnostics: Malformed manifest lines
        manifest_path: The manifest that was processed
    """

    mode: Mode
    dry_run: bool = False
    results: list[tuple[LinkEntry, OperationOutcome]] = field(default_factory=list)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)
    manifest_path: Optional[str] = None

    def counts(self) -> Counter:
        """Return the number of outcomes of each kind."""
        return Counter(outcome.kind for _, outcome in self.results)

    def _with_kind(self, kind: OutcomeKind) -> list[tuple[LinkEntry, OperationOutcome]]:
        return [(e, o) for e, o in self.results if o.kind == kind]

    @property
    def errors(self) -> list[tuple[LinkEntry, OperationOutcome]]:
        return self._with_kind(OutcomeKind.ERROR)

    @property
    def conflicts(self) -> list[tuple[LinkEntry, OperationOutcome]]:
        return self._with_kind(OutcomeKind.SKIPPED_CONFLICT)

    @property
    def previews(self) -> list[tuple[LinkEntry, OperationOutcome]]:
        return self._with_kind(OutcomeKind.DRY_RUN_PREVIEW)

    @property
    def operations(self) -> int:
        """Number of entries that changed the filesystem."""
        return sum(1 for _, outcome in self.results if outcome.changed)

    def is_success(
        self, conflicts_fail: bool = False, diagnostics_fail: bool = False
    ) -> bool:
        """Return False if any entry errored, or per the optional policies."""
        if self.errors:
            return False
        if conflicts_fail and self.conflicts:
            return False
        if diagnostics_fail and self.diagnostics:
            return False
        return True

    @property
    def success(self) -> bool:
        return self.is_success()

    def lines(self) -> list[str]:
        """Return one display line per entry, in manifest order."""
        return [format_result(entry, outcome) for entry, outcome in self.results]

    def summary(self) -> str:
        if self.dry_run:
            count = len(self.previews)
            return f"{count} operations would be performed."
        return f"{self.operations} operations were performed."


def format_result(entry: LinkEntry, outcome: OperationOutcome) -> str:
    """Render one entry's outcome for display."""
    link = outcome.link_path or entry.destination_raw
    arrow = f"{link} → {entry.source}"

    match outcome.kind:
        case OutcomeKind.DRY_RUN_PREVIEW:
            return f"Would {_PREVIEW_VERBS[outcome.action]}: {arrow}"
        case OutcomeKind.CREATED:
            return f"Created symlink: {arrow}"
        case OutcomeKind.OVERWRITTEN:
            return f"Overwritten symlink: {arrow}"
        case OutcomeKind.REMOVED:
            return f"Deleted symlink: {arrow}"
        case OutcomeKind.ALREADY_LINKED:
            return f"Already linked: {arrow}"
        case OutcomeKind.SKIPPED_MISSING_SOURCE:
            return f"Source {entry.source} not found (line {entry.line_number})"
        case OutcomeKind.SKIPPED_CONFLICT:
            detail = f", {outcome.reason}" if outcome.reason else ""
            return f"Skipped {link}: exists and is not ours{detail}"
        case OutcomeKind.REMOVAL_SKIPPED_NOT_OURS:
            return f"Skipped {link}: not a symlink to {entry.source}"
        case _:
            return f"Error on {link}: {outcome.reason}"

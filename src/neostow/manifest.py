# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Manifest parsing.

A manifest is a line-oriented text file. Each entry line maps a source,
relative to the manifest's directory, to a destination::

    # comment
    vimrc = ~/.vimrc
    scripts/ = $XDG_CONFIG_HOME/     # trailing slash: link into directory

Malformed lines are reported as ParseDiagnostic values and never abort
parsing.
"""

from __future__ import annotations

import os
import re

from neostow.types import LinkEntry, Manifest, ManifestUnreadable, ParseDiagnostic
from neostow.util import debug, find_variable_references

DEFAULT_MANIFEST = ".neostow"
DEFAULT_COMMENT_MARKER = "#"


def parse(
    content: str, base_dir: str, comment_marker: str = DEFAULT_COMMENT_MARKER
) -> tuple[Manifest, list[ParseDiagnostic]]:
    """Parse manifest text into entries and diagnostics.

    Args:
        content: The full manifest text
        base_dir: Directory that source paths are relative to
        comment_marker: Prefix that starts a comment

    Returns:
        (manifest, diagnostics), both in line order
    """
    base_dir = os.path.abspath(base_dir)
    manifest = Manifest(base_dir=base_dir)
    diagnostics: list[ParseDiagnostic] = []
    inline_comment = re.compile(r"\s" + re.escape(comment_marker))

    for line_number, line in enumerate(content.splitlines(), start=1):
        text = line.strip()
        if not text or text.startswith(comment_marker):
            continue

        # Only strip comments separated by whitespace; paths may contain '#'
        if match := inline_comment.search(text):
            text = text[: match.start()].rstrip()

        result = _parse_entry(text, line_number, base_dir)
        if isinstance(result, str):
            debug(2, 0, f"Line {line_number}: {result}: {line!r}")
            diagnostics.append(ParseDiagnostic(line_number, result, line))
        else:
            debug(3, 0, f"Line {line_number}: {result.source_raw} = {result.destination_raw}")
            manifest.entries.append(result)

    return manifest, diagnostics


def _parse_entry(text: str, line_number: int, base_dir: str) -> LinkEntry | str:
    """Build an entry from one comment-free line, or return an error message."""
    source_raw, sep, destination_raw = text.partition("=")
    if not sep:
        return "missing '=' separator"

    source_raw = source_raw.strip()
    destination_raw = destination_raw.strip()

    if not source_raw:
        return "empty source path"
    if not destination_raw:
        return "empty destination path"
    if find_variable_references(source_raw):
        return "variable references are not expanded in source paths"

    return LinkEntry(
        source_raw=source_raw,
        source=os.path.normpath(os.path.join(base_dir, source_raw)),
        destination_raw=destination_raw,
        line_number=line_number,
    )


def read_manifest(
    path: str, comment_marker: str = DEFAULT_COMMENT_MARKER
) -> tuple[Manifest, list[ParseDiagnostic]]:
    """Read and parse a manifest file.

    Sources are resolved against the directory containing the file.

    Raises ManifestUnreadable if the file cannot be opened or decoded.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ManifestUnreadable(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise ManifestUnreadable(path, f"not valid UTF-8 ({e.reason})") from e

    debug(3, 0, f"Read manifest {path}")
    manifest, diagnostics = parse(
        content, os.path.dirname(os.path.abspath(path)), comment_marker
    )
    manifest.path = path
    return manifest, diagnostics

# Neostow - declarative symlink manager
# Copyright (C) 2025 The Neostow Authors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Utility functions for neostow.

This module contains general-purpose utilities used throughout neostow,
including debug output, destination path expansion and symlink ownership
checks.
"""

from __future__ import annotations

import os
import re
import shutil
import stat
import sys
from typing import Mapping

from neostow.types import UnresolvedVariable

VERSION = "1.0.0"
PROGRAM_NAME = "neostow"

# Name of the variable that always expands to the configured home directory
HOME_TOKEN = "HOME"

# $NAME or ${NAME}, unless the dollar is escaped with a backslash
_VARIABLE_RE = re.compile(r"(?<!\\)\$(?:\{([^}]+)\}|(\w+))")

# Debug level and test mode are module-level state
_debug_level = 0
_test_mode = False


def set_debug_level(level: int) -> None:
    """Set verbosity level for debug()."""
    global _debug_level
    _debug_level = level


def get_debug_level() -> int:
    """Get current debug level."""
    return _debug_level


def set_test_mode(on_or_off: bool) -> None:
    """Set test mode on or off."""
    global _test_mode
    _test_mode = bool(on_or_off)


def get_test_mode() -> bool:
    """Get current test mode."""
    return _test_mode


def debug(level: int, *args) -> None:
    """
    Log to STDERR based on debug_level setting.

    Verbosity rules:
        0: errors only
        >= 1: print operations: LINK/UNLINK/MKDIR/RMDIR
        >= 2: print skips, conflicts and per-entry errors
        >= 3: print trace detail: entries, resolved paths

    Supports two calling conventions:
        debug(level, msg)
        debug(level, indent_level, msg)
    """
    if len(args) >= 2 and isinstance(args[0], int):
        indent_level = args[0]
        msg = args[1]
    elif len(args) >= 1:
        indent_level = 0
        msg = args[0]
    else:
        return

    if _debug_level >= level:
        indent = "    " * indent_level
        if _test_mode:
            print(f"# {indent}{msg}")
        else:
            print(f"{indent}{msg}", file=sys.stderr)


def find_variable_references(text: str) -> list[str]:
    """Return the names of all unescaped $NAME / ${NAME} references in text."""
    return [m.group(1) or m.group(2) for m in _VARIABLE_RE.finditer(text)]


def expand_environment_variables(
    path: str, home_dir: str, environ: Mapping[str, str]
) -> str:
    """Expand environment variables in path.

    Replace non-escaped $VAR and ${VAR} with environ[VAR]. $HOME always
    expands to home_dir.
    """

    def replace_var(match):
        var = match.group(1) or match.group(2)
        if var == HOME_TOKEN:
            return home_dir
        try:
            return environ[var]
        except KeyError:
            raise UnresolvedVariable(var) from None

    path = _VARIABLE_RE.sub(replace_var, path)
    return path.replace("\\$", "$")


def expand_tilde_to_homedir(path: str, home_dir: str) -> str:
    """Expand a leading ~ (alone or followed by /) to home_dir."""
    # ~user forms are not looked up
    if path == "~" or path.startswith("~/"):
        path = home_dir + path[1:]
    return path.replace("\\~", "~")


def expand_path(
    raw: str, home_dir: str, environ: Mapping[str, str] | None = None
) -> str:
    """
    Expand a manifest destination into an absolute, normalized path.

    Variables are expanded first, then a leading tilde. A path that is still
    relative afterwards is taken relative to home_dir. No filesystem access
    is performed.

    Raises UnresolvedVariable if a referenced variable is not defined.
    """
    if environ is None:
        environ = os.environ
    path = expand_environment_variables(raw.strip(), home_dir, environ)
    path = expand_tilde_to_homedir(path, home_dir)
    if not os.path.isabs(path):
        path = os.path.join(home_dir, path)
    return os.path.normpath(path)


def link_points_to(link_path: str, expected: str) -> bool:
    """
    Check whether link_path is a symlink whose target is expected.

    Relative link targets are resolved against the link's directory. Both
    sides are compared after normalization, without following further links.
    """
    if not os.path.islink(link_path):
        return False
    target = os.readlink(link_path)
    if not os.path.isabs(target):
        target = os.path.join(os.path.dirname(link_path), target)
    return os.path.normpath(target) == os.path.normpath(expected)


def remove_path(path: str) -> None:
    """Remove a file, symlink or directory tree without following links."""
    st = os.lstat(path)
    if stat.S_ISDIR(st.st_mode):
        shutil.rmtree(path)
    else:
        os.unlink(path)

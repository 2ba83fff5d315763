"""
Pytest configuration for neostow tests.

Every test gets an isolated tree::

    tmp/
        project/        manifest and source files
        target/         where links are placed
        home/           home directory for ~ and $HOME
"""

import os

import pytest

from neostow import util


def makedirs_exist_ok(path):
    os.makedirs(path, exist_ok=True)


class LinkTestEnv:
    """Test environment for running neostow against a temporary tree."""

    def __init__(self, tmpdir):
        self.tmpdir = str(tmpdir)
        self.project_dir = os.path.join(self.tmpdir, "project")
        self.target_dir = os.path.join(self.tmpdir, "target")
        self.home_dir = os.path.join(self.tmpdir, "home")
        for d in (self.project_dir, self.target_dir, self.home_dir):
            os.makedirs(d)
        self.manifest_path = os.path.join(self.project_dir, ".neostow")

    def write_manifest(self, content):
        """Write the manifest; returns its path."""
        with open(self.manifest_path, "w", encoding="utf-8") as f:
            f.write(content)
        return self.manifest_path

    def create_source(self, path, content="content"):
        """Create a file (or a directory if content is None) in the project."""
        full_path = os.path.join(self.project_dir, path)
        if content is None:
            makedirs_exist_ok(full_path)
            return full_path
        makedirs_exist_ok(os.path.dirname(full_path))
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(content)
        return full_path

    def source(self, path):
        return os.path.join(self.project_dir, path)

    def target(self, path):
        return os.path.join(self.target_dir, path)

    def create_target_file(self, path, content="existing"):
        """Create a file in the target directory."""
        full_path = self.target(path)
        makedirs_exist_ok(os.path.dirname(full_path))
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(content)
        return full_path

    def create_target_dir(self, path):
        full_path = self.target(path)
        makedirs_exist_ok(full_path)
        return full_path

    def create_target_link(self, path, dest):
        """Create a symlink in the target directory."""
        full_path = self.target(path)
        makedirs_exist_ok(os.path.dirname(full_path))
        os.symlink(dest, full_path)
        return full_path

    def config(self, **kwargs):
        """Keyword overrides pinning home and environment to the test tree."""
        kwargs.setdefault("home_dir", self.home_dir)
        kwargs.setdefault("environ", {"TARGET": self.target_dir})
        return kwargs

    def get_filesystem_state(self):
        """
        Get a snapshot of the whole test tree.

        Returns a dict mapping paths to tuples:
        - ('dir', mode) for directories
        - ('file', content, mode) for files
        - ('link', target) for symlinks
        """
        state = {}
        for root, dirs, files in os.walk(self.tmpdir, followlinks=False):
            rel_root = os.path.relpath(root, self.tmpdir)
            for name in sorted(dirs + files):
                path = os.path.normpath(os.path.join(rel_root, name))
                full_path = os.path.join(root, name)
                st = os.lstat(full_path)
                if os.path.islink(full_path):
                    state[path] = ("link", os.readlink(full_path))
                elif os.path.isdir(full_path):
                    state[path] = ("dir", st.st_mode)
                else:
                    with open(full_path, "rb") as fh:
                        state[path] = ("file", fh.read(), st.st_mode)
        return state


@pytest.fixture
def link_env(tmp_path):
    """Create a fresh neostow test environment."""
    return LinkTestEnv(tmp_path)


@pytest.fixture
def debug_output():
    """Send debug() output to stdout for capsys, restoring module-level state."""
    util.set_test_mode(True)
    yield
    util.set_debug_level(0)
    util.set_test_mode(False)


def check_link(path, expected_dest):
    assert os.path.islink(path), f"{path} should be a symlink"
    assert os.readlink(path) == expected_dest, f"{path} => {os.readlink(path)}"


def check_file(path, expected_content):
    assert os.path.isfile(path) and not os.path.islink(path), f"{path} should be a file"
    with open(path, encoding="utf-8") as f:
        assert f.read() == expected_content


def check_not_exists(path):
    assert not os.path.lexists(path), f"{path} should not exist"

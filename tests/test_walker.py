import os

import pytest

from errors import WalkError
from models import ErrorPolicy, LongPathPolicy, ShareError, ShareRecord, ShareResult
from walker import LONG_PATH_THRESHOLD, count_tree, walk_share


def test_empty_share_has_zero_size(make_tree):
    root = make_tree("Empty", {"a": None, "a/b": None, "c": None})

    result = walk_share(ShareRecord("Empty", str(root)))

    assert isinstance(result, ShareResult)
    assert result.size_bytes == 0
    assert result.files == 0
    assert result.folders == 3


def test_file_sizes_are_summed(make_tree):
    root = make_tree("Data", {"one.bin": 100, "sub/two.bin": 200, "sub/deeper/three.bin": 300})

    result = walk_share(ShareRecord("Data", str(root)))

    assert result.files == 3
    assert result.size_bytes == 600
    assert result.folders == 2
    assert result.name == "Data"
    assert result.path == str(root)


def test_hidden_entries_are_counted(make_tree):
    root = make_tree("Hidden", {".hidden": 10, ".config/settings": 5})

    result = walk_share(ShareRecord("Hidden", str(root)))

    assert result.files == 2
    assert result.folders == 1
    assert result.size_bytes == 15


def test_symlinks_are_not_followed_or_counted(make_tree, tmp_path):
    outside = make_tree("Outside", {"big.bin": 1000})
    root = make_tree("Linked", {"real.bin": 10})
    try:
        os.symlink(outside, root / "dir_link", target_is_directory=True)
        os.symlink(outside / "big.bin", root / "file_link")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")

    result = walk_share(ShareRecord("Linked", str(root)))

    assert result.files == 1
    assert result.folders == 0
    assert result.size_bytes == 10


def test_missing_root_is_an_error(tmp_path):
    missing = tmp_path / "nope"

    result = walk_share(ShareRecord("Gone", str(missing)))

    assert isinstance(result, ShareError)
    assert result.name == "Gone"
    assert result.path == str(missing)
    assert result.error
    assert result.timestamp


def test_root_that_is_a_file_is_an_error(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")

    result = walk_share(ShareRecord("File", str(target)), error_policy=ErrorPolicy.SKIP_UNREADABLE)

    assert isinstance(result, ShareError)


@pytest.fixture
def unreadable_subfolder(make_tree, monkeypatch):
    root = make_tree("Mixed", {"ok.bin": 100, "locked/secret.bin": 50, "open/file.bin": 25})
    locked = str(root / "locked")
    real_scandir = os.scandir

    def scandir(path="."):
        if os.fspath(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    return root


def test_skip_policy_leaves_out_unreadable_folders(unreadable_subfolder):
    result = walk_share(ShareRecord("Mixed", str(unreadable_subfolder)), error_policy=ErrorPolicy.SKIP_UNREADABLE)

    assert isinstance(result, ShareResult)
    assert result.files == 2
    assert result.size_bytes == 125
    assert result.folders == 2


def test_abort_policy_fails_the_share(unreadable_subfolder):
    result = walk_share(ShareRecord("Mixed", str(unreadable_subfolder)), error_policy=ErrorPolicy.ABORT_ON_UNREADABLE)

    assert isinstance(result, ShareError)
    assert "locked" in result.error


def test_count_tree_raises_for_unlistable_root(tmp_path):
    with pytest.raises(WalkError):
        count_tree(str(tmp_path / "missing"))


def test_long_path_warns_and_still_walks(make_tree, caplog):
    root = make_tree("Long", {"a.bin": 7})

    result = walk_share(ShareRecord("Long", str(root)), threshold=len(str(root)))

    assert isinstance(result, ShareResult)
    assert result.size_bytes == 7
    assert "may be inaccessible" in caplog.text


def test_long_path_skip_policy(make_tree):
    root = make_tree("Long", {"a.bin": 7})

    result = walk_share(ShareRecord("Long", str(root)), long_path_policy=LongPathPolicy.SKIP,
                        threshold=len(str(root)))

    assert isinstance(result, ShareError)
    assert result.error.startswith("Skipped")


def test_short_path_is_not_flagged(make_tree, caplog):
    root = make_tree("Short", {"a.bin": 1})
    assert len(str(root)) < LONG_PATH_THRESHOLD

    result = walk_share(ShareRecord("Short", str(root)), long_path_policy=LongPathPolicy.SKIP)

    assert isinstance(result, ShareResult)
    assert "may be inaccessible" not in caplog.text


class JunctionEntry:
    """Wraps a real directory entry and reports it as a junction"""

    def __init__(self, entry):
        self._entry = entry
        self.name = entry.name
        self.path = entry.path

    def is_junction(self):
        return True

    def is_symlink(self):
        return False

    def is_dir(self, follow_symlinks=True):
        return True

    def is_file(self, follow_symlinks=True):
        return False


class ScandirResult:
    def __init__(self, entries):
        self._entries = entries

    def __enter__(self):
        return iter(self._entries)

    def __exit__(self, *exc):
        return False


def test_junctions_are_not_followed_or_counted(make_tree, monkeypatch):
    root = make_tree("Junctions", {"real.bin": 10, "mount/inside.bin": 500})
    real_scandir = os.scandir

    def scandir(path="."):
        with real_scandir(path) as it:
            entries = [JunctionEntry(e) if e.name == "mount" else e for e in it]
        return ScandirResult(entries)

    monkeypatch.setattr(os, "scandir", scandir)

    result = walk_share(ShareRecord("Junctions", str(root)))

    assert isinstance(result, ShareResult)
    assert result.files == 1
    assert result.folders == 0
    assert result.size_bytes == 10

"""Pytest configuration for the share statistics tests."""
import os
import sys
from collections import namedtuple

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from models import ShareRecord  # noqa: E402

VirtualMemory = namedtuple("VirtualMemory", ["total", "available"])


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    # Keep a developer's .env or shell settings out of the tests
    for name in list(os.environ):
        if name.startswith("SHARES_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_tree(tmp_path):
    """Build a directory tree from a {relative path: size or None} mapping; None is a folder."""
    def build(name, layout):
        root = tmp_path / name
        root.mkdir()
        for rel, size in layout.items():
            target = root / rel
            if size is None:
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(b"x" * size)
        return root
    return build


@pytest.fixture
def healthy_gauge():
    import memory_gauge
    return lambda: memory_gauge.sample(lambda: VirtualMemory(total=16 * 1024 ** 3, available=8 * 1024 ** 3))


def records_for(paths):
    return [ShareRecord(name=f"Share{i}", path=str(p)) for i, p in enumerate(paths)]

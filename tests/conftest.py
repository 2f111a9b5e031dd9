"""Shared pytest fixtures for all tests."""

import os

# config exits at import time without a token
os.environ.setdefault('BOT_TOKEN', '123456:TEST-TOKEN')

import pytest

import chunk_engine


@pytest.fixture
def make_file(tmp_path):
    """
    Create files of a given size in tmp_path.

    Large files are created sparse, so they cost no real disk space.
    ``markers`` maps offsets to single bytes written into the file.

    Returns:
        Function (name, size, markers=None) -> str path
    """
    def _make(name, size, markers=None):
        path = tmp_path / name
        with open(path, 'wb') as f:
            f.truncate(size)
            for offset, value in (markers or {}).items():
                f.seek(offset)
                f.write(value)
        return str(path)
    return _make


@pytest.fixture
def small_limits(monkeypatch):
    """
    Shrink the split limits so splitting can be tested with tiny files.

    THRESHOLD becomes 100 bytes and CHUNK_CAP 40 bytes.
    """
    monkeypatch.setattr(chunk_engine, 'THRESHOLD', 100)
    monkeypatch.setattr(chunk_engine, 'CHUNK_CAP', 40)
    return 100, 40

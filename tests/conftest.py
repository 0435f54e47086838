# tests/conftest.py
"""Root pytest configuration and fixtures for spunge tests."""

import glob
import os

import pytest

from spunge.helper.config import SpongeCfg


@pytest.fixture
def cfg():
    """Small reads so multi-chunk paths are exercised with tiny inputs."""
    return SpongeCfg(read_size=7, default_mode=0o640)


@pytest.fixture
def make_file(tmp_path):
    """Factory fixture creating a file with given contents and permission bits."""
    def _make(name: str, data: bytes, mode: int = 0o644) -> str:
        path = tmp_path / name
        path.write_bytes(data)
        os.chmod(path, mode)
        return str(path)
    return _make


@pytest.fixture
def sponge_files(tmp_path):
    """Returns a callable listing leftover staging files in tmp_path."""
    def _list(directory=None):
        return sorted(glob.glob(os.path.join(str(directory or tmp_path), ".sponge*")))
    return _list


class ChunkedStream:
    """
    Binary stream that hands out pre-cut chunks.

    A chunk may be None (nothing available yet) or an exception instance,
    which is raised from read().
    """

    def __init__(self, chunks, on_read=None):
        self.chunks = list(chunks)
        self.on_read = on_read
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.on_read is not None:
            self.on_read()
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if isinstance(chunk, BaseException):
            raise chunk
        return chunk


@pytest.fixture
def chunked_stream():
    return ChunkedStream


@pytest.fixture(autouse=True)
def fixed_umask():
    """Permission assertions assume the common 022 umask."""
    old = os.umask(0o022)
    yield
    os.umask(old)

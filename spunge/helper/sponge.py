"""
Sponges accumulate data before moving it into place on the filesystem.

Three variants share one protocol (begin, write, complete, abort, cleanup):

  MemorySponge         buffer in memory, truncate-and-write the target
  AtomicSponge         append to a staging file, rename it over the target
  AtomicMemorySponge   buffer in memory, commit through an AtomicSponge
"""
from __future__ import annotations

import io
import logging
import os
import stat
import tempfile
from typing import Optional, Protocol

from . import templates
from .config import Options, SpongeCfg
from .errors import CommitError, StageError

logger = logging.getLogger(__name__)

# Largest single write handed to the staging file when committing a buffer.
_COMMIT_CHUNK = 1 << 20


class Sponge(Protocol):
    def begin(self) -> None: ...
    def write(self, data: bytes) -> None: ...
    def complete(self) -> None: ...
    def abort(self) -> None: ...
    def cleanup(self) -> None: ...


def existing_mode(path: str) -> Optional[int]:
    """Permission bits of `path`, or None if it does not exist."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise CommitError(f"Cannot stat {path}: {exc}") from exc


class MemorySponge:
    def __init__(self, target_fn: str, cfg: SpongeCfg):
        self.target_fn = target_fn
        self.cfg = cfg
        self.data = bytearray()

    def begin(self) -> None:
        return None

    def abort(self) -> None:
        return None

    def cleanup(self) -> None:
        return None

    def write(self, data: bytes) -> None:
        if not data:
            return
        logger.debug("Appending %d bytes to %d bytes in memory", len(data), len(self.data))
        self.data += data

    def complete(self) -> None:
        mode = existing_mode(self.target_fn)
        created = mode is None
        if created:
            mode = self.cfg.default_mode
        logger.debug("Saving %d bytes to file %s with mode %o.", len(self.data), self.target_fn, mode)
        try:
            # An existing target keeps its own bits; a new one gets exactly
            # default_mode, whatever the umask.
            fd = os.open(self.target_fn, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "wb") as fh:
                if created:
                    os.fchmod(fh.fileno(), mode)
                fh.write(self.data)
        except OSError as exc:
            raise CommitError(f"Cannot write {self.target_fn}: {exc}") from exc


class AtomicSponge:
    """
    Stages data in a temp file next to the target and renames it into place.

    The rename in complete() is the only commit point. The staging directory
    must be on the target's filesystem.
    """

    def __init__(self, target_fn: str, tmpdir: Optional[str], leave_dirty: bool, cfg: SpongeCfg):
        self.target_fn = target_fn
        self.tmpdir = templates.staging_dir(tmpdir, target_fn)
        self.leave_dirty = leave_dirty
        self.cfg = cfg
        self.sponge_fn: Optional[str] = None
        self._fh: Optional[io.FileIO] = None

    def begin(self) -> None:
        try:
            fd, name = tempfile.mkstemp(prefix=self.cfg.sponge_prefix, dir=self.tmpdir)
        except OSError as exc:
            logger.debug("Cannot create sponge file in %s", self.tmpdir)
            raise StageError(f"Cannot create sponge file in {self.tmpdir}: {exc}") from exc
        self._fh = io.FileIO(fd, "wb")
        self.sponge_fn = name
        logger.debug("Created sponge file %s", name)

    def write(self, data: bytes) -> None:
        if not data:
            return
        if self._fh is None:
            raise StageError("Sponge file is not open.")
        try:
            n = self._fh.write(data) or 0
        except OSError as exc:
            raise StageError(f"Cannot write to sponge file {self.sponge_fn}: {exc}") from exc
        logger.debug("Wrote %d bytes to sponge file.", n)
        if n < len(data):
            raise StageError(f"Short write to sponge file {self.sponge_fn}: {n} of {len(data)} bytes")

    def _close(self) -> None:
        fh, self._fh = self._fh, None
        if fh is not None:
            fh.close()

    def complete(self) -> None:
        if self.sponge_fn is None:
            raise CommitError("Sponge was never begun.")
        logger.debug("Closing sponge.")
        try:
            if self._fh is not None:
                os.fsync(self._fh.fileno())
            self._close()
        except OSError as exc:
            raise CommitError(f"Cannot close sponge file {self.sponge_fn}: {exc}") from exc

        mode = existing_mode(self.target_fn)
        if mode is None:
            mode = self.cfg.default_mode
        else:
            logger.debug("Setting sponge permissions to match existing file: %o.", mode)
        try:
            os.chmod(self.sponge_fn, mode)
        except OSError as exc:
            logger.warning("Cannot set %s to mode %o: %s", self.sponge_fn, mode, exc)

        logger.debug("Renaming sponge file %s to %s", self.sponge_fn, self.target_fn)
        try:
            os.replace(self.sponge_fn, self.target_fn)
        except OSError as exc:
            raise CommitError(f"Cannot rename {self.sponge_fn} to {self.target_fn}: {exc}") from exc

    def abort(self) -> None:
        # The staging file stays on disk for cleanup().
        try:
            self._close()
        except OSError as exc:
            logger.warning("Cannot close sponge file %s: %s", self.sponge_fn, exc)

    def cleanup(self) -> None:
        self.abort()
        if self.leave_dirty:
            logger.debug("Leaving dirty environment.")
            return
        if self.sponge_fn is None or not os.path.lexists(self.sponge_fn):
            logger.debug("Nothing to clean.")
            return
        logger.debug("Removing stray sponge file %s.", self.sponge_fn)
        try:
            os.remove(self.sponge_fn)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StageError(f"Cannot remove sponge file {self.sponge_fn}: {exc}") from exc


class AtomicMemorySponge:
    """Buffers in memory, then commits through a staging file in one go."""

    def __init__(self, target_fn: str, tmpdir: Optional[str], leave_dirty: bool, cfg: SpongeCfg):
        self.writer = AtomicSponge(target_fn, tmpdir, leave_dirty, cfg)
        self.data = bytearray()

    def begin(self) -> None:
        return None

    def write(self, data: bytes) -> None:
        if not data:
            return
        logger.debug("Appending %d bytes to %d bytes in memory", len(data), len(self.data))
        self.data += data

    def abort(self) -> None:
        self.writer.abort()

    def complete(self) -> None:
        self.writer.begin()
        view = memoryview(self.data)
        for start in range(0, len(view), _COMMIT_CHUNK):
            self.writer.write(view[start:start + _COMMIT_CHUNK])
        self.writer.complete()

    def cleanup(self) -> None:
        self.writer.cleanup()


def get_sponge(options: Options, cfg: SpongeCfg) -> Sponge:
    if not options.memory:
        logger.debug("Choosing atomic sponge.")
        return AtomicSponge(options.target, options.tmpdir, options.leave_dirty, cfg)
    if options.atomic:
        logger.debug("Choosing atomic memory sponge.")
        return AtomicMemorySponge(options.target, options.tmpdir, options.leave_dirty, cfg)
    logger.debug("Choosing memory sponge.")
    return MemorySponge(options.target, cfg)

"""
Duplication worker - produce a copy of one file at another path.

copy() either finishes synchronously (nothing to do, or a hard link was
enough) and returns None, or starts a background thread doing a byte copy
and returns a Future that is resolved exactly once when the thread has
closed both files.
"""
from __future__ import annotations

import logging
import os
import shutil
import stat
import threading
from concurrent.futures import Future
from typing import BinaryIO, Optional

from .errors import BackupError

logger = logging.getLogger(__name__)


def _stat_or_none(path: str) -> Optional[os.stat_result]:
    try:
        return os.stat(path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise BackupError(f"Cannot stat {path}: {exc}") from exc


def copy(src: str, dest: str, link: bool = True) -> Optional[Future]:
    """
    Duplicate `src` at `dest`.

    Order of checks:
      1) identical paths are refused
      2) a missing source means there is nothing to copy
      3) source and an existing destination must be regular files
      4) already the same file (device + inode) means nothing to copy
      5) a hard link is tried, unless `link` is False
      6) otherwise both files are opened here and copied in a thread

    Returns:
        None when no copy is pending, else a Future carrying None or a
        BackupError.
    """
    logger.debug("Copying %s to %s", src, dest)
    if src == dest:
        raise BackupError("Will not copy to same filename.")

    sst = _stat_or_none(src)
    if sst is None:
        logger.debug("Source file %s does not exist. No copy necessary.", src)
        return None
    if not stat.S_ISREG(sst.st_mode):
        raise BackupError(
            f"Cannot copy non-regular source file {src} ({stat.filemode(sst.st_mode)})"
        )

    dst = _stat_or_none(dest)
    if dst is not None:
        if not stat.S_ISREG(dst.st_mode):
            raise BackupError(
                f"Cannot copy to non-regular destination {dest} ({stat.filemode(dst.st_mode)})"
            )
        if os.path.samestat(sst, dst):
            logger.debug("Already linked to destination. No copy necessary.")
            return None

    if link:
        try:
            os.link(src, dest)
            logger.debug("Linked files, no copy necessary.")
            return None
        except OSError as exc:
            logger.debug("Cannot link %s to %s (%s). Copying bytes instead.", src, dest, exc)

    try:
        source = open(src, "rb")
    except OSError as exc:
        raise BackupError(f"Cannot open {src} for reading: {exc}") from exc
    # The backup never carries looser bits than the source, not even while
    # the copy is running or after an abort.
    mode = stat.S_IMODE(sst.st_mode)
    try:
        fd = os.open(dest, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    except OSError as exc:
        source.close()
        raise BackupError(f"Cannot open {dest} for writing: {exc}") from exc
    try:
        os.fchmod(fd, mode)
        backup = os.fdopen(fd, "wb")
    except OSError as exc:
        os.close(fd)
        source.close()
        raise BackupError(f"Cannot set permissions on {dest}: {exc}") from exc

    done: Future = Future()
    done.set_running_or_notify_cancel()
    thread = threading.Thread(
        target=_copy_in_background,
        args=(source, backup, dest, done),
        name="spunge-backup",
    )
    thread.start()
    return done


def _copy_in_background(source: BinaryIO, dest: BinaryIO, dest_fn: str, done: Future) -> None:
    logger.debug("Starting background copy.")
    try:
        with source, dest:
            shutil.copyfileobj(source, dest)
            logger.debug("Backed up %d bytes", dest.tell())
    except Exception as exc:
        err = BackupError(f"Backup of {source.name} to {dest_fn} failed: {exc}")
        err.__cause__ = exc
        done.set_exception(err)
        return
    done.set_result(None)

"""
Backups of the target's contents as they were before the write.

Both variants follow the same three step protocol: begin() once, then
exactly one of abort() or complete().
"""
from __future__ import annotations

import logging
import os
import stat
from concurrent.futures import Future
from typing import Optional, Protocol

from . import duplicate, templates
from .config import Options
from .errors import BackupError

logger = logging.getLogger(__name__)


class Backup(Protocol):
    def begin(self) -> None: ...
    def abort(self) -> None: ...
    def complete(self) -> None: ...


class NoBackup:
    """Used when no backup was requested."""

    def begin(self) -> None:
        return None

    def abort(self) -> None:
        return None

    def complete(self) -> None:
        return None


class ConcurrentBackup:
    """
    Copies the target to the backup path while the sponge fills up.

    States: idle -> skipped | pending (begin) -> done (abort or complete).
    The pending Future is consumed by whichever of abort/complete runs first.
    """

    def __init__(self, source_fn: str, backup_template: str, link: bool = True):
        self.source_fn = source_fn
        self.link = link
        self.backup_fn = templates.backup_path(backup_template, source_fn)
        self.state = "idle"
        self._done: Optional[Future] = None

    def begin(self) -> None:
        if self.state != "idle":
            raise BackupError(f"Backup already begun (state: {self.state}).")
        self._done = duplicate.copy(self.source_fn, self.backup_fn, link=self.link)
        self.state = "pending" if self._done is not None else "skipped"

    def _wait(self) -> None:
        done, self._done = self._done, None
        self.state = "done"
        logger.debug("Waiting for backup to complete.")
        done.result()

    def abort(self) -> None:
        if self._done is None:
            logger.debug("Backup not started.")
            return
        self._wait()

    def complete(self) -> None:
        if self._done is None:
            return
        self._wait()
        try:
            mode = stat.S_IMODE(os.stat(self.source_fn).st_mode)
        except OSError as exc:
            logger.debug("Stat failed. Not replicating permissions.")
            raise BackupError(f"Cannot stat {self.source_fn}: {exc}") from exc
        logger.debug("Updating permissions on %s to %o", self.backup_fn, mode)
        try:
            os.chmod(self.backup_fn, mode)
        except OSError as exc:
            raise BackupError(f"Cannot set permissions on {self.backup_fn}: {exc}") from exc


def get_backup(options: Options) -> Backup:
    if not options.backup:
        logger.debug("Choosing no backup.")
        return NoBackup()
    logger.debug("Choosing concurrent backup.")
    # A memory sponge truncates the target in place, which would also
    # rewrite a hard-linked backup.
    in_place = options.memory and not options.atomic
    return ConcurrentBackup(options.target, options.backup, link=not in_place)

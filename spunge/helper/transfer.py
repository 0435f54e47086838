# spunge/helper/transfer.py
from __future__ import annotations

import logging
import select
import time
from typing import BinaryIO

from .errors import InputError
from .sponge import Sponge

logger = logging.getLogger(__name__)

# Longest wait for a non-blocking input to become readable before retrying.
POLL_INTERVAL = 0.1


def wait_readable(stream: BinaryIO, timeout: float = POLL_INTERVAL) -> None:
    """Block until `stream` has data, or `timeout` passes."""
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        # no descriptor to select on
        time.sleep(timeout)
        return
    select.select([fd], [], [], timeout)


def transfer(stream: BinaryIO, sponge: Sponge, read_size: int = 4096) -> int:
    """
    Feed `stream` into `sponge` in chunks of at most `read_size` bytes.

    Stops at end of stream and returns the number of bytes moved. A read
    failure is raised as InputError; a failed sponge write propagates
    unchanged and ends the transfer.
    """
    total = 0
    while True:
        try:
            chunk = stream.read(read_size)
        except OSError as exc:
            raise InputError(f"Read failed after {total} bytes: {exc}") from exc
        if chunk is None:
            # non-blocking stream with nothing available yet
            wait_readable(stream)
            continue
        if not chunk:
            logger.debug("End of input after %d bytes.", total)
            return total
        logger.debug("Read and write %d bytes.", len(chunk))
        sponge.write(chunk)
        total += len(chunk)

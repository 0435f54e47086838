from __future__ import annotations

import logging
import os
import re
import sys

LOGGER_NAME = "spunge"
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def debug_requested(env_value: str | None, name: str = LOGGER_NAME) -> bool:
    """
    True when a DEBUG-style value enables `name`.

    Accepts a comma or space separated list of names, with `*` as a
    wildcard, e.g. DEBUG=spunge or DEBUG="spun*,other".
    """
    if not env_value:
        return False
    for pattern in re.split(r"[\s,]+", env_value.strip()):
        if not pattern:
            continue
        regex = "^" + re.escape(pattern).replace(r"\*", ".*") + "$"
        if re.match(regex, name):
            return True
    return False


def setup_logging(debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    enabled = debug or debug_requested(os.getenv("DEBUG"))
    logger.setLevel(logging.DEBUG if enabled else logging.WARNING)
    if logger.handlers:
        return logger
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(h)
    return logger

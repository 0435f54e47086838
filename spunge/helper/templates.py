"""
Path templates for backup files and staging directories.

Supported tokens, expanded against the target path:

  {file}  the target path as given      /tmp/foo
  {dir}   its containing directory      /tmp
  {base}  its final path component      foo

Unknown tokens are left as-is.
"""
from __future__ import annotations

import os
import re
from typing import Dict, Optional

_TOKEN_RE = re.compile(r"\{(file|dir|base)\}")


def _tokens(target: str) -> Dict[str, str]:
    return {
        "file": target,
        "dir": os.path.dirname(target) or ".",
        "base": os.path.basename(target),
    }


def expand(template: str, target: str) -> str:
    # Single pass, so a token-like string inside the target path is never
    # expanded a second time.
    values = _tokens(target)
    return _TOKEN_RE.sub(lambda m: values[m.group(1)], template)


def backup_path(template: str, target: str) -> str:
    return expand(template, target)


def staging_dir(template: Optional[str], target: str) -> str:
    """Directory the staging file is created in; defaults to the target's own."""
    if not template:
        return _tokens(target)["dir"]
    return expand(template, target)

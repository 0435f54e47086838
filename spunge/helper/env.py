from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv


def load_cwd_dotenv(cwd: Path | None = None) -> bool:
    """
    Load .env from the working directory if present. No-op if missing.

    Existing environment variables win over values from the file.
    Returns True when a file was loaded.
    """
    env_path = (cwd or Path.cwd()) / ".env"
    if not env_path.is_file():
        return False
    return load_dotenv(env_path, override=False)

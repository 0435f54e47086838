# spunge/helper/colors.py
import os
import sys


class Colors:
    """
    Minimal ANSI color helper for messages written to stderr.
    Docs: https://en.wikipedia.org/wiki/ANSI_escape_code
    """
    BRIGHT_RED = "\033[91m"
    RESET = "\033[0m"

    @staticmethod
    def _wrap(text: str, color_code: str) -> str:
        if os.getenv("NO_COLOR"):
            return text
        if not sys.stderr.isatty() and os.getenv("FORCE_COLOR") != "1":
            return text
        return f"{color_code}{text}{Colors.RESET}"

    @staticmethod
    def r(text: str) -> str: return Colors._wrap(text, Colors.BRIGHT_RED)

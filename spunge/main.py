#!/usr/bin/env python3
"""
spunge — soak up standard input and write it to a file, atomically.

USAGE
  # Rewrite a file in place through a filter
  sort data.txt | spunge data.txt

  # Keep the previous contents next to it
  sed 's/foo/bar/' app.conf | spunge --backup '{file}.bak' app.conf

  # Buffer in memory, then commit with a rename
  jq . config.json | spunge --memory --atomic config.json

TEMPLATES
  --backup and --tmpdir accept {file} (target path), {dir} (its
  directory) and {base} (its file name).

ENVIRONMENT
  SPUNGE_BACKUP, SPUNGE_TMPDIR   defaults for --backup / --tmpdir
  SPUNGE_READ_SIZE               bytes per read (default 4096)
  SPUNGE_DEFAULT_MODE            octal mode for new targets (default 600)
  DEBUG=spunge                   debug logging, same as --debug
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from typing import BinaryIO, Callable, List, Optional

from .helper.backup import Backup, get_backup
from .helper.colors import Colors
from .helper.config import Options, SpongeCfg
from .helper.env import load_cwd_dotenv
from .helper.errors import InputError, SpungeError
from .helper.log import setup_logging
from .helper.sponge import Sponge, get_sponge
from .helper.transfer import transfer

# Named explicitly so `python -m spunge.main` still logs under "spunge".
logger = logging.getLogger("spunge.main")


@dataclass(frozen=True)
class Args:
    options: Options
    debug: bool


def _version() -> str:
    try:
        return version("spunge")
    except PackageNotFoundError:
        return "unknown"


def parse_args(argv: Optional[List[str]] = None) -> Args:
    parser = argparse.ArgumentParser(
        prog="spunge",
        description="Accumulate data and write to storage when complete.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("targets", nargs="*", metavar="TARGET", help="File to replace")
    parser.add_argument("-i", "--input", help="Read input from here instead of stdin.")
    parser.add_argument("-b", "--backup", default=os.getenv("SPUNGE_BACKUP") or None,
                        help="Back up target to this file (template).")
    parser.add_argument("-a", "--atomic", action="store_true", help="Write atomically. Only needed with --memory.")
    parser.add_argument("-m", "--memory", action="store_true", help="Accumulate data in memory.")
    parser.add_argument("-t", "--tmpdir", default=os.getenv("SPUNGE_TMPDIR") or None,
                        help="Put the sponge file in this directory. Must be on the same filesystem.")
    parser.add_argument("--leave-dirty", action="store_true", help="Do not remove the sponge file on failure.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")

    args = parser.parse_args(argv)
    options = Options.from_targets(
        args.targets,
        input=args.input,
        backup=args.backup,
        tmpdir=args.tmpdir,
        memory=args.memory,
        atomic=args.atomic,
        leave_dirty=args.leave_dirty,
    )
    return Args(options=options, debug=args.debug)


def open_input(path: Optional[str]) -> BinaryIO:
    if not path:
        return sys.stdin.buffer
    try:
        return open(path, "rb")
    except OSError as exc:
        raise InputError(f"Cannot open input {path}: {exc}") from exc


def _abort(step: Callable[[], None], what: str) -> None:
    """Run an abort step while another error is already propagating."""
    try:
        step()
    except SpungeError as exc:
        logger.warning("%s abort failed: %s", what, exc)


def sponge(backup: Backup, sf: Sponge, stream: BinaryIO, cfg: SpongeCfg) -> None:
    """
    Drive backup and sponge through their protocols around one transfer.

    The target is only replaced by sf.complete(), which runs after the
    whole input was consumed and the backup finished.
    """
    logger.debug("Begin backup.")
    backup.begin()
    logger.debug("Beginning sponge.")
    try:
        sf.begin()
    except BaseException:
        _abort(backup.abort, "Backup")
        raise
    try:
        logger.debug("Sponging data.")
        try:
            transfer(stream, sf, cfg.read_size)
        except BaseException:
            logger.debug("Sponging data failed. Aborting backup and sponge.")
            _abort(backup.abort, "Backup")
            _abort(sf.abort, "Sponge")
            raise
        logger.debug("Completing backup.")
        try:
            backup.complete()
        except BaseException:
            logger.debug("Backup completion failed. Aborting sponge.")
            _abort(sf.abort, "Sponge")
            raise
        logger.debug("Completing sponge.")
        sf.complete()
    finally:
        logger.debug("Cleaning sponge.")
        try:
            sf.cleanup()
        except SpungeError as exc:
            logger.warning("Cleanup failed: %s", exc)


def run(options: Options, cfg: SpongeCfg, stream: Optional[BinaryIO] = None) -> None:
    """Replace options.target with everything read from the input."""
    logger.debug("Get backup.")
    backup = get_backup(options)
    logger.debug("Get sponge.")
    sf = get_sponge(options, cfg)
    if stream is not None:
        sponge(backup, sf, stream, cfg)
        return
    logger.debug("Get input source.")
    source = open_input(options.input)
    try:
        sponge(backup, sf, source, cfg)
    finally:
        if options.input:
            source.close()


def main(argv: Optional[List[str]] = None) -> None:
    load_cwd_dotenv()
    try:
        args = parse_args(argv)
        setup_logging(args.debug)
        run(args.options, SpongeCfg.from_env())
    except KeyboardInterrupt:
        sys.exit(130)
    except SpungeError as e:
        print(f"{Colors.r('Error:')} {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Exception hierarchy for spunge.

Every failure that ends an invocation is raised as a subclass of
SpungeError so the CLI can report it and exit non-zero. The underlying
OSError, when there is one, is chained as __cause__.
"""


class SpungeError(Exception):
    """Base exception for all spunge failures."""

    pass


class ConfigError(SpungeError):
    """
    Raised for invalid invocations, before any file is touched.

    Example:
        >>> Options.from_targets([], atomic=True)
        Traceback (most recent call last):
        ...
        ConfigError: Destination file required.
    """

    pass


class InputError(SpungeError):
    """Raised when the input cannot be opened or a read fails mid-stream."""

    pass


class StageError(SpungeError):
    """
    Raised when staging fails: the staging file cannot be created or a
    write to it fails or comes up short. The target is left untouched.
    """

    pass


class CommitError(SpungeError):
    """
    Raised when moving staged data onto the target fails.

    In staged mode the rename is the commit point, so a CommitError means
    the target still holds its previous contents.
    """

    pass


class BackupError(SpungeError):
    """Raised when the backup copy is refused or fails."""

    pass

"""Exceptions raised by git-lasttouch."""
from typing import Iterable, List, Optional


class LastTouchError(Exception):
    """Base class for all git-lasttouch errors."""
    pass


class NoInputError(LastTouchError, ValueError):
    """Raised when the attribution engine is given no paths to resolve."""
    pass


class ProtocolError(LastTouchError):
    """Raised when the commit log stream violates its expected layout."""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class IncompleteResolutionError(LastTouchError):
    """Raised when some paths could not be attributed to any commit."""

    def __init__(self, paths: Iterable[str]):
        self.paths: List[str] = sorted(paths)
        listing = "\n".join(f"  {p}" for p in self.paths)
        super().__init__(
            f"Could not find a commit for {len(self.paths)} path(s):\n{listing}"
        )


class EmptyEnumerationError(LastTouchError):
    """Raised when a reference and filters match no tracked paths."""

    def __init__(self, ref: str, filters: Optional[List[str]] = None):
        self.ref = ref
        self.filters = list(filters or [])
        where = f"{ref} -- {' '.join(self.filters)}" if self.filters else ref
        super().__init__(
            f"No tracked paths found at {where}. "
            "Check that the reference exists and that each filter names a tracked path "
            "(directories may need a trailing '/')."
        )


class GitCommandError(LastTouchError):
    """Raised when a git command fails."""
    pass


class InvalidCommitError(GitCommandError):
    """Raised when an invalid commit reference is provided."""
    pass


class NotAGitRepositoryError(GitCommandError):
    """Raised when not in a git repository."""
    pass

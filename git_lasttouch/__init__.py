"""git-lasttouch: Find the commit that last touched every file in a tree.

Instead of asking git for the history of each file separately, git-lasttouch
reads the log once, newest commit first, and stops as soon as every file has
been seen.

Example:
    >>> from git_lasttouch import find_last_commits
    >>> resolution = find_last_commits("HEAD", ["src/"])
    >>> for a in resolution.attributions:
    ...     print(a.commit[:8], a.path)

Or using the CLI:
    $ git lasttouch main -- src/
"""
__version__ = "0.1.0"
__all__ = [
    "find_last_commits",
    "resolve",
    "parse_log",
    "Attribution",
    "CommitRecord",
    "Resolution",
    "LastTouchError",
    "NoInputError",
    "ProtocolError",
    "IncompleteResolutionError",
    "EmptyEnumerationError",
    "GitCommandError",
    "InvalidCommitError",
    "NotAGitRepositoryError",
]

from .attribution import Attribution, Resolution, resolve
from .errors import (
    EmptyEnumerationError,
    GitCommandError,
    IncompleteResolutionError,
    InvalidCommitError,
    LastTouchError,
    NoInputError,
    NotAGitRepositoryError,
    ProtocolError,
)
from .history import find_last_commits
from .logparser import CommitRecord, parse_log

"""Git collaborators: tree listing, log streaming, and the top-level lookup."""
import fnmatch
import logging
import os
import subprocess
from typing import Iterator, List, Optional

from .attribution import ProgressCallback, Resolution, resolve
from .errors import (
    EmptyEnumerationError,
    GitCommandError,
    InvalidCommitError,
    NotAGitRepositoryError,
)
from .logparser import LOG_FORMAT, parse_log

logger = logging.getLogger(__name__)

DEFAULT_REF = "HEAD"

# Keep non-ASCII paths verbatim so tree listings and log lines agree
_GIT = ["git", "-c", "core.quotePath=false"]

# Paths are bytes to git; undecodable bytes survive as surrogates and compare equal
GIT_ENCODING = "utf-8"
GIT_ERRORS = "surrogateescape"


def run_git_command(cmd: List[str], cwd: Optional[str] = None) -> str:
    """Execute a git command and return its output.

    Args:
        cmd: List of command arguments, starting with "git"
        cwd: Working directory for the command (optional)

    Returns:
        Standard output from the git command

    Raises:
        GitCommandError: If the git command fails or git is not installed
    """
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd, capture_output=True, cwd=cwd, check=True,
            encoding=GIT_ENCODING, errors=GIT_ERRORS,
        )
        return result.stdout
    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.strip() if e.stderr else str(e)
        raise GitCommandError(f"Git command failed: {' '.join(cmd)}\n{error_msg}") from e
    except FileNotFoundError:
        raise GitCommandError("Git is not installed or not found in PATH") from None


def get_repository_root(cwd: Optional[str] = None) -> str:
    """Get the root directory of the enclosing git repository.

    Raises:
        NotAGitRepositoryError: If `cwd` is not inside a git repository
    """
    try:
        return run_git_command(["git", "rev-parse", "--show-toplevel"], cwd=cwd).strip()
    except GitCommandError as e:
        if "not a git repository" in str(e).lower():
            raise NotAGitRepositoryError(
                "Current directory is not a git repository. "
                "Please run this command from within a git repository."
            ) from e
        raise


def resolve_commit(ref: str, cwd: Optional[str] = None) -> str:
    """Resolve a reference (hash, tag, branch, or relative ref) to a full commit hash.

    Raises:
        InvalidCommitError: If the reference does not name a commit
    """
    try:
        return run_git_command(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=cwd
        ).strip()
    except GitCommandError as e:
        raise InvalidCommitError(f"Invalid commit reference: {ref}") from e


def list_tree_paths(
    ref: str = DEFAULT_REF,
    filters: Optional[List[str]] = None,
    cwd: Optional[str] = None,
    exclude_patterns: Optional[List[str]] = None,
) -> List[str]:
    """List the files tracked at a reference.

    Paths are relative to the repository root, the form `git log --raw`
    reports them in.

    Args:
        ref: Reference whose tree is listed
        filters: Pathspecs restricting the listing (relative to `cwd`)
        cwd: Working directory for git
        exclude_patterns: Glob patterns matched against the path or its basename

    Returns:
        Tracked paths in tree order

    Raises:
        EmptyEnumerationError: If nothing is left to list
        GitCommandError: If git fails
    """
    filters = list(filters or [])
    output = run_git_command(
        _GIT + ["ls-tree", "-r", "--name-only", "--full-name", ref, "--"] + filters,
        cwd=cwd,
    )
    paths = [p for p in output.splitlines() if p.strip()]

    if exclude_patterns:
        paths = [
            p for p in paths
            if not any(
                fnmatch.fnmatch(p, pattern) or fnmatch.fnmatch(os.path.basename(p), pattern)
                for pattern in exclude_patterns
            )
        ]

    if not paths:
        raise EmptyEnumerationError(ref, filters)

    logger.debug("Found %d tracked path(s) at %s", len(paths), ref)
    return paths


def iter_log_lines(
    ref: str = DEFAULT_REF,
    filters: Optional[List[str]] = None,
    cwd: Optional[str] = None,
) -> Iterator[str]:
    """Stream `git log --raw` lines for `ref`, newest commit first.

    The log is read from a child process as it is produced. Closing the
    generator before the end terminates git, so callers only pay for the
    history they actually read.

    Raises:
        GitCommandError: If git cannot be started, or exits with an error
            after the whole log was read
    """
    cmd = _GIT + [
        "log", "--raw", "--no-renames", "--no-color",
        f"--format={LOG_FORMAT}",
        ref, "--",
    ] + list(filters or [])
    logger.debug("Streaming %s", " ".join(cmd))

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding=GIT_ENCODING,
            errors=GIT_ERRORS,
        )
    except FileNotFoundError:
        raise GitCommandError("Git is not installed or not found in PATH") from None

    completed = False
    try:
        for line in proc.stdout:
            yield line.rstrip("\n")
        completed = True
    finally:
        if not completed:
            logger.debug("Stopping git log before the end of history")
            proc.terminate()
        proc.stdout.close()
        stderr = proc.stderr.read()
        proc.stderr.close()
        returncode = proc.wait()

    if returncode != 0:
        raise GitCommandError(f"Git command failed: {' '.join(cmd)}\n{stderr.strip()}")


def find_last_commits(
    ref: str = DEFAULT_REF,
    filters: Optional[List[str]] = None,
    cwd: Optional[str] = None,
    exclude_patterns: Optional[List[str]] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Resolution:
    """Find, for every file tracked at `ref`, the commit that last touched it.

    Args:
        ref: Commit reference (hash, tag, branch, or relative ref)
        filters: Pathspecs limiting which files are looked up
        cwd: Directory inside the repository (defaults to the current one)
        exclude_patterns: Glob patterns of files to leave out
        on_progress: Optional callback receiving (commits_read, paths_remaining)

    Returns:
        Resolution; check `complete` or call `raise_if_incomplete()` to treat
        unattributed paths as an error

    Raises:
        NotAGitRepositoryError: If `cwd` is not inside a repository
        InvalidCommitError: If `ref` does not name a commit
        EmptyEnumerationError: If `ref` and `filters` match no files
        ProtocolError: If the log stream is malformed
        GitCommandError: If any other git invocation fails
    """
    repo_root = get_repository_root(cwd)
    commit = resolve_commit(ref, cwd)
    logger.debug("Looking up last commits in %s at %s (%s)", repo_root, ref, commit[:8])
    paths = list_tree_paths(ref, filters, cwd, exclude_patterns)

    lines = iter_log_lines(commit, filters, cwd)
    try:
        return resolve(paths, parse_log(lines), on_progress=on_progress)
    finally:
        lines.close()

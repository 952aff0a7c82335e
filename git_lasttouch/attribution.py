"""Attribution of paths to the commits that last touched them.

A single pass over a newest-first commit stream resolves every requested path
at once: the first commit seen that touches a path is the most recent one to
have changed it. The pass stops as soon as nothing is left to resolve, so the
cost is bounded by how far back history must be read, not by its length.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from .errors import IncompleteResolutionError, NoInputError
from .logparser import CommitRecord

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 100

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Attribution:
    """A path and the commit that most recently touched it."""
    path: str
    commit: str
    author: str
    date: str
    message: str


@dataclass
class Resolution:
    """Outcome of a resolve() pass.

    Attributes:
        attributions: Resolved paths, in the order they were resolved
        unresolved: Paths no commit in the stream touched
        records_read: Number of commit records consumed from the stream
    """
    attributions: List[Attribution] = field(default_factory=list)
    unresolved: Set[str] = field(default_factory=set)
    records_read: int = 0

    @property
    def complete(self) -> bool:
        return not self.unresolved

    def raise_if_incomplete(self) -> None:
        if self.unresolved:
            raise IncompleteResolutionError(self.unresolved)


def resolve(
    paths: Iterable[str],
    commits: Iterable[CommitRecord],
    on_progress: Optional[ProgressCallback] = None,
    progress_every: int = PROGRESS_EVERY,
) -> Resolution:
    """Attribute each path to the first commit in the stream that touches it.

    Args:
        paths: Paths to resolve; duplicates are collapsed
        commits: Commit records ordered newest first; consumed lazily
        on_progress: Optional callback receiving (records_read, remaining),
            invoked every `progress_every` records and after the last one
        progress_every: Interval for on_progress calls

    Returns:
        Resolution with the attributions in resolution order and any paths
        left unresolved when the stream ran out

    Raises:
        NoInputError: If `paths` is empty
    """
    result = Resolution(unresolved=set(paths))
    if not result.unresolved:
        raise NoInputError("No paths to resolve")

    logger.debug("Resolving %d path(s)", len(result.unresolved))

    for record in commits:
        result.records_read += 1

        for path in record.paths:
            if path in result.unresolved:
                result.unresolved.remove(path)
                result.attributions.append(Attribution(
                    path=path,
                    commit=record.commit,
                    author=record.author,
                    date=record.date,
                    message=record.message,
                ))
                logger.debug("%s -> %s", path, record.commit[:8])

        if on_progress and result.records_read % progress_every == 0:
            on_progress(result.records_read, len(result.unresolved))

        if not result.unresolved:
            break

    if on_progress and (result.records_read == 0 or result.records_read % progress_every):
        on_progress(result.records_read, len(result.unresolved))

    if result.unresolved:
        logger.info(
            "Log exhausted after %d commit(s) with %d path(s) unresolved",
            result.records_read, len(result.unresolved)
        )
    else:
        logger.debug("All paths resolved after %d commit(s)", result.records_read)

    return result

"""Parsing of `git log --raw` output into commit records.

The log is a flat stream of two kinds of lines. A header line carries the
commit metadata, produced by `LOG_FORMAT`::

    \\x1e<hash>\\x1f<author>\\x1f<date>\\x1f<message>

and is followed by zero or more raw diff-summary lines, one per touched file::

    :100644 100644 1a2b3c4 5d6e7f8 M\\tpath/to/file

Anything else (blank separators, merge boilerplate, unexpected variations)
is skipped.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .errors import ProtocolError

logger = logging.getLogger(__name__)

RECORD_MARK = "\x1e"
FIELD_SEP = "\x1f"

# %aI is strict ISO 8601, which anchors the date between the free-text fields
LOG_FORMAT = "%x1e%H%x1f%an%x1f%aI%x1f%s"

_DATE = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:Z|[+-]\d{2}:\d{2})"

_HEADER_RE = re.compile(
    RECORD_MARK
    + r"(?P<commit>[0-9a-f]{4,64})" + FIELD_SEP
    + r"(?P<author>.*?)" + FIELD_SEP
    + r"(?P<date>" + _DATE + r")" + FIELD_SEP
    + r"(?P<message>.*)",
    re.DOTALL,
)

_RAW_RE = re.compile(
    r":+\d{6}(?: \d{6})+"
    r"(?: [0-9a-f]+(?:\.\.\.)?)+"
    r" (?P<status>[A-Z]\d*)"
    r"\t(?P<paths>.+)"
)


@dataclass(frozen=True)
class LogHeader:
    """Commit metadata taken from a header line."""
    commit: str
    author: str
    date: str
    message: str


@dataclass(frozen=True)
class ChangedPath:
    """One file touched by a commit."""
    status: str
    path: str


@dataclass(frozen=True)
class CommitRecord:
    """A commit together with the paths it touched."""
    commit: str
    author: str
    date: str
    message: str
    changed_paths: Tuple[ChangedPath, ...] = ()

    @property
    def paths(self) -> List[str]:
        return [c.path for c in self.changed_paths]


def parse_line(line: str) -> Optional[Union[LogHeader, ChangedPath]]:
    """Classify a single log line.

    Args:
        line: One line of log output, with or without its line terminator

    Returns:
        A LogHeader, a ChangedPath, or None when the line should be skipped
    """
    line = line.rstrip("\r\n")

    match = _HEADER_RE.fullmatch(line)
    if match:
        return LogHeader(**match.groupdict())

    match = _RAW_RE.fullmatch(line)
    if match:
        # Renames and copies list the source first; the destination is the touched path
        path = match.group("paths").rsplit("\t", 1)[-1]
        return ChangedPath(status=match.group("status"), path=path)

    return None


def parse_log(lines: Iterable[str]) -> Iterator[CommitRecord]:
    """Lazily turn log lines into commit records, newest first.

    A record is emitted as soon as the next header is seen, so a consumer that
    stops early never causes more lines to be read than necessary.

    Args:
        lines: Iterable of log lines as produced with LOG_FORMAT and --raw

    Yields:
        CommitRecord for every header in the stream, in stream order

    Raises:
        ProtocolError: If a changed-path line appears before any header
    """
    header: Optional[LogHeader] = None
    changed: List[ChangedPath] = []

    for line_number, line in enumerate(lines, 1):
        parsed = parse_line(line)
        if parsed is None:
            if line.strip():
                logger.debug("Skipping unrecognised log line %d", line_number)
            continue

        if isinstance(parsed, LogHeader):
            if header is not None:
                yield _build_record(header, changed)
            header = parsed
            changed = []
        elif header is None:
            raise ProtocolError(
                f"Changed path found before any commit header at line {line_number}: "
                f"{line.rstrip()!r}",
                line_number=line_number,
                line=line,
            )
        else:
            changed.append(parsed)

    if header is not None:
        yield _build_record(header, changed)


def _build_record(header: LogHeader, changed: List[ChangedPath]) -> CommitRecord:
    return CommitRecord(
        commit=header.commit,
        author=header.author,
        date=header.date,
        message=header.message,
        changed_paths=tuple(changed),
    )

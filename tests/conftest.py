"""Test fixtures for git-lasttouch tests."""
import pytest

from git_lasttouch.logparser import ChangedPath, CommitRecord


def make_record(commit, paths, author="Jane Doe", date="2024-01-01T12:00:00+00:00", message="Update"):
    """Build a CommitRecord touching the given paths."""
    return CommitRecord(
        commit=commit,
        author=author,
        date=date,
        message=message,
        changed_paths=tuple(ChangedPath("M", p) for p in paths),
    )


class CountingStream:
    """Iterator wrapper that records how many items were pulled."""

    def __init__(self, items):
        self._items = iter(items)
        self.consumed = 0

    def __iter__(self):
        return self

    def __next__(self):
        item = next(self._items)
        self.consumed += 1
        return item


@pytest.fixture
def raw_log_lines():
    """Provide sample `git log --raw` output in the header format."""
    return [
        "\x1ec2c2c2c2c2c2c2c2c2c2c2c2c2c2c2c2c2c2c2c2\x1fAda Lovelace\x1f2024-03-02T10:00:00+01:00\x1fFix a.txt",
        "",
        ":100644 100644 1111111 2222222 M\ta.txt",
        "\x1ec1c1c1c1c1c1c1c1c1c1c1c1c1c1c1c1c1c1c1c1\x1fGrace Hopper\x1f2024-03-01T09:00:00+01:00\x1fInitial import",
        "",
        ":000000 100644 0000000 3333333 A\ta.txt",
        ":000000 100644 0000000 4444444 A\tb.txt",
    ]


@pytest.fixture
def sample_resolution():
    """Provide a partially complete resolution."""
    from git_lasttouch.attribution import Attribution, Resolution

    return Resolution(
        attributions=[
            Attribution("src/main.py", "abc12345678901234567890123456789012345678",
                        "Jane Doe", "2024-02-01T10:00:00+00:00", "Add main"),
            Attribution("README.md", "def45678901234567890123456789012345678901",
                        "John Roe", "2024-01-15T08:30:00+00:00", "Write docs"),
        ],
        unresolved=set(),
        records_read=2,
    )

"""Generator-based line reading for audit log files."""

from typing import Generator


def read_lines(filepath: str) -> Generator[str, None, None]:
    """Yield each line of a single file.

    Opening happens eagerly so an unreadable file raises OSError before the
    first line is requested. Undecodable bytes are replaced with U+FFFD.
    """
    f = open(filepath, "r", encoding="utf-8", errors="replace", newline="\n")
    return _iter_file(f)


def _iter_file(f) -> Generator[str, None, None]:
    with f:
        for line in f:
            yield line

"""Splits a file's lines into entries and parses each entry's prefix."""

import logging
import re
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Iterator

from loglex.formats import SourceConfig

logger = logging.getLogger(__name__)

TIMESTAMP_LEN = len("2016-04-19T23:10:31.209")


class LineTooLongError(OSError):
    """A line exceeded the configured maximum length."""


@dataclass
class Entry:
    start_offset: int
    start_line: int
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EntryHeader:
    timestamp: str
    module: str
    level: str
    prefix: str  # the matched span stripped off the first line


def read_lines(f: BinaryIO, max_line_bytes: int) -> Iterator[str]:
    """Yield lines from a binary file, terminators included.

    Bytes that are not valid UTF-8 survive as surrogate escapes so that
    re-encoding gives back the original bytes.
    Raises LineTooLongError if a line is longer than max_line_bytes.
    """
    while True:
        raw = f.readline(max_line_bytes + 2)
        if not raw:
            return
        if len(raw.rstrip(b"\r\n")) > max_line_bytes:
            raise LineTooLongError(f"Line longer than {max_line_bytes} bytes")
        yield raw.decode("utf-8", "surrogateescape")


def recognize_entries(lines: Iterable[str], source: SourceConfig) -> Iterator[Entry]:
    """Group lines into entries using the source's boundary rule.

    The first header_lines lines are skipped but still count toward offsets.
    Lines seen before the first boundary belong to no entry and are dropped.
    """
    offset = 0
    line_no = 0
    current = Entry(0, 0)

    for raw in lines:
        line_no += 1
        size = len(raw.encode("utf-8", "surrogateescape"))
        if line_no <= source.header_lines:
            offset += size
            continue

        line = raw.rstrip("\r\n")
        if source.starts_entry(line):
            if current.start_line > 0 and current.lines:
                yield current
            current = Entry(offset, line_no)

        current.lines.append(line)
        offset += size

    if current.start_line > 0 and current.lines:
        yield current


def normalize_timestamp(fields: dict) -> str:
    """Build `YYYY-MM-DDTHH:MM:SS.sss` from named prefix groups.

    Sub-second digits are cut or zero-padded to milliseconds. Returns "" when
    the prefix carries no date.
    """
    if not fields.get("year"):
        return ""
    ts = "{}-{}-{}T{}:{}:{}.{}".format(
        fields["year"],
        fields.get("month") or "00",
        fields.get("day") or "00",
        fields.get("hour") or "00",
        fields.get("minute") or "00",
        fields.get("second") or "00",
        fields.get("subsecond") or "",
    )
    return ts[:TIMESTAMP_LEN].ljust(TIMESTAMP_LEN, "0")


def normalize_level(level: str) -> str:
    level = level.strip("[]").upper()
    if len(level) > 4 and level != "DEBUG":
        level = level[:4]
    return level


def extract_prefix(line: str, pattern: re.Pattern) -> tuple[EntryHeader, str] | None:
    """Match the prefix pattern against an entry's first line.

    Returns the parsed header and the rest of the line, or None if the line
    doesn't match.
    """
    m = pattern.search(line)
    if m is None:
        return None
    fields = m.groupdict()
    header = EntryHeader(
        timestamp=normalize_timestamp(fields),
        module=fields.get("module") or "",
        level=normalize_level(fields.get("level") or ""),
        prefix=line[:m.end()],
    )
    return header, line[m.end():]

"""Per-file source formats: prefix patterns, entry boundaries and cleansers.

Formats are keyed by file name. Each one only names its strategies, so the
whole table can be written in YAML:

    formats:
      my_service.log:
        header_lines: 0
        boundary: prefix
        prefix: usual
        cleanser: [addresses, uuids]
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from loglex.cleanser import PRESETS, apply_passes, resolve_passes

logger = logging.getLogger(__name__)

_YMD = r"(?P<year>\d\d\d\d)-(?P<month>\d\d)-(?P<day>\d\d)"
_HMS = r"T(?P<hour>\d\d):(?P<minute>\d\d):(?P<second>\d\d)\.(?P<subsecond>\d+)"

# 2016-04-14T16:10:09.463447-07:00 WARNING Restarting file logging
# 2016-04-14T17:43:52.164-07:00 [INFO] moss_herder: persistence progess, waiting: 3
# ReplicationManager 2016-04-14T16:10:09.652-07:00 [INFO] GOMAXPROCS=4
# [error_logger:info,2016-04-14T16:10:05.262-07:00,babysitter_of_ns_1@127.0.0.1:<0.6.0>:...
PREFIX_PATTERNS: dict[str, str] = {
    "usual": r"^" + _YMD + _HMS + r"(?:Z|[-+]\S+)?\s(?P<level>\S+)\s",
    "usual_ex": r"^(?P<module>\w+)\s" + _YMD + _HMS + r"(?:Z|[-+]\S+)?\s(?P<level>\S+)\s",
    "ns_server": r"^\[(?P<module>\w+):(?P<level>\w+)," + _YMD + _HMS + r"(?:Z|[-+][^,]+)?,",
}


@lru_cache(maxsize=None)
def compile_prefix(prefix: str) -> re.Pattern:
    """Compile a named prefix pattern, or a raw regex with named groups."""
    return re.compile(PREFIX_PATTERNS.get(prefix, prefix))


def _every_line(source: "SourceConfig", line: str) -> bool:
    return True


def _prefix_matches(source: "SourceConfig", line: str) -> bool:
    return source.prefix_pattern.search(line) is not None


def _bracketed_metadata(source: "SourceConfig", line: str) -> bool:
    """`[module:level,2016-...,node...` starts an entry; continuation lines don't."""
    if not line or line[0] != "[":
        return False
    parts = line.split(",")
    if len(parts) < 3 or not parts[1]:
        return False
    return parts[1][0].isdigit()


BOUNDARIES: dict[str, Callable[["SourceConfig", str], bool]] = {
    "every_line": _every_line,
    "prefix": _prefix_matches,
    "bracketed_metadata": _bracketed_metadata,
}


@dataclass(frozen=True)
class SourceConfig:
    skip: bool = False
    header_lines: int = 0
    boundary: str = "every_line"
    prefix: str | None = None
    cleanser: tuple[str, ...] = ()

    def __post_init__(self):
        if self.boundary not in BOUNDARIES:
            raise ValueError(f"Unknown entry boundary: {self.boundary}")
        if self.header_lines < 0:
            raise ValueError("header_lines must be >= 0")
        if not self.skip:
            if not self.prefix:
                raise ValueError("A prefix pattern is required unless skip is set")
            try:
                compile_prefix(self.prefix)
            except re.error as e:
                raise ValueError(f"Invalid prefix pattern {self.prefix!r}: {e}") from e
        object.__setattr__(self, "cleanser", resolve_passes(self.cleanser))

    @property
    def prefix_pattern(self) -> re.Pattern:
        return compile_prefix(self.prefix)

    def starts_entry(self, line: str) -> bool:
        return BOUNDARIES[self.boundary](self, line)

    def cleanse(self, data: bytes) -> bytes:
        return apply_passes(data, self.cleanser)


USUAL = SourceConfig(header_lines=4, prefix="usual")

NS_SERVER = SourceConfig(
    header_lines=4,
    boundary="bracketed_metadata",
    prefix="ns_server",
    cleanser=PRESETS["ns_server"],
)

# Keep alphabetical.
DEFAULT_FORMATS: dict[str, SourceConfig] = {
    "memcached.log": SourceConfig(
        header_lines=4, prefix="usual", cleanser=PRESETS["memcached"],
    ),
    "ns_server.babysitter.log": NS_SERVER,
    "ns_server.couchdb.log": NS_SERVER,
    "ns_server.error.log": NS_SERVER,
    "ns_server.fts.log": SourceConfig(
        header_lines=4, boundary="prefix", prefix="usual",
        cleanser=PRESETS["join_lines"],
    ),
    "ns_server.goxdcr.log": SourceConfig(header_lines=4, prefix="usual_ex"),
    "ns_server.http_access.log": SourceConfig(skip=True, header_lines=4),
    "ns_server.http_access_internal.log": SourceConfig(skip=True, header_lines=4),
    "ns_server.indexer.log": USUAL,
    "ns_server.info.log": NS_SERVER,
    "ns_server.metakv.log": NS_SERVER,
    "ns_server.ns_couchdb.log": NS_SERVER,
    "ns_server.projector.log": USUAL,
    "ns_server.query.log": USUAL,
    "ns_server.reports.log": NS_SERVER,
    "ns_server.ssl_proxy.log": NS_SERVER,
    "ns_server.stats.log": NS_SERVER,
    "ns_server.xdcr.log": NS_SERVER,
}


_FIELD_TYPES = {
    "skip": (bool,),
    "header_lines": (int,),
    "boundary": (str,),
    "prefix": (str,),
    "cleanser": (str, list),
}


def source_from_dict(data: dict) -> SourceConfig:
    """Build a SourceConfig from one YAML mapping. Raises ValueError if invalid."""
    if not isinstance(data, dict):
        raise ValueError(f"Format entry must be a mapping, got {type(data).__name__}")
    unknown = set(data) - set(_FIELD_TYPES)
    if unknown:
        raise ValueError(f"Unknown format keys: {', '.join(sorted(unknown))}")
    for key, value in data.items():
        if value is not None and not isinstance(value, _FIELD_TYPES[key]):
            raise ValueError(f"Format key {key!r} has the wrong type: {value!r}")
    if isinstance(data.get("cleanser"), list) and not all(isinstance(n, str) for n in data["cleanser"]):
        raise ValueError(f"Cleanser passes must be names: {data['cleanser']!r}")
    return SourceConfig(
        skip=bool(data.get("skip", False)),
        header_lines=int(data.get("header_lines") or 0),
        boundary=data.get("boundary") or "every_line",
        prefix=data.get("prefix"),
        cleanser=resolve_passes(data.get("cleanser")),
    )


def load_formats(yaml_data: dict) -> dict[str, SourceConfig]:
    """Merge the YAML `formats:` mapping over the built-in table."""
    table = yaml_data.get("formats") or {}
    if not isinstance(table, dict):
        raise ValueError(f"`formats` must be a mapping of file name to format, got {type(table).__name__}")
    formats = dict(DEFAULT_FORMATS)
    for filename, entry in table.items():
        formats[str(filename)] = source_from_dict(entry or {})
    if table:
        logger.info("Loaded %d format(s) from YAML", len(table))
    return formats


def lookup(formats: dict[str, SourceConfig], filename: str) -> SourceConfig | None:
    """Return the format for filename, falling back to a `default` entry."""
    return formats.get(filename) or formats.get("default")


def file_base(filename: str) -> str:
    """`ns_server.fts.log` -> `fts`, `memcached.log` -> `memcached`."""
    stem = filename[:-4] if filename.endswith(".log") else filename
    return stem.rsplit(".", 1)[-1]

"""Byte-level passes applied to an entry body before tokenizing.

Passes are looked up by name so the per-file format table stays plain data.
Most passes wrap things the tokenizer would otherwise shred (pids, node
addresses, uuids, embedded timestamps) in double quotes so they come out as
single string literals.
"""

import re
from typing import Callable, Iterable, Sequence

_HEX6 = rb"[a-f0-9]{6}"

_EQUALS_BAR_RE = re.compile(rb"={3,}([^=\n]+)={3,}")
_PID_RE = re.compile(rb"<\d+\.\d+\.\d+>")  # <0.6.0>
_ADDR_RE = re.compile(rb"(?:ns_\d+@)?\d+\.\d+\.\d+\.\d+")
_TIMESTAMP_RE = re.compile(
    rb"(?<=\s)\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d(?:\.\d+)?(?:Z|[-+]\d\d:?\d\d)?(?=\s)"
)
_UUID_RE = re.compile(rb"(?<=\s)" + _HEX6 + rb"[a-f0-9_-]+(?=\s)")

_QUOTE_SPACED = rb' "\g<0>" '
_QUOTE = rb'"\g<0>"'

_OPENS = b"([{"
_CLOSES = b")]}"


def blank_unmatched_close(data: bytes) -> bytes:
    """Blank the first closing bracket if it comes before any opening bracket."""
    close = next((i for i, c in enumerate(data) if c in _CLOSES), -1)
    if close < 0:
        return data
    if any(c in _OPENS for c in data[:close]):
        return data
    return data[:close] + b" " + data[close + 1:]


def quote_equals_bars(data: bytes) -> bytes:
    """`=====PROGRESS REPORT=====` becomes `"PROGRESS REPORT"`."""
    return _EQUALS_BAR_RE.sub(rb'"\1"', data)


def quote_pids(data: bytes) -> bytes:
    return _PID_RE.sub(_QUOTE_SPACED, data)


def quote_addresses(data: bytes) -> bytes:
    """`ns_1@10.1.2.3` becomes ` "ns_1@10.1.2.3" `."""
    return _ADDR_RE.sub(_QUOTE_SPACED, data)


def quote_timestamps(data: bytes) -> bytes:
    return _TIMESTAMP_RE.sub(_QUOTE, data)


def quote_uuids(data: bytes) -> bytes:
    return _UUID_RE.sub(_QUOTE, data)


def join_lines(data: bytes) -> bytes:
    """Collapse a physically wrapped entry onto one line."""
    return data.replace(b"\n", b" ")


PASSES: dict[str, Callable[[bytes], bytes]] = {
    "unmatched_close": blank_unmatched_close,
    "equals_bar": quote_equals_bars,
    "pids": quote_pids,
    "addresses": quote_addresses,
    "timestamps": quote_timestamps,
    "uuids": quote_uuids,
    "join_lines": join_lines,
}

PRESETS: dict[str, tuple[str, ...]] = {
    "none": (),
    "ns_server": ("unmatched_close", "equals_bar", "pids", "addresses", "timestamps", "uuids"),
    "memcached": ("addresses", "uuids"),
    "join_lines": ("join_lines",),
}


def resolve_passes(chosen: str | Iterable[str] | None) -> tuple[str, ...]:
    """Turn a preset name or a list of pass names into a validated tuple.

    Raises ValueError for unknown names.
    """
    if chosen is None:
        return ()
    if isinstance(chosen, str):
        if chosen not in PRESETS:
            raise ValueError(f"Unknown cleanser preset: {chosen}")
        return PRESETS[chosen]
    names = tuple(chosen)
    for name in names:
        if name not in PASSES:
            raise ValueError(f"Unknown cleanser pass: {name}")
    return names


def apply_passes(data: bytes, passes: Sequence[str]) -> bytes:
    """Run the named passes in order. No passes means data comes back as-is."""
    for name in passes:
        data = PASSES[name](data)
    return data

"""Shared pytest fixtures for the loglex test suite."""

import pytest

from loglex.dictionary import Dictionary
from loglex.emitter import Emitter, EntryContext
from loglex.nesting import PathBuilder
from loglex.tokenizer import tokenize

HEADER = "".join(f"header line {i}\n" for i in range(1, 5))


@pytest.fixture()
def context() -> EntryContext:
    return EntryContext(
        timestamp="2016-04-14T16:10:09.463",
        module="memcached",
        level="WARN",
        directory="node1",
        file="memcached.log",
        file_base="memcached",
        offset=0,
        line=5,
    )


@pytest.fixture()
def walk(context):
    """Run an entry body through tokenizer, PathBuilder and Emitter."""
    def _walk(body, max_depth=100):
        dictionary = Dictionary()
        emitter = Emitter(context, dictionary)
        builder = PathBuilder(emitter, max_depth)
        builder.build(tokenize(body))
        return emitter.records, dictionary, builder
    return _walk


@pytest.fixture()
def write_log(tmp_path):
    """Write a log file with the 4-line header and return its directory."""
    def _write(filename, body, header=HEADER):
        path = tmp_path / filename
        path.write_bytes((header + body).encode("utf-8") if isinstance(body, str)
                         else header.encode("utf-8") + body)
        return str(tmp_path)
    return _write

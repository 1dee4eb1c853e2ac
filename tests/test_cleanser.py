"""Tests for the cleanser module."""

import pytest

from loglex.cleanser import (
    PASSES,
    PRESETS,
    apply_passes,
    blank_unmatched_close,
    join_lines,
    quote_addresses,
    quote_equals_bars,
    quote_pids,
    quote_timestamps,
    quote_uuids,
    resolve_passes,
)
from loglex.tokenizer import tokenize


class TestEqualsBar:
    def test_short_bar_becomes_string(self):
        assert quote_equals_bars(b"===PROGRESS REPORT===") == b'"PROGRESS REPORT"'

    def test_long_bar_tokenizes_as_one_string(self):
        data = apply_passes(b"=========PROGRESS REPORT=========\n", PRESETS["ns_server"])
        assert [(t.kind, t.literal) for t in tokenize(data)] == [("STRING", "PROGRESS REPORT")]

    def test_two_equals_untouched(self):
        assert quote_equals_bars(b"a==b") == b"a==b"


class TestUnmatchedClose:
    def test_blanks_leading_close(self):
        assert blank_unmatched_close(b"a] [b]") == b"a  [b]"

    def test_blanks_leading_paren(self):
        assert blank_unmatched_close(b"x) (y)") == b"x  (y)"

    def test_matched_untouched(self):
        assert blank_unmatched_close(b"[a] b]") == b"[a] b]"

    def test_no_brackets(self):
        assert blank_unmatched_close(b"plain text") == b"plain text"

    def test_only_first_is_blanked(self):
        assert blank_unmatched_close(b"a] b]") == b"a  b]"


class TestQuoting:
    def test_pid(self):
        assert quote_pids(b"pid <0.6.0> here") == b'pid  "<0.6.0>"  here'

    def test_node_address(self):
        assert quote_addresses(b"node ns_1@127.0.0.1 up") == b'node  "ns_1@127.0.0.1"  up'

    def test_plain_address(self):
        data = quote_addresses(b"from 10.1.2.3:8091")
        assert [(t.kind, t.literal) for t in tokenize(data)][:2] == [
            ("IDENT", "from"), ("STRING", "10.1.2.3"),
        ]

    def test_timestamp(self):
        assert quote_timestamps(b"at 2016-04-14T16:10:05.262-07:00 x") == \
            b'at "2016-04-14T16:10:05.262-07:00" x'

    def test_timestamp_needs_whitespace_around(self):
        assert quote_timestamps(b",2016-04-14T16:10:05.262-07:00,") == \
            b",2016-04-14T16:10:05.262-07:00,"

    def test_uuid(self):
        assert quote_uuids(b"bucket 8f7e6d5c4b3a2910 open") == b'bucket "8f7e6d5c4b3a2910" open'

    def test_short_hex_untouched(self):
        assert quote_uuids(b"rev abc12 ok") == b"rev abc12 ok"


class TestJoinLines:
    def test_newlines_become_spaces(self):
        assert join_lines(b"a\nb\n") == b"a b "


class TestResolve:
    def test_preset(self):
        assert resolve_passes("memcached") == ("addresses", "uuids")

    def test_list(self):
        assert resolve_passes(["pids", "uuids"]) == ("pids", "uuids")

    def test_none(self):
        assert resolve_passes(None) == ()

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            resolve_passes("nope")

    def test_unknown_pass(self):
        with pytest.raises(ValueError):
            resolve_passes(["pids", "nope"])

    def test_presets_only_use_known_passes(self):
        for passes in PRESETS.values():
            assert set(passes) <= set(PASSES)


class TestApplyPasses:
    def test_no_passes_is_identity(self):
        assert apply_passes(b"x] <0.1.2>", ()) == b"x] <0.1.2>"

    def test_passes_run_in_order(self):
        out = apply_passes(b"a] <0.1.2>\n", ("unmatched_close", "pids", "join_lines"))
        assert out == b'a   "<0.1.2>"  '

"""Tests for the emitter module."""

from loglex.dictionary import Dictionary
from loglex.emitter import NAME, STRS, TAIL, Emitter, cleanse_name, name_from_tokens, record_to_dict
from loglex.tokenizer import Category, Token


def _ident(text):
    return Token("IDENT", text, Category.MERGE)


def _merged(*words):
    tok = _ident(words[0])
    for word in words[1:]:
        tok.merge(_ident(word) if word.isidentifier() else Token(word, word, Category.MERGE))
    return tok


class TestCleanseName:
    def test_accepts_identifier(self):
        assert cleanse_name("bar") == "bar"

    def test_trims_quotes_and_space(self):
        assert cleanse_name(' "bar"\n') == "bar"

    def test_rejects_special_chars(self):
        for name in ("a b", "<x>", "a/b", "x>y"):
            assert cleanse_name(name) == ""

    def test_rejects_stop_words(self):
        for name in ("true", "false", "ok", "pid", "uuid"):
            assert cleanse_name(name) == ""

    def test_rejects_hex_and_numbers(self):
        assert cleanse_name("0x1f") == ""
        assert cleanse_name("12345") == ""

    def test_digits_inside_name_ok(self):
        assert cleanse_name("vb42") == "vb42"

    def test_empty(self):
        assert cleanse_name("") == ""
        assert cleanse_name('""') == ""

    def test_deterministic(self):
        for name in ("bar", "pid", "a b", "0x1", "x1"):
            assert cleanse_name(name) == cleanse_name(name)


class TestNameFromTokens:
    def test_last_identifier(self):
        tokens = [_ident("a"), Token(",", ",", Category.PUNCT), _ident("b")]
        assert name_from_tokens(tokens) == "b"

    def test_string_literal(self):
        tokens = [_ident("a"), Token("STRING", "Alloc", Category.LITERAL), Token(":", ":", Category.PUNCT)]
        assert name_from_tokens(tokens) == "Alloc"

    def test_last_identifier_in_merged_run(self):
        assert name_from_tokens([_merged("bar", "=")]) == "bar"
        assert name_from_tokens([_merged("load", "config", "version", "=")]) == "version"

    def test_skips_numbers(self):
        tokens = [_ident("x"), Token("INT", "1", Category.LITERAL)]
        assert name_from_tokens(tokens) == "x"

    def test_nothing(self):
        assert name_from_tokens([]) == ""
        assert name_from_tokens([Token("INT", "1", Category.LITERAL)]) == ""


class TestEmit:
    def test_name_value_and_text(self, context):
        dictionary = Dictionary()
        emitter = Emitter(context, dictionary)
        tokens = [_merged("bar", "="), Token("INT", "1", Category.LITERAL), _ident("done")]
        cursor = emitter.emit(["foo"], tokens)

        assert cursor == 3
        assert [(r.kind, r.name, r.literal_kind, r.value, r.is_text) for r in emitter.records] == [
            (STRS, "", "STRING", "bar =", True),
            (NAME, "bar", "INT", "1", False),
            (TAIL, "", "STRING", "done", True),
        ]
        assert all(r.path == ("foo",) for r in emitter.records)
        assert [(e.kind, e.name, e.samples) for e in dictionary.entries()] == [("INT", "bar", ("1",))]

    def test_tokens_emitted_once(self, context):
        emitter = Emitter(context)
        tokens = [_ident("a"), Token("INT", "1", Category.LITERAL)]
        emitter.emit([], tokens)
        emitter.emit([], tokens, 0)
        assert len(emitter.records) == 2
        assert all(t.emitted for t in tokens)

    def test_cursor_skips_already_emitted(self, context):
        emitter = Emitter(context)
        tokens = [_ident("a")]
        cursor = emitter.emit([], tokens)
        tokens.append(_ident("b"))
        emitter.emit([], tokens, cursor)
        assert [r.value for r in emitter.records] == ["a", "b"]

    def test_punctuation_ends_text_without_name(self, context):
        emitter = Emitter(context)
        tokens = [_ident("hello"), Token(",", ",", Category.PUNCT), _ident("world")]
        emitter.emit([], tokens)
        assert [(r.kind, r.value) for r in emitter.records] == [(STRS, "hello"), (TAIL, "world")]

    def test_rejected_name_still_marks_leaf(self, context):
        emitter = Emitter(context)
        tokens = [_merged("pid", "="), Token("INT", "12345", Category.LITERAL)]
        emitter.emit([], tokens)
        assert [r.kind for r in emitter.records] == [STRS]
        assert tokens[1].emitted

    def test_empty_text_not_written(self, context):
        emitter = Emitter(context)
        emitter.emit([], [Token(".", ".", Category.PUNCT)])
        assert emitter.records == []

    def test_text_trimmed(self, context):
        emitter = Emitter(context)
        emitter.emit([], [Token("ILLEGAL", "#", Category.MERGE)])
        emitter.emit([], [_merged("done", "...")])
        assert [r.value for r in emitter.records] == ["#", "done"]

    def test_record_carries_context(self, context):
        emitter = Emitter(context)
        emitter.emit(["a", "b"], [_ident("x")])
        d = record_to_dict(emitter.records[0])
        assert d["timestamp"] == "2016-04-14T16:10:09.463"
        assert d["module"] == "memcached"
        assert d["level"] == "WARN"
        assert d["directory"] == "node1"
        assert d["file"] == "memcached.log"
        assert d["offset"] == 0
        assert d["line"] == 5
        assert d["path"] == ["a", "b"]

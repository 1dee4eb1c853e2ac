"""Turns the tokens accumulated at one nesting level into output records."""

import re
from dataclasses import asdict, dataclass
from typing import Any, Sequence

from loglex.dictionary import Dictionary
from loglex.tokenizer import Category, Token

STRS = "STRS"
NAME = "NAME"
TAIL = "TAIL"

_TEXT_TRIM = "\t\n .:,"
_NAME_TRIM = " \t\n\""
_NAME_REJECT_CHARS = set("<>/ ")
_NAME_REJECT_WORDS = {"true", "false", "ok", "pid", "uuid"}
_NUMERIC_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class EntryContext:
    """Where an entry came from; shared by every record it produces."""
    timestamp: str
    module: str
    level: str
    directory: str
    file: str
    file_base: str
    offset: int
    line: int


@dataclass(frozen=True)
class Record:
    timestamp: str
    module: str
    level: str
    directory: str
    file: str
    file_base: str
    offset: int
    line: int
    kind: str
    path: tuple[str, ...]
    name: str
    literal_kind: str
    value: str
    is_text: bool


def record_to_dict(record: Record) -> dict[str, Any]:
    d = asdict(record)
    d["path"] = list(record.path)
    return d


def name_from_tokens(tokens: Sequence[Token]) -> str:
    """Return the most recent identifier or string literal, or ""."""
    for tok in reversed(tokens):
        if tok.kind == "STRING":
            return tok.literal
        if tok.category is Category.MERGE:
            for kind, text in reversed(tok.parts):
                if kind == "IDENT":
                    return text
    return ""


def cleanse_name(name: str) -> str:
    """Return name trimmed, or "" if it doesn't look like a usable name."""
    name = name.strip(_NAME_TRIM)
    if (not name
            or _NAME_REJECT_CHARS.intersection(name)
            or name in _NAME_REJECT_WORDS
            or name.startswith("0x")
            or _NUMERIC_RE.fullmatch(name)):
        return ""
    return name


class Emitter:
    """Collects the records of one entry and feeds NAME values to the dictionary."""

    def __init__(self, context: EntryContext, dictionary: Dictionary | None = None):
        self._context = context
        self._dictionary = dictionary
        self.records: list[Record] = []

    def _record(self, kind: str, path: Sequence[str], name: str,
                literal_kind: str, value: str, is_text: bool):
        c = self._context
        self.records.append(Record(
            timestamp=c.timestamp,
            module=c.module,
            level=c.level,
            directory=c.directory,
            file=c.file,
            file_base=c.file_base,
            offset=c.offset,
            line=c.line,
            kind=kind,
            path=tuple(path),
            name=name,
            literal_kind=literal_kind,
            value=value,
            is_text=is_text,
        ))

    def _text(self, kind: str, path: Sequence[str], words: list[str]):
        text = " ".join(words).strip(_TEXT_TRIM)
        if text:
            self._record(kind, path, "", "STRING", text, True)

    def emit(self, path: Sequence[str], tokens: list[Token], start_at: int = 0) -> int:
        """Emit tokens[start_at:] that haven't been emitted yet.

        Returns the new cursor, i.e. len(tokens).
        """
        words: list[str] = []
        for i in range(start_at, len(tokens)):
            tok = tokens[i]
            if tok.emitted:
                continue
            tok.emitted = True

            if tok.mergeable:
                words.append(tok.literal)
                continue

            self._text(STRS, path, words)
            words = []

            # Punctuation only ends the free-text run.
            if tok.category is not Category.LITERAL:
                continue

            name = cleanse_name(name_from_tokens(tokens[:i]))
            if name:
                if self._dictionary is not None:
                    self._dictionary.record(tok.kind, name, tok.literal)
                self._record(NAME, path, name, tok.kind, tok.literal, False)

        self._text(TAIL, path, words)
        return len(tokens)

"""Generic C-like scanner that turns an entry body into a flat token stream.

The grammar is borrowed from general-purpose languages, not from any log
dialect, so token boundaries are a best-effort segmentation of free text:
  - identifiers and keywords are mergeable words
  - numbers, strings and chars are value literals
  - ( [ { and ) ] } change nesting depth
  - << and >> are skipped
  - comma, period, colon, semicolon and + - * / are punctuation leaves
  - anything else (other operators, stray quotes, @ # $ ...) is mergeable
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class Category(Enum):
    OPEN = "open"
    CLOSE = "close"
    LITERAL = "literal"
    PUNCT = "punct"
    MERGE = "merge"
    SKIP = "skip"


LITERAL_KINDS = ("INT", "FLOAT", "IMAG", "CHAR", "STRING")

OPEN_BRACKETS = ("(", "[", "{")
CLOSE_BRACKETS = (")", "]", "}")
PUNCTUATION = (",", ".", ":", ";", "+", "-", "*", "/")
SKIPPED = ("<<", ">>")

_EXP = r"(?:[eE][+-]?\d+)"

_TOKEN_RE = re.compile(
    r"(?P<WS>\s+)"
    r"|(?P<IMAG>(?:\d+\.\d*|\.\d+|\d+)" + _EXP + r"?i)"
    r"|(?P<FLOAT>\d+\.\d*" + _EXP + r"?|\.\d+" + _EXP + r"?|\d+" + _EXP + r")"
    r"|(?P<INT>0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|\d[\d_]*)"
    r"|(?P<IDENT>[^\W\d]\w*)"
    r'|(?P<STRING>"(?:[^"\\\n]|\\.)*"|`[^`]*`)'
    r"|(?P<CHAR>'(?:[^'\\\n]|\\(?:x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[0-7]{3}|.))')"
    r"|(?P<OP><<=|>>=|&\^=|\.\.\.|&&|\|\||<-|\+\+|--|==|!=|<=|>=|:=|\+=|-="
    r"|\*=|/=|%=|&=|\|=|\^=|<<|>>|&\^|[-+*/%&|^<>=!(){}\[\],;.:~])"
    r"|(?P<ILLEGAL>.)",
    re.DOTALL,
)


@dataclass
class Token:
    kind: str  # "IDENT", "INT", "STRING", ... or the operator text
    literal: str
    category: Category
    emitted: bool = False
    # (kind, text) pieces of a merged run, oldest first
    parts: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self):
        if self.category is Category.MERGE and not self.parts:
            self.parts.append((self.kind, self.literal))

    @property
    def mergeable(self) -> bool:
        return self.category is Category.MERGE

    @property
    def is_leaf(self) -> bool:
        return self.category in (Category.LITERAL, Category.PUNCT)

    def merge(self, other: "Token") -> None:
        """Append other's text to this token, separated by a single space."""
        self.literal = f"{self.literal} {other.literal}"
        self.parts.extend(other.parts)


def classify(kind: str) -> Category:
    """Map a lexical kind to its structural category."""
    if kind in LITERAL_KINDS:
        return Category.LITERAL
    if kind in OPEN_BRACKETS:
        return Category.OPEN
    if kind in CLOSE_BRACKETS:
        return Category.CLOSE
    if kind in PUNCTUATION:
        return Category.PUNCT
    if kind in SKIPPED:
        return Category.SKIP
    return Category.MERGE


def _decode(data: bytes) -> str:
    """Decode the valid prefix of data; stop at the first invalid byte or NUL."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.debug("Invalid byte at %d, truncating token stream", e.start)
        text = data[:e.start].decode("utf-8")
    nul = text.find("\x00")
    if nul >= 0:
        logger.debug("NUL byte at %d, truncating token stream", nul)
        text = text[:nul]
    return text


def tokenize(data: bytes | str) -> Iterator[Token]:
    """Yield tokens for an entry body.

    Malformed input never raises: scanning simply ends where the input
    stops being valid UTF-8.
    """
    text = _decode(data) if isinstance(data, bytes) else data
    pos = 0
    end = len(text)
    while pos < end:
        m = _TOKEN_RE.match(text, pos)
        pos = m.end()
        group = m.lastgroup
        if group == "WS":
            continue
        lexeme = m.group()
        if group == "OP":
            kind = lexeme
        elif group == "ILLEGAL":
            kind = "ILLEGAL"
        else:
            kind = group
        if kind in ("STRING", "CHAR"):
            lexeme = lexeme[1:-1]
        yield Token(kind, lexeme, classify(kind))

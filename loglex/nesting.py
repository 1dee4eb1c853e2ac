"""Nesting walk over the token stream, one frame per bracket level.

Each open bracket names a new path element after the closest identifier or
string before it and pushes a frame; the matching close bracket emits what
the frame holds and pops it. Frames live on an explicit stack, so input
depth never touches the interpreter's recursion limit. Past max_depth,
opens are only counted for matching and their contents stay on the
current level.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from loglex.emitter import Emitter, name_from_tokens
from loglex.tokenizer import Category, Token

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


@dataclass
class Frame:
    path: list[str]
    pending: list[Token] = field(default_factory=list)
    cursor: int = 0
    flat_opens: int = 0  # opens past the depth cap, kept only for matching


class PathBuilder:
    def __init__(self, emitter: Emitter, max_depth: int = DEFAULT_MAX_DEPTH):
        self._emitter = emitter
        self._max_depth = max_depth
        self.depth = 0
        self.max_depth_reached = 0
        self.truncated = False

    def build(self, tokens: Iterable[Token]):
        """Consume the whole stream (or up to a stray top-level close)."""
        stack = [Frame([])]
        try:
            for tok in tokens:
                frame = stack[-1]
                category = tok.category
                if category is Category.SKIP:
                    continue

                if category is Category.OPEN:
                    if self.depth >= self._max_depth:
                        if not self.truncated:
                            logger.debug("Nesting deeper than %d, flattening", self._max_depth)
                        self.truncated = True
                        frame.flat_opens += 1
                        continue
                    name = name_from_tokens(frame.pending)
                    frame.cursor = self._emitter.emit(frame.path, frame.pending, frame.cursor)
                    stack.append(Frame(frame.path + [name] if name else frame.path))
                    self.depth += 1
                    self.max_depth_reached = max(self.max_depth_reached, self.depth)

                elif category is Category.CLOSE:
                    if frame.flat_opens:
                        frame.flat_opens -= 1
                        continue
                    self._pop(stack)
                    if not stack:
                        return

                elif (tok.mergeable and frame.pending
                      and frame.pending[-1].mergeable and not frame.pending[-1].emitted):
                    frame.pending[-1].merge(tok)

                else:
                    frame.pending.append(tok)

            # End of input closes every level still open, innermost first.
            while stack:
                self._pop(stack)
        finally:
            self.depth = 0

    def _pop(self, stack: list[Frame]):
        frame = stack.pop()
        self._emitter.emit(frame.path, frame.pending, frame.cursor)
        self.depth = max(0, len(stack) - 1)

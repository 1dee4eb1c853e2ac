"""Run-scoped dictionary of (literal kind, name) -> observed values."""

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DictEntry:
    kind: str
    name: str
    samples: tuple[str, ...]
    count: int


class Dictionary:
    """Thread-safe accumulator shared by all file workers of one run.

    The first value seen for a (kind, name) pair is always kept. Up to
    max_samples distinct values are kept per pair; every observation is
    counted.
    """

    def __init__(self, max_samples: int = 5):
        self._max_samples = max(1, max_samples)
        self._lock = threading.Lock()
        self._samples: dict[tuple[str, str], list[str]] = {}
        self._counts: dict[tuple[str, str], int] = {}
        self._full: set[tuple[str, str]] = set()

    def record(self, kind: str, name: str, literal: str):
        key = (kind, name)
        with self._lock:
            samples = self._samples.setdefault(key, [])
            if literal not in samples:
                if len(samples) < self._max_samples:
                    samples.append(literal)
                elif key not in self._full:
                    self._full.add(key)
                    logger.debug("%s %s: more than %d distinct values, further samples only counted",
                                 kind, name, self._max_samples)
            self._counts[key] = self._counts.get(key, 0) + 1

    def entries(self) -> list[DictEntry]:
        """Snapshot of everything recorded so far, sorted by (kind, name)."""
        with self._lock:
            return [
                DictEntry(kind, name, tuple(self._samples[(kind, name)]), self._counts[(kind, name)])
                for kind, name in sorted(self._samples)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def save(self, path: str):
        """Write all entries as a JSON array, atomically."""
        out_dir = os.path.dirname(os.path.abspath(path))
        os.makedirs(out_dir, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=out_dir, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump([asdict(e) for e in self.entries()], f, indent=2)
                f.write("\n")
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

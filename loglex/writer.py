"""RecordWriter: consumer thread that drains per-entry batches into the sink."""

import json
import logging
import queue
from dataclasses import dataclass, field
from threading import Thread
from typing import Callable, TextIO

from loglex.emitter import Record, record_to_dict

logger = logging.getLogger(__name__)


@dataclass
class EntryBatch:
    """Everything one entry produced. Written as a unit, never interleaved."""
    records: list[Record] = field(default_factory=list)
    original: str | None = None


def format_json(record: Record) -> str:
    """NDJSON, one JSON object per record."""
    return json.dumps(record_to_dict(record))


def format_text(record: Record) -> str:
    """Tab-separated, for grepping."""
    return "\t".join([
        record.timestamp,
        record.module,
        record.level,
        f"{record.directory}/{record.file}",
        f"{record.offset}:{record.line}",
        record.kind,
        "/".join(record.path),
        record.name,
        record.literal_kind,
        record.value,
    ])


def get_formatter(output_format: str = "json") -> Callable[[Record], str]:
    if output_format == "text":
        return format_text
    return format_json


class RecordWriter(Thread):
    def __init__(self, q: queue.Queue, stream: TextIO, formatter: Callable[[Record], str]):
        super().__init__(daemon=True)
        self._queue = q
        self._stream = stream
        self._formatter = formatter
        self._running = True
        self._batch_count = 0
        self._total_records = 0

    @property
    def total_records(self) -> int:
        return self._total_records

    @property
    def batch_count(self) -> int:
        return self._batch_count

    def _write(self, batch: EntryBatch):
        lines = []
        if batch.original is not None:
            lines.append(batch.original)
        lines.extend(self._formatter(r) for r in batch.records)
        if not lines:
            return
        self._stream.write("\n".join(lines) + "\n")
        self._batch_count += 1
        self._total_records += len(batch.records)

    def run(self):
        while self._running:
            try:
                batch = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self._write(batch)

    def stop(self):
        """Signal shutdown, drain whatever is left, and flush the stream."""
        self._running = False
        if self.is_alive():
            self.join()
        while True:
            try:
                batch = self._queue.get_nowait()
            except queue.Empty:
                break
            self._write(batch)
        self._stream.flush()
        logger.info("Wrote %d records from %d entries", self._total_records, self._batch_count)

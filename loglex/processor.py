"""Per-file processing and the parallel run over many files.

Each file is read, split into entries, and every entry is cleansed,
tokenized, walked by the PathBuilder and emitted as one EntryBatch on the
output queue. Files share nothing but the queue and the Dictionary.
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass, field

from loglex.config import Config
from loglex.dictionary import Dictionary
from loglex.emitter import Emitter, EntryContext, Record
from loglex.formats import SourceConfig, file_base
from loglex.nesting import PathBuilder
from loglex.recognizer import Entry, extract_prefix, read_lines, recognize_entries
from loglex.tokenizer import tokenize
from loglex.writer import EntryBatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileJob:
    directory: str
    filename: str
    source: SourceConfig


@dataclass
class RunResult:
    files: int = 0
    entries: int = 0
    records: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class FileProcessor:
    def __init__(self, job: FileJob, config: Config, dictionary: Dictionary, out: queue.Queue):
        self._job = job
        self._config = config
        self._dictionary = dictionary
        self._out = out
        self._dir_base = os.path.basename(os.path.normpath(job.directory))
        self._file_base = file_base(job.filename)
        self.entries = 0
        self.records = 0

    @property
    def path(self) -> str:
        return os.path.join(self._job.directory, self._job.filename)

    def process(self):
        """Process the whole file. OSError (including LineTooLongError) propagates."""
        if self._config.progress_every <= 0:
            logger.info("processing %s/%s", self._dir_base, self._job.filename)

        with open(self.path, "rb") as f:
            lines = read_lines(f, self._config.max_line_bytes)
            for entry in recognize_entries(lines, self._job.source):
                batch = EntryBatch(original=self._original_text(entry))
                batch.records = self.process_entry(entry)
                if batch.records or batch.original is not None:
                    self._out.put(batch)

                self.entries += 1
                self.records += len(batch.records)
                every = self._config.progress_every
                if every > 0 and self.entries % every == 0:
                    logger.info("%s/%s: %d entries", self._dir_base, self._job.filename, self.entries)

    def _original_text(self, entry: Entry) -> str | None:
        if not self._config.emit_orig:
            return None
        text = "\n".join(entry.lines)
        if self._config.emit_orig == "single":
            text = text.replace("\n", " ")
        return text

    def process_entry(self, entry: Entry) -> list[Record]:
        """Return the records for one entry; [] if its prefix doesn't match."""
        parsed = extract_prefix(entry.lines[0], self._job.source.prefix_pattern)
        if parsed is None:
            logger.debug("%s:%d: prefix mismatch, entry dropped", self._job.filename, entry.start_line)
            return []
        header, rest = parsed

        body = "".join(line + "\n" for line in [rest] + entry.lines[1:])
        data = self._job.source.cleanse(body.encode("utf-8", "surrogateescape"))

        context = EntryContext(
            timestamp=header.timestamp,
            module=header.module or self._file_base,
            level=header.level,
            directory=self._dir_base,
            file=self._job.filename,
            file_base=self._file_base,
            offset=entry.start_offset,
            line=entry.start_line,
        )
        emitter = Emitter(context, self._dictionary)
        PathBuilder(emitter, self._config.max_depth).build(tokenize(data))
        return emitter.records


def run_files(jobs: list[FileJob], config: Config, dictionary: Dictionary,
              out: queue.Queue) -> RunResult:
    """Process jobs on config.workers threads.

    Any exception raised while processing a file is recorded in
    RunResult.failures and the worker moves on to the next job.
    """
    result = RunResult()
    lock = threading.Lock()
    pending: queue.Queue = queue.Queue()
    for job in jobs:
        if job.source.skip:
            logger.info("skipping %s", job.filename)
            continue
        pending.put(job)

    def worker():
        while True:
            try:
                job = pending.get_nowait()
            except queue.Empty:
                return
            processor = FileProcessor(job, config, dictionary, out)
            try:
                processor.process()
            except OSError as e:
                logger.error("Failed to process %s: %s", processor.path, e)
                with lock:
                    result.failures.append((processor.path, str(e)))
            except Exception as e:
                logger.exception("Failed to process %s", processor.path)
                with lock:
                    result.failures.append((processor.path, f"{type(e).__name__}: {e}"))
            with lock:
                result.files += 1
                result.entries += processor.entries
                result.records += processor.records

    threads = [threading.Thread(target=worker, daemon=True)
               for _ in range(min(config.workers, max(1, pending.qsize())))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return result

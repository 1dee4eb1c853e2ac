"""loglex: turn server log files into streams of typed, path-tagged records."""

import argparse
import logging
import os
import queue
import sys
from dataclasses import replace

from loglex.config import Config, load_config, load_yaml_config
from loglex.dictionary import Dictionary
from loglex.formats import SourceConfig, load_formats, lookup
from loglex.processor import FileJob, RunResult, run_files
from loglex.writer import RecordWriter, get_formatter

logger = logging.getLogger("loglex")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="loglex",
        description="Split log files into entries and emit text, name/value and path records.",
    )
    parser.add_argument(
        "paths", nargs="+",
        help="Log files, or directories whose files are all processed",
    )
    parser.add_argument(
        "--formats", default=None,
        help="YAML file with extra or overriding per-file formats",
    )
    parser.add_argument(
        "--output", choices=["json", "text"], default=None,
        help="Record output format (default: json)",
    )
    parser.add_argument(
        "--out", default=None,
        help="Write records here instead of stdout",
    )
    parser.add_argument(
        "--dict-out", default=None,
        help="Write the name/value dictionary as JSON to this file at the end "
             "(up to LOGLEX_DICT_MAX_SAMPLES distinct values per name, every value counted)",
    )
    parser.add_argument(
        "--emit-orig", choices=["single", "multi"], default=None,
        help="Also write each entry's original lines (single: joined on one line)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Files processed in parallel")
    parser.add_argument("--max-depth", type=int, default=None, help="Bracket nesting cap")
    parser.add_argument("--max-line-bytes", type=int, default=None, help="Longest line allowed")
    parser.add_argument(
        "--progress-every", type=int, default=None,
        help="Log progress every N entries (0: log each file as it starts)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def config_from_args(args, base: Config) -> Config:
    """Apply CLI flags that were given on top of the environment config."""
    overrides = {
        "output_format": args.output,
        "emit_orig": args.emit_orig,
        "workers": args.workers,
        "max_depth": args.max_depth,
        "max_line_bytes": args.max_line_bytes,
        "progress_every": args.progress_every,
        "formats_file": args.formats,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def discover_jobs(paths: list[str], formats: dict[str, SourceConfig]) -> list[FileJob]:
    """Expand directories and attach each file's format. Unknown files are skipped."""
    jobs = []
    for raw in paths:
        if os.path.isdir(raw):
            candidates = [(raw, name) for name in sorted(os.listdir(raw))
                          if os.path.isfile(os.path.join(raw, name))]
        else:
            candidates = [(os.path.dirname(raw) or ".", os.path.basename(raw))]

        for directory, filename in candidates:
            source = lookup(formats, filename)
            if source is None:
                logger.info("No format for %s, skipping", filename)
                continue
            jobs.append(FileJob(directory, filename, source))
    return jobs


def run(config: Config, paths: list[str], out_stream, dict_out: str | None) -> RunResult:
    formats = load_formats(load_yaml_config(config.formats_file))
    jobs = discover_jobs(paths, formats)

    dictionary = Dictionary(max_samples=config.dict_max_samples)
    q: queue.Queue = queue.Queue()
    writer = RecordWriter(q, out_stream, get_formatter(config.output_format))
    writer.start()
    try:
        result = run_files(jobs, config, dictionary, q)
    finally:
        writer.stop()

    if dict_out:
        dictionary.save(dict_out)
        logger.info("Saved %d dictionary entries to %s", len(dictionary), dict_out)

    logger.info("Processed %d file(s), %d entries, %d records, %d failure(s)",
                result.files, result.entries, result.records, len(result.failures))
    return result


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [LOGLEX] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        config = config_from_args(args, load_config())
        if args.out:
            out_stream = open(args.out, "w", encoding="utf-8", errors="surrogateescape")
        else:
            sys.stdout.reconfigure(errors="surrogateescape")
            out_stream = sys.stdout
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        result = run(config, args.paths, out_stream, args.dict_out)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        if out_stream is not sys.stdout:
            out_stream.close()

    return 0 if result.ok else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
    except BrokenPipeError:
        sys.exit(0)

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from headset_qr.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, default_config, load_config
from headset_qr.csvio.headers import HeaderDetected, detect_shape, objectify_rows
from headset_qr.csvio.master import extract_master_usernames
from headset_qr.csvio.normalize import normalize_csv_row
from headset_qr.csvio.reader import CsvParseError, read_table_rows
from headset_qr.errors import EmptyInputError, ExportFailure, ValidationError
from headset_qr.logging.error_log import ErrorLogBuffer
from headset_qr.logging.init import log_summary, set_debug, setup_logging
from headset_qr.models.export_job import ExportJob
from headset_qr.models.identity import ExportItem
from headset_qr.render.pdf import DirectoryPresenter, build_qr_pdf, slugify
from headset_qr.render.qr import write_qr_png
from headset_qr.services.bulk import process_rows
from headset_qr.services.export import run_export_job
from headset_qr.services.identity import validate_identity
from headset_qr.services.progress import ProgressTracker
from headset_qr.services.summary import render_status_message, render_summary_line

"""CLI entrypoint.

Subcommands:
- single:  validate one identity, print username/payload, optionally write PNG/PDF
- bulk:    roster CSV -> validated items -> batched PDF parts in the output directory
- inspect: print the detected roster shape and the first normalized rows

Config resolution: --config > $HEADSET_QR_CONFIG (.env is loaded first) >
config/qr.yml if present > built-in defaults.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_CANCELLED = 3

CONFIG_ENV_VAR = "HEADSET_QR_CONFIG"
INSPECT_SAMPLE_ROWS = 5


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env via python-dotenv; a broken file only warns."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _resolve_config(explicit: str | None) -> AppConfig:
    """Raises ConfigError when an explicitly requested config is missing/invalid."""
    chosen = explicit or os.getenv(CONFIG_ENV_VAR)
    if chosen:
        return load_config(Path(chosen))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 (got {n})")
    return n


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="headset-qr", description="Headset login QR code generator")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", help=f"YAML config path (default: {DEFAULT_CONFIG_PATH} if present)")
    sub = p.add_subparsers(dest="command", required=True)

    single = sub.add_parser("single", help="Generate one QR from manual input")
    single.add_argument("--group", required=True, help="Group code (kept as text, leading zeros intact)")
    single.add_argument("--period", required=True)
    single.add_argument("--headset", required=True, help="Headset number (e.g. 48 or h48)")
    single.add_argument("--prefix", help="Username prefix (default: config defaults.prefix)")
    single.add_argument("--pad", help="Headset digits (default: config defaults.pad)")
    single.add_argument("--png", help="Write the QR image to this path")
    single.add_argument("--pdf", help="Write a one-cell PDF sheet to this path")

    bulk = sub.add_parser("bulk", help="Generate PDF sheets from a roster CSV")
    bulk.add_argument("roster", help="Roster file (.csv or .xlsx)")
    bulk.add_argument("--prefix", help="Prefix for rows without one")
    bulk.add_argument("--pad", type=int, help="Headset digits for rows without a pad column")
    bulk.add_argument("--out", help="Output directory (default: config output_directory)")
    bulk.add_argument("--title", help="Document title (default: config title)")
    bulk.add_argument("--max-pages", type=_positive_int, help="Pages per PDF part (default: config export.max_pages_per_pdf)")
    bulk.add_argument("--no-header-detect", action="store_true", help="Treat every row as positional data")

    inspect = sub.add_parser("inspect", help="Show detected roster shape and sample rows")
    inspect.add_argument("roster", help="Roster file (.csv or .xlsx)")
    return p.parse_args(argv)


@contextmanager
def _cancel_on_sigint(job: ExportJob) -> Iterator[None]:
    """Ctrl-C requests cooperative cancellation; the current part still finishes."""
    def _handler(signum, frame):  # noqa: ANN001
        job.request_cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _run_single(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    try:
        identity = validate_identity(
            args.group,
            args.period,
            args.headset,
            args.prefix,
            args.pad,
            default_prefix=cfg.defaults.prefix,
            default_pad=cfg.defaults.pad,
        )
    except ValidationError as e:
        logger.error(f"{e.field}: {e.message}")
        return EXIT_FATAL

    logger.info(f"username={identity.username}")
    logger.info(f"payload={identity.payload}")

    try:
        if args.png:
            path = write_qr_png(identity.payload, Path(args.png), cfg.qr.error_correction, cfg.qr.size_px, cfg.qr.border)
            logger.info(f"wrote {path}")
        if args.pdf:
            document = build_qr_pdf([ExportItem.from_identity(identity)], cfg.title, cfg.layout, cfg.qr, cfg.organization)
            logger.info(f"wrote {document.save(Path(args.pdf))}")
    except (ExportFailure, OSError) as e:
        logger.error(f"export: {e}")
        return EXIT_FATAL
    return EXIT_SUCCESS


def _flush_error_log(buffer: ErrorLogBuffer, logger: logging.Logger) -> None:
    path = buffer.flush()
    if path is not None:
        logger.info(f"errors written to {path}")


def _run_bulk(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    roster = Path(args.roster)
    error_log = ErrorLogBuffer()
    try:
        rows = read_table_rows(roster)
    except CsvParseError as e:
        logger.error(f"parse: {e}")
        error_log.record_file_error(roster.name, "PARSE_ERROR", str(e))
        _flush_error_log(error_log, logger)
        return EXIT_FATAL

    logger.info(f"Processing roster: {roster} ({len(rows)} rows)")
    try:
        with ProgressTracker(len(rows), description="Reading roster", unit="row") as tracker:
            result = process_rows(
                rows,
                default_prefix=args.prefix or cfg.defaults.prefix,
                default_pad=args.pad if args.pad is not None else cfg.defaults.pad,
                detect_header=not args.no_header_detect,
                on_rows=tracker.on_rows,
            )
    except EmptyInputError as e:
        logger.error(str(e))
        error_log.record_file_error(roster.name, "EMPTY_ROSTER", str(e))
        _flush_error_log(error_log, logger)
        return EXIT_FATAL

    error_log.extend_row_errors(roster.name, result.errors)
    _flush_error_log(error_log, logger)
    logger.info(render_status_message(result))

    title = args.title or cfg.title
    max_pages = args.max_pages if args.max_pages is not None else cfg.max_pages_per_pdf
    presenter = DirectoryPresenter(Path(args.out or cfg.output_directory), slugify(title))

    def build(chunk: Sequence[ExportItem], part_title: str):
        return build_qr_pdf(chunk, part_title, cfg.layout, cfg.qr, cfg.organization)

    job = ExportJob()
    export = None
    try:
        with _cancel_on_sigint(job), ProgressTracker(len(result.items), description="Exporting", unit="QR") as tracker:
            export = run_export_job(
                job,
                result.items,
                build_document=build,
                present=presenter,
                per_page=cfg.layout.per_page,
                max_pages_per_pdf=max_pages,
                title=title,
                on_progress=tracker.on_export_event,
            )
    except EmptyInputError as e:
        logger.error(f"export: {e}")
    except ExportFailure as e:
        logger.error(f"export: {e} ({len(presenter.written)} part(s) already written)")
        return EXIT_FATAL

    summary_line = render_summary_line(result, export)
    log_summary(summary_line[len("SUMMARY "):])

    if export is not None and export.cancelled:
        return EXIT_CANCELLED
    if result.failed > 0 or export is None:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


def _run_inspect(args: argparse.Namespace) -> int:
    roster = Path(args.roster)
    try:
        rows = read_table_rows(roster)
    except CsvParseError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {roster.name} rows={len(rows)}")
    if not rows:
        return EXIT_SUCCESS

    entries = extract_master_usernames(rows)
    if entries:
        print(f"  SHAPE: master matrix usernames={len(entries)}")
        for entry in entries[:INSPECT_SAMPLE_ROWS]:
            print(f"    {entry}")
        return EXIT_SUCCESS

    shape = detect_shape(rows[0])
    if isinstance(shape, HeaderDetected):
        print(f"  SHAPE: header hits={shape.hits} columns={shape.columns}")
        records = objectify_rows(rows[1:INSPECT_SAMPLE_ROWS + 1], shape.columns)
        samples = [normalize_csv_row(r, has_header=True) for r in records]
    else:
        print(f"  SHAPE: positional hits={shape.hits}")
        samples = [normalize_csv_row(r, has_header=False) for r in rows[:INSPECT_SAMPLE_ROWS]]
    for sample in samples:
        print(f"    {sample}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] の場合に sys.argv を読まないよう None のときのみ参照
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "single":
        return _run_single(args, cfg)
    if args.command == "bulk":
        return _run_bulk(args, cfg)
    return _run_inspect(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

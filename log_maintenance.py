import argparse
import calendar
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from log_archiver import archive
from log_classifier import LOG_PATTERN, classify
from log_retention import reconcile

RETAIN_COUNT = 30

DEFAULT_BASE_DIR = Path(__file__).resolve().parent.parent / "logs"


@dataclass
class ProcessingStats:
    """Counters collected over one maintenance run."""
    files_scanned: int = 0
    files_deleted: int = 0
    files_compressed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    dirs_archived: int = 0
    dirs_skipped: int = 0
    dirs_failed: int = 0
    bytes_saved: int = 0
    errors: list = field(default_factory=list)

    def __str__(self):
        return (
            f"Scanned: {self.files_scanned} | Deleted: {self.files_deleted} | "
            f"Compressed: {self.files_compressed} | Skipped: {self.files_skipped} | "
            f"Failed: {self.files_failed} | Archived dirs: {self.dirs_archived} | "
            f"Failed dirs: {self.dirs_failed} | "
            f"Space saved: {self.bytes_saved:,} bytes"
        )


def one_month_before(now):
    """Same wall-clock time one calendar month earlier, clamped to month end.

    Days past the end of the shorter month clamp rather than roll over, so
    2025-03-31 gives 2025-02-28, not 2025-03-03.
    """
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class RetentionPolicy:
    retain_count: int
    compact_before: datetime
    archive_before: datetime

    @classmethod
    def from_now(cls, now, retain_count=RETAIN_COUNT):
        """Derive both cutoffs from a single clock reading."""
        return cls(
            retain_count=retain_count,
            compact_before=now.replace(hour=0, minute=0, second=0, microsecond=0),
            archive_before=one_month_before(now),
        )


def setup_logging(log_file=None, level=logging.INFO):
    """Configure logging for the script."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def process_standard_logs(directory, policy, stats, dry_run=False):
    """Classify the rotated logs in one directory and reconcile each bucket."""
    for bucket, files in classify(directory, LOG_PATTERN).items():
        logging.debug(f"Reconciling bucket '{bucket}' in {directory} ({len(files)} files)")
        reconcile(files, policy.retain_count, policy.compact_before, stats=stats, dry_run=dry_run)


def compress_and_cleanup_logs(base_dir=DEFAULT_BASE_DIR, now=None, dry_run=False,
                              retain_count=RETAIN_COUNT):
    """Run one maintenance pass over the service's log tree.

    Rotated logs under core/ and core/out/ are trimmed to the retention
    window and compacted; dated directories under core/operation_log/ older
    than a month are archived. Nothing is raised: every outcome is logged.
    """
    base_dir = Path(base_dir)
    now = now or datetime.now()
    policy = RetentionPolicy.from_now(now, retain_count=retain_count)
    stats = ProcessingStats()

    operation_log_dir = base_dir / "core" / "operation_log"
    standard_log_dirs = [base_dir / "core", base_dir / "core" / "out"]

    for directory in standard_log_dirs:
        if not directory.is_dir():
            logging.debug(f"Regular log directory '{directory}' does not exist; skipped.")
            continue
        process_standard_logs(directory, policy, stats, dry_run=dry_run)

    if not operation_log_dir.is_dir():
        logging.debug(f"Operation log directory '{operation_log_dir}' does not exist. Skipping.")
    else:
        archive(operation_log_dir, policy.archive_before, stats=stats, dry_run=dry_run)

    return stats


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Trim, compress and archive the rotated logs of a service."
    )
    parser.add_argument(
        "base_dir",
        nargs="?",
        default=str(DEFAULT_BASE_DIR),
        help=f"Base log directory (default: {DEFAULT_BASE_DIR})",
    )
    parser.add_argument(
        "--retain",
        type=int,
        default=RETAIN_COUNT,
        help=f"Rotated files kept per bucket (default: {RETAIN_COUNT})",
    )
    parser.add_argument("--dry-run", action="store_true", help="Log actions without changing any files")
    parser.add_argument("--log-file", help="Also write diagnostics to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    if args.retain < 0:
        parser.error(f"--retain must be 0 or greater, got {args.retain}")
    return args


def main(argv=None):
    """Main function to run the log maintenance script."""
    args = parse_args(argv)
    setup_logging(args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)

    base_dir = Path(args.base_dir)
    if not base_dir.is_dir():
        logging.error(f"Base log directory is not a directory: {base_dir}")
        return 1

    if args.dry_run:
        logging.info("DRY RUN: no files will be modified")

    logging.info("Starting log maintenance")
    stats = compress_and_cleanup_logs(base_dir, dry_run=args.dry_run, retain_count=args.retain)
    logging.info(f"Log maintenance completed - {stats}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

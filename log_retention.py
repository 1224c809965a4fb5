import gzip
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

GZIP_SUFFIX = ".gz"


def compress_file(file_path, dry_run=False):
    """Compress a single file using gzip and remove the original.

    Returns a (success, bytes_saved) tuple. The original is only removed once
    the compressed copy has been fully written and closed.
    """
    file_path = Path(file_path)
    compressed_path = file_path.with_name(file_path.name + GZIP_SUFFIX)

    if dry_run:
        if not file_path.is_file():
            logging.error(f"Failed to compress {file_path}: file does not exist")
            return False, 0
        logging.info(f"DRY RUN: would compress {file_path} -> {compressed_path}")
        return True, 0

    try:
        original_size = file_path.stat().st_size
        with open(file_path, 'rb') as f_in:
            with gzip.open(compressed_path, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
        compressed_size = compressed_path.stat().st_size
    except OSError as e:
        logging.error(f"Failed to compress {file_path}: {str(e)}")
        _discard_partial(compressed_path)
        return False, 0

    try:
        os.remove(file_path)
    except OSError as e:
        # Original stays the only copy so the next run retries it
        logging.error(f"Failed to remove {file_path} after compression: {str(e)}")
        _discard_partial(compressed_path)
        return False, 0

    bytes_saved = original_size - compressed_size
    logging.info(f"Compressed and removed: {file_path} -> {compressed_path}")
    return True, bytes_saved


def _discard_partial(compressed_path):
    try:
        compressed_path.unlink(missing_ok=True)
    except OSError as e:
        logging.error(f"Failed to remove partial file {compressed_path}: {str(e)}")


def _mtime_key(file_path):
    try:
        return (0, file_path.stat().st_mtime)
    except OSError:
        return (1, 0)


def sort_by_mtime(files):
    """Return files ordered oldest first; files that cannot be stat'ed go last."""
    return sorted((Path(f) for f in files), key=_mtime_key)


def reconcile(files, retain_count, compact_before, stats=None, dry_run=False):
    """Apply count-based eviction and age-based compaction to one bucket.

    The oldest files beyond retain_count are deleted outright. Of the files
    that remain, those last modified before compact_before are gzipped in
    place. Failures are logged per file and never raised.
    """
    ordered = sort_by_mtime(files)
    excess = len(ordered) - retain_count

    for i, file_path in enumerate(ordered):
        if stats is not None:
            stats.files_scanned += 1

        if i < excess:
            if dry_run:
                logging.info(f"DRY RUN: would delete {file_path}")
                _count(stats, "files_deleted")
                continue
            logging.info(f"The number of logs has exceeded the limit. Delete the old log: {file_path}")
            try:
                os.remove(file_path)
                _count(stats, "files_deleted")
            except OSError as e:
                logging.error(f"Failed to delete {file_path}: {str(e)}")
                _fail(stats, f"delete {file_path}: {e}")
            continue

        try:
            mtime = datetime.fromtimestamp(file_path.stat().st_mtime)
        except OSError:
            _count(stats, "files_skipped")
            continue

        if mtime >= compact_before:
            _count(stats, "files_skipped")
            continue

        success, bytes_saved = compress_file(file_path, dry_run=dry_run)
        if success:
            _count(stats, "files_compressed")
            if stats is not None:
                stats.bytes_saved += bytes_saved
        else:
            _fail(stats, f"compress {file_path}")


def _count(stats, field):
    if stats is not None:
        setattr(stats, field, getattr(stats, field) + 1)


def _fail(stats, message):
    if stats is not None:
        stats.files_failed += 1
        stats.errors.append(message)

import logging
import os
import re
import shutil
import tarfile
from datetime import datetime
from pathlib import Path

ARCHIVE_SUFFIX = ".tar.gz"
PARTIAL_SUFFIX = ".partial"

DATE_DIR_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_dir_date(name):
    """Return the date encoded in a YYYY-MM-DD directory name, or None."""
    if not DATE_DIR_RE.fullmatch(name):
        return None
    try:
        return datetime.strptime(name, "%Y-%m-%d")
    except ValueError:
        return None


def _raise(err):
    raise err


def bundle_directory(source, target):
    """Write the tree under source into a gzipped tarball at target.

    Entry names are relative to source. The bundle is built under a
    temporary name and renamed onto target only after it has been closed,
    so target never exists in a half-written state.
    """
    source = Path(source)
    target = Path(target)
    partial = target.with_name(target.name + PARTIAL_SUFFIX)

    try:
        with tarfile.open(partial, "w:gz") as tar:
            for root, dirs, files in os.walk(source, onerror=_raise):
                dirs.sort()
                root_path = Path(root)
                for name in dirs + sorted(files):
                    path = root_path / name
                    tar.add(path, arcname=str(path.relative_to(source)), recursive=False)
        os.replace(partial, target)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise


def archive(directory, cutoff, stats=None, dry_run=False):
    """Bundle every dated subdirectory older than cutoff and remove the source.

    An existing archive marks the subdirectory as done; it is never rewritten
    and its source is left as found.
    """
    dir_path = Path(directory)
    try:
        with os.scandir(dir_path) as it:
            entries = sorted((e for e in it if e.is_dir(follow_symlinks=False)), key=lambda e: e.name)
    except OSError as e:
        logging.error(f"Failed to scan operation log directory {directory}: {str(e)}")
        return

    for entry in entries:
        dir_date = parse_dir_date(entry.name)
        if dir_date is None or dir_date >= cutoff:
            continue

        source_dir = dir_path / entry.name
        target_archive = dir_path / (entry.name + ARCHIVE_SUFFIX)

        if target_archive.exists():
            logging.debug(f"Archive {target_archive} already exists; skipped.")
            if stats is not None:
                stats.dirs_skipped += 1
            continue

        if dry_run:
            logging.info(f"DRY RUN: would archive {source_dir} -> {target_archive}")
            if stats is not None:
                stats.dirs_archived += 1
            continue

        try:
            bundle_directory(source_dir, target_archive)
        except (OSError, tarfile.TarError) as e:
            logging.error(f"Compression operation log directory {source_dir} failed: {str(e)}")
            if stats is not None:
                stats.dirs_failed += 1
                stats.errors.append(f"archive {source_dir}: {e}")
            continue

        logging.info(f"Archived: {source_dir} -> {target_archive}")
        if stats is not None:
            stats.dirs_archived += 1

        try:
            shutil.rmtree(source_dir)
        except OSError as e:
            logging.error(f"Failed to delete the original operation log directory {source_dir}: {str(e)}")
            if stats is not None:
                stats.dirs_failed += 1
                stats.errors.append(f"remove {source_dir}: {e}")

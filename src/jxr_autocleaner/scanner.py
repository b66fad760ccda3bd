"""Source-file filtering, converted-counterpart dedup, and directory walks."""

import os
from pathlib import Path

from loguru import logger

from .models import OUTPUT_EXTENSION, SOURCE_EXTENSION, TEMP_MARKER

log = logger.bind(component="scanner")


def is_source_file(path: Path, source_ext: str = SOURCE_EXTENSION) -> bool:
    """Case-insensitive extension match."""
    return path.suffix.lower() == source_ext


def converted_path(path: Path, output_ext: str = OUTPUT_EXTENSION) -> Path:
    """Final output path: same directory and stem, output extension."""
    return path.with_suffix(output_ext)


def temp_output_path(
    path: Path,
    output_ext: str = OUTPUT_EXTENSION,
    temp_marker: str = TEMP_MARKER,
) -> Path:
    """Scratch path beside the source, e.g. ``shot.jxr`` -> ``shot.tmp.jpg``."""
    return path.with_suffix(temp_marker + output_ext)


def needs_conversion(
    path: Path,
    source_ext: str = SOURCE_EXTENSION,
    output_ext: str = OUTPUT_EXTENSION,
) -> bool:
    """True for a source file whose converted counterpart is not on disk."""
    if not is_source_file(path, source_ext):
        return False
    return not converted_path(path, output_ext).exists()


def _log_walk_error(err: OSError) -> None:
    log.warning(f"Scan error: {err}")


def find_pending(
    root: Path,
    source_ext: str = SOURCE_EXTENSION,
    output_ext: str = OUTPUT_EXTENSION,
) -> list[Path]:
    """Recursively list every source file under ``root`` lacking an output.

    Unreadable subdirectories are logged and skipped.
    """
    pending: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        for name in filenames:
            path = Path(dirpath) / name
            if needs_conversion(path, source_ext, output_ext) and path.is_file():
                pending.append(path)
    return sorted(pending)


def cleanup_orphan_temps(
    root: Path,
    output_ext: str = OUTPUT_EXTENSION,
    temp_marker: str = TEMP_MARKER,
) -> int:
    """Delete ``*.tmp.jpg`` leftovers from conversions interrupted mid-write.

    Returns the number of files removed.
    """
    removed = 0
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        for name in filenames:
            path = Path(dirpath) / name
            if path.suffix.lower() != output_ext:
                continue
            if not path.stem.lower().endswith(temp_marker):
                continue
            log.info(f"Cleaning up orphan temp file: {path}")
            try:
                path.unlink(missing_ok=True)
                removed += 1
            except OSError as e:
                log.warning(f"Could not remove orphan temp {path}: {e}")
    return removed

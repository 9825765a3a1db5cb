"""Filesystem operations for record files.

INVARIANT: Files are truth. Every invocation re-reads the directories; there
is no cache that can go stale between runs.

INVARIANT: No check-then-act. Whether a file exists is learned from the
outcome of the read, rename, or exclusive create that actually touches it,
never from a preliminary ``exists()`` call.

Pure parsing/rendering lives in :mod:`gtdctl.domain.content`. This module
handles bounded reads, atomic replacement, filename reservation, and file
discovery.
"""

from __future__ import annotations

import logging
import os
import secrets
import tempfile
from collections.abc import Iterator
from pathlib import Path

from gtdctl.domain.errors import RecordNotFoundError, RecordParseError, RecordWriteError

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".md"
MAX_FILE_BYTES = 1024 * 1024
MAX_NUMERIC_SUFFIX = 10_000
TEMP_PREFIX = ".tmp-"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def read_text_bounded(path: Path, *, max_bytes: int = MAX_FILE_BYTES) -> str:
    """Read a UTF-8 file, refusing anything larger than *max_bytes*.

    Line endings are returned untranslated so a later rewrite can keep the
    body byte-for-byte.

    Raises:
        RecordNotFoundError: The file does not exist.
        RecordParseError: The file is too large, unreadable, or not UTF-8.
    """
    try:
        with path.open("rb") as fh:
            data = fh.read(max_bytes + 1)
    except FileNotFoundError as exc:
        raise RecordNotFoundError("file not found", path=path) from exc
    except OSError as exc:
        msg = f"cannot read file: {exc.strerror or exc}"
        raise RecordParseError(msg, path=path) from exc

    if len(data) > max_bytes:
        msg = f"file exceeds {max_bytes} bytes"
        raise RecordParseError(msg, path=path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RecordParseError("file is not valid UTF-8", path=path) from exc


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def _fsync_directory(directory: Path) -> None:
    """Flush a directory entry change to disk (POSIX only, best-effort)."""
    if os.name != "posix":
        return
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        logger.debug("Cannot open %s for fsync", directory, exc_info=True)
        return
    try:
        os.fsync(fd)
    except OSError:
        logger.debug("Directory fsync failed for %s", directory, exc_info=True)
    finally:
        os.close(fd)


def _copy_mode(source: Path, target: Path) -> None:
    try:
        mode = os.stat(source).st_mode
    except FileNotFoundError:
        return
    os.chmod(target, mode & 0o7777)


def atomic_write(path: Path, content: str) -> None:
    """Replace *path* with *content* atomically.

    The content goes to a hidden temporary file in the same directory, is
    flushed and fsynced, then renamed over *path*. Readers see either the
    old file or the new one, never a partial write. On any failure the
    temporary file is removed and the original is left untouched.

    Raises:
        RecordWriteError: Any I/O failure in the sequence.
    """
    data = content.encode("utf-8")
    directory = path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".tmp", dir=directory)
    except OSError as exc:
        msg = f"cannot create temporary file: {exc.strerror or exc}"
        raise RecordWriteError(msg, path=path) from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        _copy_mode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        msg = f"atomic write failed: {exc.strerror or exc}"
        raise RecordWriteError(msg, path=path) from exc

    _fsync_directory(directory)
    logger.debug("Wrote %s (%d bytes)", path, len(data))


def candidate_filenames(stem: str, suffix: str = RECORD_SUFFIX) -> Iterator[str]:
    """Yield ``stem.md``, ``stem-1.md`` … ``stem-10000.md``, then a random one."""
    yield f"{stem}{suffix}"
    for n in range(1, MAX_NUMERIC_SUFFIX + 1):
        yield f"{stem}-{n}{suffix}"
    yield f"{stem}-{secrets.token_hex(8)}{suffix}"


def free_filename(directory: Path, stem: str, *, suffix: str = RECORD_SUFFIX) -> Path:
    """First candidate name not present in *directory*, without claiming it.

    For previews only; anything that writes must use :func:`reserve_filename`.
    """
    for name in candidate_filenames(stem, suffix):
        candidate = directory / name
        if not candidate.exists():
            return candidate
    msg = f"no free filename for {stem!r}"
    raise RecordWriteError(msg, path=directory)


def reserve_filename(directory: Path, stem: str, *, suffix: str = RECORD_SUFFIX) -> Path:
    """Claim a free filename in *directory* with an exclusive create.

    Creates *directory* if needed. The returned path exists as an empty
    file owned by the caller, who is expected to overwrite it (for example
    with :func:`atomic_write`) or remove it.

    Raises:
        RecordWriteError: The directory cannot be created or no name is free.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"cannot create directory: {exc.strerror or exc}"
        raise RecordWriteError(msg, path=directory) from exc

    for name in candidate_filenames(stem, suffix):
        candidate = directory / name
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            continue
        except OSError as exc:
            msg = f"cannot create file: {exc.strerror or exc}"
            raise RecordWriteError(msg, path=candidate) from exc
        os.close(fd)
        return candidate

    msg = f"no free filename for {stem!r}"
    raise RecordWriteError(msg, path=directory)


def move_into(path: Path, directory: Path) -> Path:
    """Move *path* into *directory* under a free name, returning the new path.

    Raises:
        RecordNotFoundError: *path* vanished before the rename.
        RecordWriteError: Any other I/O failure.
    """
    target = reserve_filename(directory, path.stem, suffix=path.suffix or RECORD_SUFFIX)
    try:
        os.replace(path, target)
    except FileNotFoundError as exc:
        target.unlink(missing_ok=True)
        raise RecordNotFoundError("file not found", path=path) from exc
    except OSError as exc:
        target.unlink(missing_ok=True)
        msg = f"cannot move file: {exc.strerror or exc}"
        raise RecordWriteError(msg, path=path) from exc
    _fsync_directory(directory)
    return target


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def list_record_files(directory: Path) -> list[Path]:
    """List record files directly inside *directory*, sorted by name.

    Hidden files (including in-flight temporary files) and subdirectories
    are skipped. A missing directory lists as empty.
    """
    try:
        entries = list(os.scandir(directory))
    except (FileNotFoundError, NotADirectoryError):
        logger.debug("Directory %s does not exist", directory)
        return []

    results: list[Path] = []
    for entry in entries:
        if entry.name.startswith(".") or not entry.name.endswith(RECORD_SUFFIX):
            continue
        try:
            if not entry.is_file():
                continue
        except OSError:
            continue
        results.append(Path(entry.path))
    return sorted(results, key=lambda p: p.name)

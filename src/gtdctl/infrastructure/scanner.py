"""Directory scanner: list, read, and parse one kind's record files.

Files are independent, so parsing fans out over a bounded thread pool.
A file that cannot be read or parsed is skipped and reported; it never
fails the scan. Limits from :class:`~gtdctl.config.models.ScanConfig`
bound the number of files and total bytes a single scan will touch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from gtdctl.config.models import ScanConfig
from gtdctl.domain.content import Record, parse_record
from gtdctl.domain.errors import ErrorCode, GtdError
from gtdctl.domain.types import ARCHIVE_DIRNAME, RecordKind
from gtdctl.infrastructure.filesystem import list_record_files, read_text_bounded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanFailure:
    """A file the scanner skipped."""

    path: Path
    code: ErrorCode
    message: str

    def as_warning(self) -> str:
        return f"Skipped {self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": str(self.path), "code": str(self.code), "message": self.message}


@dataclass
class ScanResult:
    """Outcome of scanning one directory (and optionally its archive)."""

    kind: RecordKind
    records: list[Record] = field(default_factory=list)
    failures: list[ScanFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    truncated: bool = False


def _collect_paths(
    directory: Path,
    *,
    include_archived: bool,
    only_archived: bool,
) -> list[Path]:
    paths: list[Path] = []
    if not only_archived:
        paths.extend(list_record_files(directory))
    if include_archived or only_archived:
        paths.extend(list_record_files(directory / ARCHIVE_DIRNAME))
    return paths


def _apply_byte_budget(paths: list[Path], budget: int) -> tuple[list[Path], bool]:
    """Keep leading *paths* whose combined on-disk size fits in *budget*."""
    kept: list[Path] = []
    total = 0
    for path in paths:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0  # the read itself will report the problem
        if total + size > budget:
            return kept, True
        total += size
        kept.append(path)
    return kept, False


def scan_directory(
    kind: RecordKind,
    directory: Path,
    *,
    config: ScanConfig | None = None,
    include_archived: bool = False,
    only_archived: bool = False,
) -> ScanResult:
    """Parse every record file of *kind* in *directory*.

    Records come back in filename order, but callers needing a specific
    order must sort explicitly.
    """
    cfg = config or ScanConfig()
    result = ScanResult(kind=kind)
    paths = _collect_paths(
        directory, include_archived=include_archived, only_archived=only_archived
    )

    if len(paths) > cfg.max_files:
        warning = f"Scan of {directory} limited to {cfg.max_files} of {len(paths)} files"
        logger.warning(warning)
        result.warnings.append(warning)
        result.truncated = True
        paths = paths[: cfg.max_files]

    paths, over_budget = _apply_byte_budget(paths, cfg.max_total_bytes)
    if over_budget:
        warning = f"Scan of {directory} stopped after {len(paths)} files: byte budget exhausted"
        logger.warning(warning)
        result.warnings.append(warning)
        result.truncated = True

    if not paths:
        return result

    def load(path: Path) -> Record | ScanFailure:
        try:
            content = read_text_bounded(path, max_bytes=cfg.max_file_bytes)
            return parse_record(
                kind, content, path=path, max_frontmatter_bytes=cfg.max_frontmatter_bytes
            )
        except GtdError as exc:
            return ScanFailure(path=path, code=exc.code, message=exc.message)

    workers = max(1, min(cfg.max_workers, len(paths)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gtdctl-scan") as pool:
        outcomes = list(pool.map(load, paths))

    for outcome in outcomes:
        if isinstance(outcome, ScanFailure):
            logger.warning("Skipping %s: %s", outcome.path, outcome.message)
            result.failures.append(outcome)
            result.warnings.append(outcome.as_warning())
        else:
            result.records.append(outcome)

    logger.debug(
        "Scanned %s: %d %s, %d skipped",
        directory,
        len(result.records),
        kind.plural,
        len(result.failures),
    )
    return result

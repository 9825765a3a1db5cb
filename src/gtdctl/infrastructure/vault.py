"""Vault: the session object every service receives.

The Vault owns the resolved record directories and a lazily built
:class:`RelationshipIndex`. The index is built on first access and reused
for the rest of the session, so one CLI invocation issuing several
relationship queries scans the filesystem once. Writes go straight to the
files; call :meth:`Vault.invalidate` after writing if the same session
needs to read its own changes back.

There is no global state: two Vault objects never share an index.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gtdctl.config.models import ScanConfig
from gtdctl.domain.types import RecordKind
from gtdctl.infrastructure.index import RelationshipIndex
from gtdctl.infrastructure.scanner import ScanResult, scan_directory

if TYPE_CHECKING:
    from gtdctl.config.settings import GtdSettings

logger = logging.getLogger(__name__)


class Vault:
    """Session over one vault's task, project and area directories.

    Constructed once at CLI startup from :class:`GtdSettings` and stored
    in ``click.Context.obj``. Services receive the Vault via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: GtdSettings) -> None:
        self._settings = settings
        self._directories: dict[RecordKind, Path] = {
            kind: settings.directory_for(kind) for kind in RecordKind
        }
        self._indexes: dict[bool, RelationshipIndex] = {}

    @property
    def root(self) -> Path:
        """The vault root directory."""
        return self._settings.vault_root

    @property
    def settings(self) -> GtdSettings:
        """The resolved settings for this vault."""
        return self._settings

    @property
    def scan_config(self) -> ScanConfig:
        return self._settings.scan

    @property
    def directories(self) -> dict[RecordKind, Path]:
        return dict(self._directories)

    def directory_for(self, kind: RecordKind) -> Path:
        """Directory holding records of *kind*."""
        return self._directories[kind]

    @property
    def index(self) -> RelationshipIndex:
        """Index over active (non-archived) records, built on first use."""
        return self.get_index()

    def get_index(self, *, include_archived: bool = False) -> RelationshipIndex:
        """Return the session index, building it at most once per variant."""
        index = self._indexes.get(include_archived)
        if index is None:
            logger.debug("Building index (include_archived=%s)", include_archived)
            index = RelationshipIndex.build(
                self._directories,
                config=self._settings.scan,
                include_archived=include_archived,
            )
            self._indexes[include_archived] = index
        return index

    def scan(
        self,
        kind: RecordKind,
        *,
        include_archived: bool = False,
        only_archived: bool = False,
    ) -> ScanResult:
        """Scan one kind's directory without building an index."""
        return scan_directory(
            kind,
            self._directories[kind],
            config=self._settings.scan,
            include_archived=include_archived,
            only_archived=only_archived,
        )

    def invalidate(self) -> None:
        """Drop cached indexes so the next access rescans."""
        self._indexes.clear()

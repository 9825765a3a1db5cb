"""BaseService: abstract foundation for all gtdctl services.

Every service receives a :class:`Vault` at construction time. The Vault
provides the resolved directories and the session-scoped relationship
index; services decide when a write makes that index stale.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gtdctl.services.telemetry import trace_span

if TYPE_CHECKING:
    from gtdctl.infrastructure.index import RelationshipIndex
    from gtdctl.infrastructure.vault import Vault

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class QueryService(BaseService):
            def list_tasks(self, ...) -> ServiceResult:
                index = self._index()
                ...
    """

    def __init__(self, vault: Vault) -> None:
        self._vault = vault

    def _index(self, *, include_archived: bool = False) -> RelationshipIndex:
        """The vault's session index, traced with its record counts."""
        with trace_span("index") as span:
            index = self._vault.get_index(include_archived=include_archived)
            if span is not None:
                span.annotate("tasks", len(index.tasks))
                span.annotate("projects", len(index.projects))
                span.annotate("areas", len(index.areas))
                span.annotate("skipped", len(index.scan_failures))
        return index

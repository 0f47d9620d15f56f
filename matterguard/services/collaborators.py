"""Ports for the external collaborators the policy core consumes.

The host application supplies real implementations backed by its matter,
document and ethics stores. The null implementations reproduce a system with
no metadata wired up; the in-memory ones serve tests and local development.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Protocol, runtime_checkable

import structlog

from matterguard.models.common import utcnow
from matterguard.models.conflict import ConflictType, ConflictWaiver, MatterConflictMetadata
from matterguard.models.privilege import PrivilegeMetadata

logger = structlog.get_logger(__name__)


@runtime_checkable
class MatterConflictSource(Protocol):
    """Resolves the adverse-party graph for a matter."""

    async def fetch_matter_conflict_metadata(self, matter_id: str) -> MatterConflictMetadata | None:
        """Return conflict metadata, or None when the matter cannot be resolved."""
        ...


@runtime_checkable
class PrivilegeMetadataSource(Protocol):
    """Resolves privilege metadata for a document or record."""

    async def fetch_resource_privilege_metadata(self, resource_id: str) -> PrivilegeMetadata | None:
        """Return privilege metadata, or None when none is recorded."""
        ...


@runtime_checkable
class WaiverRegistry(Protocol):
    """Looks up informed-consent conflict waivers."""

    async def find_valid_waiver(
        self,
        waiver_ids: Iterable[str],
        matter_id: str,
        conflict_type: ConflictType,
    ) -> str | None:
        """Return the ID of a valid waiver among ``waiver_ids``, or None."""
        ...


class NullMatterConflictSource:
    """Never resolves a matter (conflict screening is skipped)."""

    async def fetch_matter_conflict_metadata(self, matter_id: str) -> MatterConflictMetadata | None:
        return None


class NullPrivilegeMetadataSource:
    """Never resolves metadata (privilege falls back to role-based access)."""

    async def fetch_resource_privilege_metadata(self, resource_id: str) -> PrivilegeMetadata | None:
        return None


class NullWaiverRegistry:
    """Holds no waivers (every detected conflict stays active)."""

    async def find_valid_waiver(
        self,
        waiver_ids: Iterable[str],
        matter_id: str,
        conflict_type: ConflictType,
    ) -> str | None:
        return None


class InMemoryMatterConflictSource:
    """Dictionary-backed matter conflict source."""

    def __init__(self, matters: Mapping[str, MatterConflictMetadata] | None = None) -> None:
        self._matters = dict(matters or {})

    def add(self, metadata: MatterConflictMetadata) -> None:
        self._matters[metadata.matter_id] = metadata

    async def fetch_matter_conflict_metadata(self, matter_id: str) -> MatterConflictMetadata | None:
        return self._matters.get(matter_id)


class InMemoryPrivilegeMetadataSource:
    """Dictionary-backed privilege metadata source keyed by resource ID."""

    def __init__(self, resources: Mapping[str, PrivilegeMetadata] | None = None) -> None:
        self._resources = dict(resources or {})

    def add(self, resource_id: str, metadata: PrivilegeMetadata) -> None:
        self._resources[resource_id] = metadata

    async def fetch_resource_privilege_metadata(self, resource_id: str) -> PrivilegeMetadata | None:
        return self._resources.get(resource_id)


class InMemoryWaiverRegistry:
    """Waiver registry that verifies matter, conflict type, revocation and expiry.

    Only waivers whose IDs the principal has on file are considered.
    """

    def __init__(
        self,
        waivers: Iterable[ConflictWaiver] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._waivers = {waiver.id: waiver for waiver in waivers}
        self._clock = clock

    def add(self, waiver: ConflictWaiver) -> None:
        self._waivers[waiver.id] = waiver

    async def find_valid_waiver(
        self,
        waiver_ids: Iterable[str],
        matter_id: str,
        conflict_type: ConflictType,
    ) -> str | None:
        now = self._clock()
        for waiver_id in sorted(waiver_ids):
            waiver = self._waivers.get(waiver_id)
            if waiver is None:
                logger.debug("waiver_not_found", waiver_id=waiver_id)
                continue
            if waiver.covers(matter_id, conflict_type, now):
                return waiver.id
        return None

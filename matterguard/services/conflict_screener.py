"""Chinese Wall / conflict-of-interest screening.

Implements:
- Ethical wall enforcement between conflicting matters
- Direct adverse representation detection, with waiver lookup
- Former-client conflict detection (duty of loyalty carryover)

Checks run in a fixed priority order and the first match wins:
ethical wall, direct adverse, former client, cleared. Every record returned
here is audit-mandatory.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable
from datetime import datetime

import structlog

from matterguard.core.config import get_settings
from matterguard.models.common import utcnow
from matterguard.models.conflict import (
    ChineseWallConfig,
    ConflictCheckRecord,
    ConflictStatus,
    ConflictType,
    MatterConflictMetadata,
)
from matterguard.models.principal import Principal
from matterguard.services.collaborators import NullWaiverRegistry, WaiverRegistry

logger = structlog.get_logger(__name__)

_CHECK_ID_ALPHABET = string.ascii_lowercase + string.digits
_CHECK_ID_SUFFIX_LENGTH = 7


class ConflictScreener:
    """Evaluates ethical walls and conflicts for a principal on a matter.

    Example:
        >>> screener = ConflictScreener(waiver_registry=registry)
        >>> record = await screener.perform_conflict_check(principal, matter)
        >>> record.status
        <ConflictStatus.CLEARED: 'CLEARED'>
    """

    def __init__(
        self,
        waiver_registry: WaiverRegistry | None = None,
        clock: Callable[[], datetime] = utcnow,
        check_id_prefix: str | None = None,
    ) -> None:
        self._waivers = waiver_registry or NullWaiverRegistry()
        self._clock = clock
        self._check_id_prefix = check_id_prefix or get_settings().conflict_check_id_prefix

    async def perform_conflict_check(
        self,
        principal: Principal,
        matter: MatterConflictMetadata,
    ) -> ConflictCheckRecord:
        """Run every conflict check for ``principal`` on ``matter``.

        Args:
            principal: Request principal.
            matter: Conflict metadata for the matter being accessed.

        Returns:
            ConflictCheckRecord for the first matching check, or a CLEARED record.
        """
        now = self._clock()
        base = {
            "id": self._generate_check_id(now),
            "user_id": principal.id,
            "matter_id": matter.matter_id,
            "client_id": matter.client_id,
            "opposing_parties": list(matter.opposing_parties),
            "checked_at": now,
        }

        if not matter.conflict_checked:
            logger.warning(
                "matter_conflict_check_not_run",
                matter_id=matter.matter_id,
                last_conflict_check=matter.last_conflict_check,
            )

        if principal.chinese_wall is not None:
            wall_violation = self._check_chinese_wall(principal.chinese_wall, matter, now)
            if wall_violation:
                return ConflictCheckRecord(
                    **base,
                    conflict_detected=True,
                    conflict_type=ConflictType.IMPUTED,
                    status=ConflictStatus.SCREENED,
                    access_granted=False,
                    denial_reason=f"Chinese wall violation: {wall_violation}",
                    screen_id=principal.chinese_wall.user_id,
                )

        adverse_reason = self._check_direct_adverse(principal, matter)
        if adverse_reason:
            waiver_id = await self._waivers.find_valid_waiver(
                principal.waivers,
                matter.matter_id,
                ConflictType.DIRECT_ADVERSE,
            )

            if waiver_id:
                return ConflictCheckRecord(
                    **base,
                    conflict_detected=True,
                    conflict_type=ConflictType.DIRECT_ADVERSE,
                    status=ConflictStatus.WAIVED,
                    access_granted=True,
                    waiver_id=waiver_id,
                )

            return ConflictCheckRecord(
                **base,
                conflict_detected=True,
                conflict_type=ConflictType.DIRECT_ADVERSE,
                status=ConflictStatus.ACTIVE,
                access_granted=False,
                denial_reason=adverse_reason,
            )

        former_client_reason = self._check_former_client(principal, matter)
        if former_client_reason:
            return ConflictCheckRecord(
                **base,
                conflict_detected=True,
                conflict_type=ConflictType.FORMER_CLIENT,
                status=ConflictStatus.ACTIVE,
                access_granted=False,
                denial_reason=former_client_reason,
            )

        return ConflictCheckRecord(
            **base,
            conflict_detected=False,
            status=ConflictStatus.CLEARED,
            access_granted=True,
        )

    @staticmethod
    def _check_chinese_wall(
        wall: ChineseWallConfig,
        matter: MatterConflictMetadata,
        now: datetime,
    ) -> str | None:
        """Return which wall dimension blocks the matter, or None."""
        if not wall.is_active(now):
            return None

        if matter.matter_id in wall.walled_matters:
            return f"User is walled off from matter {matter.matter_id}"

        if matter.client_id in wall.walled_clients:
            return f"User is walled off from client {matter.client_id}"

        for party in matter.opposing_parties:
            if party in wall.walled_parties:
                return f"User is walled off from party {party}"

        return None

    @staticmethod
    def _check_direct_adverse(principal: Principal, matter: MatterConflictMetadata) -> str | None:
        """A client the principal represents is an opposing party here."""
        opposing = set(matter.opposing_parties)
        for client_id in sorted(principal.clients):
            if client_id in opposing:
                return f"User represents {client_id} who is an opposing party in this matter"
        return None

    @staticmethod
    def _check_former_client(principal: Principal, matter: MatterConflictMetadata) -> str | None:
        """A former client of the principal is now an opposing party."""
        opposing = set(matter.opposing_parties)
        for former_client_id in sorted(principal.former_clients):
            if former_client_id in opposing:
                return f"User formerly represented {former_client_id} who is now an opposing party"
        return None

    def _generate_check_id(self, now: datetime) -> str:
        suffix = "".join(secrets.choice(_CHECK_ID_ALPHABET) for _ in range(_CHECK_ID_SUFFIX_LENGTH))
        return f"{self._check_id_prefix}-{int(now.timestamp() * 1000)}-{suffix}"

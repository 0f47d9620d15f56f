"""Append-only audit sink for access decisions.

Every privilege and conflict decision that requires auditing is written here.
Writes are atomic: the hash link and the append happen under one lock, so
concurrent requests never interleave partial records or fork the chain.

The sink is write-only. Retrieval belongs to compliance reporting outside
the policy core.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import structlog

from matterguard.core.config import get_settings
from matterguard.models.audit import AuditRecord, AuditSeverity

logger = structlog.get_logger(__name__)


@runtime_checkable
class AuditSink(Protocol):
    """Append-only destination for audit records."""

    def write(self, record: AuditRecord) -> AuditRecord:
        """Append ``record`` and return the stored (hash-linked) copy."""
        ...


class ChainedAuditSink(ABC):
    """Base sink that links each record to the previous one by SHA-256."""

    def __init__(self, hash_chain: bool | None = None) -> None:
        self._hash_chain = get_settings().audit_hash_chain_enabled if hash_chain is None else hash_chain
        self._last_hash: str | None = None
        self._lock = threading.Lock()

    def write(self, record: AuditRecord) -> AuditRecord:
        with self._lock:
            if self._hash_chain:
                record = record.chained(self._last_hash)
                self._last_hash = record.hash
            self._append(record)
        return record

    @abstractmethod
    def _append(self, record: AuditRecord) -> None:
        """Persist a record that is already hash-linked. Called under the sink lock."""


class StructlogAuditSink(ChainedAuditSink):
    """Writes audit records as structured log events.

    Denials, detected conflicts, waivers and skipped checks are logged at
    warning level; clean outcomes at info level.
    """

    def __init__(self, logger_name: str | None = None, hash_chain: bool | None = None) -> None:
        super().__init__(hash_chain=hash_chain)
        self._logger = structlog.get_logger(logger_name or get_settings().audit_logger_name)

    def _append(self, record: AuditRecord) -> None:
        fields = record.log_fields()
        fields.pop("severity", None)
        # TimeStamper owns the "timestamp" key
        fields["decided_at"] = fields.pop("timestamp")
        if record.severity == AuditSeverity.WARNING:
            self._logger.warning("access_decision_audit", **fields)
        else:
            self._logger.info("access_decision_audit", **fields)


class InMemoryAuditSink(ChainedAuditSink):
    """Keeps records in process memory (tests and local development)."""

    def __init__(self, hash_chain: bool | None = None) -> None:
        super().__init__(hash_chain=hash_chain)
        self._records: list[AuditRecord] = []

    def _append(self, record: AuditRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> tuple[AuditRecord, ...]:
        """Snapshot of every record written so far, oldest first."""
        with self._lock:
            return tuple(self._records)


def verify_chain(records: tuple[AuditRecord, ...] | list[AuditRecord]) -> bool:
    """Check that every record's hash matches its content and previous link."""
    previous: str | None = None
    for record in records:
        if record.previous_hash != previous:
            logger.warning("audit_chain_broken", check_id=record.check_id, reason="previous_hash_mismatch")
            return False
        if record.hash != record.compute_hash(previous):
            logger.warning("audit_chain_broken", check_id=record.check_id, reason="content_hash_mismatch")
            return False
        previous = record.hash
    return True

"""Tests for the append-only audit sinks and hash chain."""

import threading

import pytest
from structlog.testing import capture_logs

from matterguard.models.audit import AuditRecord, AuditSeverity
from matterguard.models.conflict import ConflictType
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.principal import Principal
from matterguard.services.audit_sink import (
    AuditSink,
    ChainedAuditSink,
    InMemoryAuditSink,
    StructlogAuditSink,
    verify_chain,
)


def _record(principal: Principal, kind: DecisionKind = DecisionKind.ALLOWED, **kwargs: object) -> AuditRecord:
    decision = AccessDecision(check=DecisionCheck.PRIVILEGE, kind=kind, requires_audit=True, **kwargs)
    return AuditRecord.from_decision(principal, decision)


class TestSeverity:
    """Severity is derived from the decision."""

    def test_clean_allow_is_info(self, attorney: Principal) -> None:
        assert _record(attorney).severity == AuditSeverity.INFO

    @pytest.mark.parametrize(
        "kind",
        [DecisionKind.DENIED, DecisionKind.SCREENED, DecisionKind.ALLOWED_WITH_WAIVER],
    )
    def test_non_clean_outcomes_are_warning(self, attorney: Principal, kind: DecisionKind) -> None:
        assert _record(attorney, kind).severity == AuditSeverity.WARNING

    def test_detected_conflict_is_warning(self, attorney: Principal) -> None:
        record = _record(attorney, conflict_type=ConflictType.DIRECT_ADVERSE)

        assert record.severity == AuditSeverity.WARNING

    def test_principal_fields_copied(self, attorney: Principal) -> None:
        record = _record(attorney)

        assert record.principal_id == "attorney-1"
        assert record.organization_id == "org-1"
        assert record.session_id == "session-1"


class TestInMemoryAuditSink:
    """In-memory sink and hash chain."""

    def test_satisfies_protocol(self, audit_sink: InMemoryAuditSink) -> None:
        assert isinstance(audit_sink, AuditSink)

    def test_chained_base_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            ChainedAuditSink(hash_chain=True)  # type: ignore[abstract]

    def test_records_are_chained(self, audit_sink: InMemoryAuditSink, attorney: Principal) -> None:
        for kind in (DecisionKind.ALLOWED, DecisionKind.DENIED, DecisionKind.ALLOWED):
            audit_sink.write(_record(attorney, kind))

        records = audit_sink.records
        assert len(records) == 3
        assert records[0].previous_hash is None
        assert records[1].previous_hash == records[0].hash
        assert records[2].previous_hash == records[1].hash
        assert verify_chain(records) is True

    def test_tampering_breaks_chain(self, audit_sink: InMemoryAuditSink, attorney: Principal) -> None:
        audit_sink.write(_record(attorney, DecisionKind.DENIED, reason="Attorney status required"))
        audit_sink.write(_record(attorney))
        records = list(audit_sink.records)

        records[0] = records[0].model_copy(update={"reason": None})

        assert verify_chain(records) is False

    def test_removed_record_breaks_chain(self, audit_sink: InMemoryAuditSink, attorney: Principal) -> None:
        for _ in range(3):
            audit_sink.write(_record(attorney))

        records = audit_sink.records

        assert verify_chain([records[0], records[2]]) is False

    def test_snapshot_is_a_copy(self, audit_sink: InMemoryAuditSink, attorney: Principal) -> None:
        snapshot = audit_sink.records
        audit_sink.write(_record(attorney))

        assert snapshot == ()
        assert len(audit_sink.records) == 1

    def test_chain_disabled(self, attorney: Principal) -> None:
        sink = InMemoryAuditSink(hash_chain=False)

        stored = sink.write(_record(attorney))

        assert stored.hash is None
        assert stored.previous_hash is None

    def test_concurrent_writes_keep_chain_intact(
        self, audit_sink: InMemoryAuditSink, attorney: Principal
    ) -> None:
        def writer() -> None:
            for _ in range(25):
                audit_sink.write(_record(attorney))

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(audit_sink.records) == 200
        assert verify_chain(audit_sink.records) is True


class TestStructlogAuditSink:
    """Structured-log sink."""

    def test_warning_level_for_denial(self, attorney: Principal) -> None:
        sink = StructlogAuditSink(hash_chain=True)

        with capture_logs() as logs:
            sink.write(_record(attorney, DecisionKind.DENIED, reason="Insufficient role for privileged access"))

        assert len(logs) == 1
        entry = logs[0]
        assert entry["event"] == "access_decision_audit"
        assert entry["log_level"] == "warning"
        assert entry["principal_id"] == "attorney-1"
        assert entry["decision"] == "DENIED"
        assert entry["reason"] == "Insufficient role for privileged access"
        assert "decided_at" in entry
        assert "timestamp" not in entry
        assert len(entry["hash"]) == 64

    def test_info_level_for_clean_allow(self, attorney: Principal) -> None:
        sink = StructlogAuditSink()

        with capture_logs() as logs:
            sink.write(_record(attorney))

        assert logs[0]["log_level"] == "info"

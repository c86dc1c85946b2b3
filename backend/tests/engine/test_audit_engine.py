"""
测试 resortpms.engine.audit 审计日志引擎
"""
from resortpms.engine.audit import AuditEngine, AuditSeverity


def test_log_entry():
    engine = AuditEngine()
    entry = engine.log(
        operator_id="staff-1",
        action="reservation.checked_in",
        entity_type="Reservation",
        entity_id="r1",
    )
    assert entry.severity == AuditSeverity.INFO
    assert entry.extra == {}

    data = entry.to_dict()
    assert data["operator_id"] == "staff-1"
    assert data["severity"] == "info"
    assert isinstance(data["timestamp"], str)


def test_queries():
    engine = AuditEngine()
    engine.log(action="reservation.created", entity_type="Reservation", entity_id="r1")
    engine.log(action="reservation.confirmed", entity_type="Reservation", entity_id="r1")
    engine.log(action="reservation.created", entity_type="Reservation", entity_id="r2")

    assert len(engine.get_by_entity("Reservation", "r1")) == 2
    assert len(engine.get_by_action("reservation.created")) == 2
    assert len(engine.get_all(limit=2)) == 2
    assert engine.get_all(offset=2)[0].entity_id == "r2"


def test_statistics():
    engine = AuditEngine()
    engine.log(action="reservation.created")
    engine.log(action="reservation.created")
    engine.log(action="reservation.cancelled")

    stats = engine.get_statistics()
    assert stats["total_logs"] == 3
    assert stats["by_action"] == {"reservation.created": 2, "reservation.cancelled": 1}


def test_max_logs_keeps_newest():
    engine = AuditEngine(max_logs=3)
    for i in range(5):
        engine.log(action=f"a{i}")
    assert [log.action for log in engine.get_all()] == ["a2", "a3", "a4"]


def test_clear():
    engine = AuditEngine()
    engine.log(action="x")
    engine.clear()
    assert engine.get_statistics()["total_logs"] == 0

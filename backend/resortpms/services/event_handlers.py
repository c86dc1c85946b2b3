"""
事件处理器 - 将预订领域事件写入审计日志
"""
import logging

from resortpms.engine.audit import AuditEngine, audit_engine
from resortpms.engine.event_bus import Event, EventBus, event_bus

logger = logging.getLogger(__name__)

RESERVATION_EVENTS = [
    "reservation.created",
    "reservation.updated",
    "reservation.deleted",
    "reservation.confirmed",
    "reservation.checked_in",
    "reservation.checked_out",
    "reservation.cancelled",
    "reservation.no_show",
    "reservation.deposit_recorded",
    "reservation.deposit_refunded",
]


def make_audit_recorder(engine: AuditEngine):
    """创建把事件写入指定审计引擎的处理器"""

    def record_reservation_audit(event: Event) -> None:
        data = dict(event.data)
        engine.log(
            operator_id=data.pop("operator_id", None),
            action=event.event_type,
            entity_type="Reservation",
            entity_id=data.pop("reservation_id", None),
            extra=data,
        )

    return record_reservation_audit


_audit_recorder = make_audit_recorder(audit_engine)


def register_event_handlers(bus: EventBus = None, recorder=None) -> None:
    """注册所有预订事件处理器（重复注册不会产生重复订阅）"""
    bus = bus or event_bus
    recorder = recorder or _audit_recorder
    for event_type in RESERVATION_EVENTS:
        bus.subscribe(event_type, recorder)
    logger.info(f"Registered audit handler for {len(RESERVATION_EVENTS)} reservation events")


def unregister_event_handlers(bus: EventBus = None, recorder=None) -> None:
    bus = bus or event_bus
    recorder = recorder or _audit_recorder
    for event_type in RESERVATION_EVENTS:
        bus.unsubscribe(event_type, recorder)

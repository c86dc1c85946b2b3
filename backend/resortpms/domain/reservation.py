"""
Reservation 领域规则 - 状态机转换表与权限谓词

pending -> confirmed -> checked_in -> checked_out
pending|confirmed -> cancelled, confirmed -> no_show
"""
from datetime import date
from typing import Any, Dict, Optional

from resortpms.engine.state_machine import StateMachine, StateMachineConfig, StateTransition
from resortpms.models.ontology import Reservation, ReservationStatus
from resortpms.services.reservation_utils import parse_instant, utcnow

PENDING = ReservationStatus.PENDING.value
CONFIRMED = ReservationStatus.CONFIRMED.value
CHECKED_IN = ReservationStatus.CHECKED_IN.value
CHECKED_OUT = ReservationStatus.CHECKED_OUT.value
CANCELLED = ReservationStatus.CANCELLED.value
NO_SHOW = ReservationStatus.NO_SHOW.value

MODIFIABLE_STATES = (PENDING, CONFIRMED)


def _check_in_date_reached(context: Dict[str, Any]) -> bool:
    """入住日期（仅比较日期部分）不晚于今天"""
    check_in = parse_instant(context.get("check_in"))
    today = context.get("today")
    if check_in is None or today is None:
        return False
    return check_in.date() <= today


# ============== 状态机配置 ==============

RESERVATION_STATE_MACHINE_CONFIG = StateMachineConfig(
    name="Reservation",
    states=[PENDING, CONFIRMED, CHECKED_IN, CHECKED_OUT, CANCELLED, NO_SHOW],
    transitions=[
        StateTransition(from_state=PENDING, to_state=CONFIRMED, trigger="confirm"),
        StateTransition(
            from_state=CONFIRMED,
            to_state=CHECKED_IN,
            trigger="check_in",
            condition=_check_in_date_reached,
        ),
        StateTransition(from_state=CHECKED_IN, to_state=CHECKED_OUT, trigger="check_out"),
        StateTransition(from_state=PENDING, to_state=CANCELLED, trigger="cancel"),
        StateTransition(from_state=CONFIRMED, to_state=CANCELLED, trigger="cancel"),
        StateTransition(from_state=CONFIRMED, to_state=NO_SHOW, trigger="mark_no_show"),
    ],
    initial_state=PENDING,
    final_states=[CHECKED_OUT, CANCELLED, NO_SHOW],
)

# trigger -> 目标状态
TRIGGER_TARGETS = {
    "confirm": CONFIRMED,
    "check_in": CHECKED_IN,
    "check_out": CHECKED_OUT,
    "cancel": CANCELLED,
    "mark_no_show": NO_SHOW,
}

# 守卫失败时的错误消息，说明所需的前置状态
TRANSITION_ERRORS = {
    "confirm": "Can only confirm pending reservations",
    "check_in": "Cannot check in: reservation must be confirmed and check-in date must be today or earlier",
    "check_out": "Cannot check out: guest must be checked in first",
    "cancel": "Cannot cancel reservation in current status",
    "mark_no_show": "Can only mark confirmed reservations as no-show",
}


def _status_value(reservation: Reservation) -> str:
    status = reservation.status
    return status.value if isinstance(status, ReservationStatus) else str(status)


def create_reservation_state_machine(reservation: Reservation) -> StateMachine:
    """以预订当前状态为起点创建状态机"""
    return StateMachine(RESERVATION_STATE_MACHINE_CONFIG, initial_state=_status_value(reservation))


def transition_context(reservation: Reservation, today: Optional[date] = None) -> Dict[str, Any]:
    return {
        "check_in": reservation.check_in,
        "today": today if today is not None else utcnow().date(),
    }


def can_fire(reservation: Reservation, trigger: str, today: Optional[date] = None) -> bool:
    machine = create_reservation_state_machine(reservation)
    return machine.can_transition_to(TRIGGER_TARGETS[trigger], trigger, transition_context(reservation, today))


# ============== 权限谓词 ==============

def can_cancel(reservation: Reservation) -> bool:
    return can_fire(reservation, "cancel")


def can_check_in(reservation: Reservation, today: Optional[date] = None) -> bool:
    """已确认，且今天不早于入住日期"""
    return can_fire(reservation, "check_in", today)


def can_check_out(reservation: Reservation) -> bool:
    return can_fire(reservation, "check_out")


def can_modify(reservation: Reservation) -> bool:
    return _status_value(reservation) in MODIFIABLE_STATES

from resortpms.domain.reservation import (
    RESERVATION_STATE_MACHINE_CONFIG,
    create_reservation_state_machine,
    can_cancel,
    can_check_in,
    can_check_out,
    can_modify,
)

__all__ = [
    "RESERVATION_STATE_MACHINE_CONFIG",
    "create_reservation_state_machine",
    "can_cancel",
    "can_check_in",
    "can_check_out",
    "can_modify",
]

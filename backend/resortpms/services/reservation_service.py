"""
预订服务 - 预订生命周期管理
负责创建/修改校验、状态机转换、押金记账，并在任何改变区间的操作前咨询可用性索引
"""
from datetime import datetime, date, time
from decimal import Decimal
from random import Random
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from resortpms.config import settings
from resortpms.domain.reservation import (
    MODIFIABLE_STATES, TRANSITION_ERRORS, TRIGGER_TARGETS, create_reservation_state_machine,
    transition_context, can_cancel, can_check_in, can_check_out, can_modify
)
from resortpms.engine.event_bus import Event, EventBus, event_bus
from resortpms.exceptions import (
    InvalidDateRange, InvalidGuestCount, ResourceUnavailable, NotFound,
    InvalidStatusForModification, InvalidTransition, AlreadyPaid,
    NoDepositRequired, NothingToRefund, ConfirmationCodeExhausted
)
from resortpms.models.ontology import Reservation, ReservationStatus, ReservationType
from resortpms.models.schemas import ReservationCreate, ReservationUpdate
from resortpms.services.availability_service import (
    AvailabilityService, ReservationConflict, resolve_interval
)
from resortpms.services.reservation_repository import ReservationRepository
from resortpms.services.reservation_utils import (
    DAY, Instant, generate_confirmation_code, calculate_duration,
    is_valid_date_range, parse_instant, utcnow
)
from resortpms.services.resource_lock import ResourceLockRegistry, resource_locks

logger = logging.getLogger(__name__)

# 更新时允许显式置空的字段
NULLABLE_UPDATE_FIELDS = {"guest_phone", "special_requests", "notes"}

# 不再出现在"即将到来"列表中的状态
INACTIVE_STATUSES = {
    ReservationStatus.CANCELLED,
    ReservationStatus.CHECKED_OUT,
    ReservationStatus.NO_SHOW,
}

MODIFIABLE_STATUSES = [ReservationStatus(s) for s in MODIFIABLE_STATES]


class ReservationService:
    """
    预订服务

    Args:
        db: 数据库会话
        clock: 返回当前 naive UTC 时间，默认 utcnow
        rng: 确认码随机源，默认系统安全随机数
        locks: 资源锁注册表，默认全局 resource_locks
        bus: 事件总线，默认全局 event_bus
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[Random] = None,
        locks: Optional[ResourceLockRegistry] = None,
        bus: Optional[EventBus] = None,
        max_code_attempts: Optional[int] = None,
    ):
        self.db = db
        self.repository = ReservationRepository(db)
        self.availability = AvailabilityService(self.repository)
        self.clock = clock or utcnow
        self.rng = rng
        self.locks = locks or resource_locks
        self.bus = bus or event_bus
        self.max_code_attempts = max_code_attempts or settings.CONFIRMATION_CODE_MAX_ATTEMPTS

    # ============== 内部工具 ==============

    def _today(self) -> date:
        return self.clock().date()

    def _get_or_raise(self, reservation_id: str, for_update: bool = False) -> Reservation:
        reservation = self.repository.get_by_id(reservation_id, for_update=for_update)
        if reservation is None:
            raise NotFound()
        return reservation

    def _reject(self, error: Exception) -> None:
        """回滚当前事务（释放行锁）后抛出"""
        self.db.rollback()
        raise error

    def _generate_unique_code(self) -> str:
        """生成确认码，与已存在的确认码冲突时重试"""
        for attempt in range(1, self.max_code_attempts + 1):
            code = generate_confirmation_code(self.rng)
            if self.repository.get_by_confirmation_code(code) is None:
                return code
            logger.warning(f"Confirmation code collision ({code}) on attempt {attempt}")
        raise ConfirmationCodeExhausted()

    def _emit(self, event_type: str, reservation_id: str, operator_id: Optional[str] = None, **data: Any) -> None:
        """记录日志并发布领域事件；失败只记录，不影响主操作结果"""
        try:
            logger.info(f"{event_type}: reservation={reservation_id} operator={operator_id} {data}")
            self.bus.publish(Event(
                event_type=event_type,
                timestamp=self.clock(),
                data={"reservation_id": reservation_id, "operator_id": operator_id, **data},
                source="reservation_service",
            ))
        except Exception as e:
            logger.warning(f"Failed to emit {event_type} for reservation {reservation_id}: {e}")

    def _guarded_update(
        self,
        reservation_id: str,
        fields: Dict[str, Any],
        error: Exception,
        **expected: Any
    ) -> Reservation:
        """条件写入；读取后守卫已被其他请求改变时回滚并抛出 error（行已删除时为 NotFound）"""
        updated = self.repository.update_where(reservation_id, fields, **expected)
        if updated is None:
            if self.repository.get_by_id(reservation_id) is None:
                self._reject(NotFound())
            self._reject(error)
        return updated

    @staticmethod
    def _validate_guest_count(guest_count: Optional[int]) -> None:
        if guest_count is not None and guest_count < 1:
            raise InvalidGuestCount()

    # ============== 创建 / 修改 / 删除 ==============

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        """
        创建预订

        校验顺序：日期区间 -> 人数 -> 资源冲突。冲突检查与写入在同一资源锁内完成。

        Raises:
            InvalidDateRange, InvalidGuestCount, ResourceUnavailable
        """
        check_in, check_out = resolve_interval(data.check_in, data.check_out)
        self._validate_guest_count(data.guest_count)

        with self.locks.hold(self.db, data.resource_id):
            if self.repository.find_conflicts(data.resource_id, check_in, check_out):
                raise ResourceUnavailable()

            confirmation_code = self._generate_unique_code()
            fields = data.model_dump(exclude={"check_in", "check_out", "deposit_amount"})
            fields.update(
                check_in=check_in,
                check_out=check_out,
                status=ReservationStatus.PENDING,
                deposit_amount=data.deposit_amount or Decimal("0"),
                deposit_paid=False,
                confirmation_code=confirmation_code,
            )
            reservation = self.repository.create(fields)

        self._emit(
            "reservation.created", reservation.id, data.booked_by,
            confirmation_code=confirmation_code, type=data.type.value,
        )
        return reservation

    def update_reservation(self, reservation_id: str, data: ReservationUpdate) -> Reservation:
        """
        更新预订（部分更新）

        仅 pending / confirmed 可修改；修改日期时重新校验区间并排除自身检查冲突。
        """
        reservation = self._get_or_raise(reservation_id)
        if not can_modify(reservation):
            raise InvalidStatusForModification()

        update_data = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_UPDATE_FIELDS
        }

        if "check_in" in update_data or "check_out" in update_data:
            check_in, check_out = resolve_interval(
                update_data.get("check_in", reservation.check_in),
                update_data.get("check_out", reservation.check_out),
            )
            update_data["check_in"] = check_in
            update_data["check_out"] = check_out

            with self.locks.hold(self.db, reservation.resource_id):
                conflicts = self.repository.find_conflicts(
                    reservation.resource_id, check_in, check_out, exclude_id=reservation_id
                )
                if conflicts:
                    raise ResourceUnavailable("Resource is not available for the updated dates")
                self._validate_guest_count(update_data.get("guest_count"))
                updated = self._guarded_update(
                    reservation_id, update_data, InvalidStatusForModification(), statuses=MODIFIABLE_STATUSES
                )
        else:
            self._validate_guest_count(update_data.get("guest_count"))
            updated = self._guarded_update(
                reservation_id, update_data, InvalidStatusForModification(), statuses=MODIFIABLE_STATUSES
            )

        self._emit("reservation.updated", reservation_id, fields=sorted(update_data))
        return updated

    def delete_reservation(self, reservation_id: str) -> None:
        """删除预订 - 管理员操作，不受状态限制"""
        self._get_or_raise(reservation_id)
        self.repository.delete(reservation_id)
        self._emit("reservation.deleted", reservation_id)

    # ============== 状态转换 ==============

    def _transition(
        self,
        reservation_id: str,
        trigger: str,
        operator_id: Optional[str] = None,
        **effects: Any
    ) -> Reservation:
        """通过状态机执行转换；守卫失败时抛出带前置条件说明的 InvalidTransition"""
        reservation = self._get_or_raise(reservation_id, for_update=True)
        machine = create_reservation_state_machine(reservation)
        target = TRIGGER_TARGETS[trigger]

        if not machine.transition_to(target, trigger, transition_context(reservation, self._today())):
            self._reject(InvalidTransition(TRANSITION_ERRORS[trigger]))

        return self._guarded_update(
            reservation_id,
            {"status": ReservationStatus(machine.current_state), **effects},
            InvalidTransition(TRANSITION_ERRORS[trigger]),
            statuses=[reservation.status],
        )

    def confirm_reservation(self, reservation_id: str) -> Reservation:
        updated = self._transition(reservation_id, "confirm")
        self._emit("reservation.confirmed", reservation_id)
        return updated

    def check_in(self, reservation_id: str, staff_id: str) -> Reservation:
        """办理入住：需已确认且入住日期不晚于今天"""
        updated = self._transition(
            reservation_id, "check_in", staff_id,
            checked_in_at=self.clock(), checked_in_by=staff_id,
        )
        self._emit("reservation.checked_in", reservation_id, staff_id)
        return updated

    def check_out(self, reservation_id: str, staff_id: str) -> Reservation:
        updated = self._transition(
            reservation_id, "check_out", staff_id,
            checked_out_at=self.clock(), checked_out_by=staff_id,
        )
        self._emit("reservation.checked_out", reservation_id, staff_id)
        return updated

    def cancel_reservation(self, reservation_id: str, reason: str, cancelled_by: str) -> Reservation:
        updated = self._transition(
            reservation_id, "cancel", cancelled_by,
            cancelled_at=self.clock(), cancelled_by=cancelled_by, cancellation_reason=reason,
        )
        self._emit("reservation.cancelled", reservation_id, cancelled_by, reason=reason)
        return updated

    def mark_no_show(self, reservation_id: str) -> Reservation:
        updated = self._transition(reservation_id, "mark_no_show")
        self._emit("reservation.no_show", reservation_id)
        return updated

    # ============== 押金 ==============

    def record_deposit(self, reservation_id: str) -> Reservation:
        """记录押金已收（与预订状态无关）"""
        reservation = self._get_or_raise(reservation_id, for_update=True)
        if reservation.deposit_paid:
            self._reject(AlreadyPaid())
        if (reservation.deposit_amount or 0) <= 0:
            self._reject(NoDepositRequired())

        updated = self._guarded_update(reservation_id, {"deposit_paid": True}, AlreadyPaid(), deposit_paid=False)
        self._emit("reservation.deposit_recorded", reservation_id, amount=str(updated.deposit_amount))
        return updated

    def refund_deposit(self, reservation_id: str) -> Reservation:
        """退还押金（已取消的预订同样可以退）"""
        reservation = self._get_or_raise(reservation_id, for_update=True)
        if not reservation.deposit_paid:
            self._reject(NothingToRefund())

        updated = self._guarded_update(reservation_id, {"deposit_paid": False}, NothingToRefund(), deposit_paid=True)
        self._emit("reservation.deposit_refunded", reservation_id, amount=str(updated.deposit_amount))
        return updated

    # ============== 查询 ==============

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self.repository.get_by_id(reservation_id)

    def get_reservation_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        return self.repository.get_by_confirmation_code(code)

    def get_reservations(self) -> List[Reservation]:
        return self.repository.get_all()

    def get_reservations_by_guest(self, guest_id: str) -> List[Reservation]:
        return self.repository.get_by_guest_id(guest_id)

    def get_reservations_by_resource(self, resource_id: str) -> List[Reservation]:
        return self.repository.get_by_resource_id(resource_id)

    def get_reservations_by_status(self, status: ReservationStatus) -> List[Reservation]:
        return self.repository.get_by_status(status)

    def get_reservations_by_type(self, reservation_type: ReservationType) -> List[Reservation]:
        return self.repository.get_by_type(reservation_type)

    def get_reservations_for_date_range(self, start: Instant, end: Instant) -> List[Reservation]:
        """入住时间落在 [start, end) 内的预订"""
        start_at = parse_instant(start)
        end_at = parse_instant(end)
        if start_at is None or end_at is None:
            raise InvalidDateRange(f"Cannot parse date range {start!r} - {end!r}")
        return self.repository.get_by_date_range(start_at, end_at)

    def get_upcoming_reservations(self, guest_id: str) -> List[Reservation]:
        """客人尚未开始且仍有效的预订，按入住时间升序"""
        now = self.clock()
        upcoming = [
            r for r in self.repository.get_by_guest_id(guest_id)
            if r.check_in >= now and r.status not in INACTIVE_STATUSES
        ]
        return sorted(upcoming, key=lambda r: r.check_in)

    def get_today_check_ins(self) -> List[Reservation]:
        """今日预抵：入住时间在今天内且已确认"""
        start_of_day = datetime.combine(self._today(), time.min)
        reservations = self.repository.get_by_date_range(start_of_day, start_of_day + DAY)
        return [r for r in reservations if r.status == ReservationStatus.CONFIRMED]

    def get_today_check_outs(self) -> List[Reservation]:
        """今日预离：在住且离店日期为今天"""
        today = self._today()
        return [
            r for r in self.repository.get_by_status(ReservationStatus.CHECKED_IN)
            if r.check_out.date() == today
        ]

    def get_pending_reservations(self) -> List[Reservation]:
        return self.repository.get_by_status(ReservationStatus.PENDING)

    # ============== 可用性 ==============

    def check_availability(self, resource_id: str, check_in: Instant, check_out: Instant) -> bool:
        return self.availability.is_available(resource_id, check_in, check_out)

    def find_conflicts(
        self,
        resource_id: str,
        check_in: Instant,
        check_out: Instant,
        exclude_id: Optional[str] = None
    ) -> List[ReservationConflict]:
        return self.availability.find_conflicts(resource_id, check_in, check_out, exclude_id)

    # ============== 工具与谓词 ==============

    def generate_confirmation_code(self) -> str:
        return generate_confirmation_code(self.rng)

    @staticmethod
    def calculate_duration(check_in: Instant, check_out: Instant) -> int:
        return calculate_duration(check_in, check_out)

    @staticmethod
    def is_valid_date_range(check_in: Instant, check_out: Instant) -> bool:
        return is_valid_date_range(check_in, check_out)

    def can_cancel(self, reservation: Reservation) -> bool:
        return can_cancel(reservation)

    def can_check_in(self, reservation: Reservation) -> bool:
        return can_check_in(reservation, self._today())

    def can_check_out(self, reservation: Reservation) -> bool:
        return can_check_out(reservation)

    def can_modify(self, reservation: Reservation) -> bool:
        return can_modify(reservation)


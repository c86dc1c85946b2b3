"""
预订持久化层 - SQLAlchemy 实现

服务层只通过这里访问 reservations 表；数据库异常原样向上传播。
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from resortpms.models.ontology import Reservation, ReservationStatus, ReservationType
from resortpms.services.reservation_utils import utcnow


class ReservationRepository:
    """预订仓储"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, fields: Dict[str, Any]) -> Reservation:
        """插入预订并提交"""
        reservation = Reservation(**fields)
        self.db.add(reservation)
        self.db.commit()
        self.db.refresh(reservation)
        return reservation

    def get_by_id(self, reservation_id: str, for_update: bool = False) -> Optional[Reservation]:
        """按 ID 获取；for_update=True 时在支持的数据库上加行锁"""
        query = self.db.query(Reservation).filter(Reservation.id == reservation_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.confirmation_code == code
        ).first()

    def get_all(self) -> List[Reservation]:
        return self.db.query(Reservation).order_by(Reservation.check_in).all()

    def get_by_guest_id(self, guest_id: str) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.guest_id == guest_id
        ).order_by(Reservation.check_in).all()

    def get_by_resource_id(self, resource_id: str) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.resource_id == resource_id
        ).order_by(Reservation.check_in).all()

    def get_by_status(self, status: ReservationStatus) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.status == status
        ).order_by(Reservation.check_in).all()

    def get_by_type(self, reservation_type: ReservationType) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.type == reservation_type
        ).order_by(Reservation.check_in).all()

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Reservation]:
        """入住时间落在 [start, end) 内的预订"""
        return self.db.query(Reservation).filter(
            Reservation.check_in >= start,
            Reservation.check_in < end
        ).order_by(Reservation.check_in).all()

    def update(self, reservation_id: str, fields: Dict[str, Any]) -> Reservation:
        """部分更新：只修改传入的字段"""
        reservation = self.get_by_id(reservation_id)
        if reservation is None:
            raise LookupError(f"Reservation {reservation_id} does not exist")

        for key, value in fields.items():
            setattr(reservation, key, value)
        reservation.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(reservation)
        return reservation

    def update_where(
        self,
        reservation_id: str,
        fields: Dict[str, Any],
        statuses: Optional[Iterable[ReservationStatus]] = None,
        deposit_paid: Optional[bool] = None
    ) -> Optional[Reservation]:
        """
        条件更新：UPDATE ... WHERE id = :id AND status IN (...) AND deposit_paid = ...

        守卫条件与写入在同一条语句中完成，读取之后被其他会话改变的行不会被覆盖。
        没有行匹配时返回 None。
        """
        query = self.db.query(Reservation).filter(Reservation.id == reservation_id)
        if statuses is not None:
            query = query.filter(Reservation.status.in_(list(statuses)))
        if deposit_paid is not None:
            query = query.filter(Reservation.deposit_paid == deposit_paid)

        matched = query.update(dict(fields, updated_at=utcnow()), synchronize_session=False)
        self.db.commit()
        if not matched:
            return None
        # 提交后会话内对象已过期，这里重新加载
        return self.get_by_id(reservation_id)

    def delete(self, reservation_id: str) -> None:
        reservation = self.get_by_id(reservation_id)
        if reservation is not None:
            self.db.delete(reservation)
            self.db.commit()

    def find_conflicts(
        self,
        resource_id: str,
        check_in: datetime,
        check_out: datetime,
        exclude_id: Optional[str] = None
    ) -> List[Reservation]:
        """
        查找与 [check_in, check_out) 重叠的未取消预订

        半开区间：existing.check_in < check_out AND existing.check_out > check_in，
        首尾相接不算冲突。
        """
        query = self.db.query(Reservation).filter(
            Reservation.resource_id == resource_id,
            Reservation.status != ReservationStatus.CANCELLED,
            Reservation.check_in < check_out,
            Reservation.check_out > check_in
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        return query.order_by(Reservation.check_in).all()

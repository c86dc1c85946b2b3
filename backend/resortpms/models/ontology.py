"""
本体对象定义
预订 (Reservation) 是引擎唯一持有的实体；客人、资源、员工均以外部不透明 ID 引用
"""
import uuid
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Enum as SQLEnum, Boolean, Numeric
)
from resortpms.database import Base
from resortpms.services.reservation_utils import utcnow


# ============== 枚举定义 ==============

class ReservationType(str, Enum):
    """预订类型 - 仅作描述，不影响校验与状态机"""
    ROOM = "room"              # 客房
    RESTAURANT = "restaurant"  # 餐厅桌位
    SPA = "spa"                # 水疗时段
    ACTIVITY = "activity"      # 活动
    EVENT = "event"            # 会务/活动场地
    POOL = "pool"              # 泳池场次
    CABANA = "cabana"          # 凉亭


class ReservationStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "pending"          # 待确认
    CONFIRMED = "confirmed"      # 已确认
    CHECKED_IN = "checked_in"    # 已入住
    CHECKED_OUT = "checked_out"  # 已退房
    CANCELLED = "cancelled"      # 已取消
    NO_SHOW = "no_show"          # 未到店


def _generate_id() -> str:
    return str(uuid.uuid4())


# ============== 本体对象定义 ==============

class Reservation(Base):
    """
    预订对象 - 预订生命周期的聚合根
    时间字段一律存储为 naive UTC
    """
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=_generate_id)
    confirmation_code = Column(String(8), unique=True, nullable=False, index=True)  # 确认码
    type = Column(SQLEnum(ReservationType), nullable=False)

    # 资源绑定（创建后不可修改）
    resource_id = Column(String(64), nullable=False, index=True)
    resource_name = Column(String(200), nullable=False)

    # 客人
    guest_id = Column(String(64), nullable=False, index=True)
    guest_name = Column(String(100), nullable=False)
    guest_email = Column(String(200), nullable=False)
    guest_phone = Column(String(30))

    # 区间 [check_in, check_out)
    check_in = Column(DateTime, nullable=False, index=True)
    check_out = Column(DateTime, nullable=False)
    guest_count = Column(Integer, nullable=False, default=1)

    # 金额
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    deposit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    deposit_paid = Column(Boolean, nullable=False, default=False)

    special_requests = Column(Text)                      # 特殊要求
    notes = Column(Text)                                 # 备注

    status = Column(SQLEnum(ReservationStatus), nullable=False, default=ReservationStatus.PENDING)
    booked_by = Column(String(64), nullable=False)       # 创建人

    # 审计字段
    checked_in_at = Column(DateTime)
    checked_in_by = Column(String(64))
    checked_out_at = Column(DateTime)
    checked_out_by = Column(String(64))
    cancelled_at = Column(DateTime)
    cancelled_by = Column(String(64))
    cancellation_reason = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, code={self.confirmation_code}, status={self.status})>"

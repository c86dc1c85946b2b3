"""
Pydantic 模式定义
用于服务入参与 API 请求/响应验证

入住/离店时间接受 datetime 或 ISO-8601 字符串，由服务层统一解析与校验，
以便非法区间以 InvalidDateRange 的形式返回。
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Union, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from resortpms.models.ontology import ReservationStatus, ReservationType

InstantInput = Union[datetime, str]


# ============== 预订 Schemas ==============

class ReservationCreate(BaseModel):
    type: ReservationType
    guest_id: str
    guest_name: str = Field(..., max_length=100)
    guest_email: str = Field(..., max_length=200)
    guest_phone: Optional[str] = None
    resource_id: str = Field(..., max_length=64)
    resource_name: str = Field(..., max_length=200)
    check_in: InstantInput
    check_out: InstantInput
    guest_count: int = 1
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal = Field(default=0, ge=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)
    booked_by: str


class ReservationUpdate(BaseModel):
    """部分更新：未提供的字段保持不变；资源绑定不可修改"""
    guest_name: Optional[str] = Field(None, max_length=100)
    guest_email: Optional[str] = Field(None, max_length=200)
    guest_phone: Optional[str] = None
    check_in: Optional[InstantInput] = None
    check_out: Optional[InstantInput] = None
    guest_count: Optional[int] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)


class ReservationCancel(BaseModel):
    reason: str
    cancelled_by: str


class StaffAction(BaseModel):
    """入住/退房操作人"""
    staff_id: str


class ReservationResponse(BaseModel):
    id: str
    confirmation_code: str
    type: ReservationType
    resource_id: str
    resource_name: str
    guest_id: str
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    check_in: datetime
    check_out: datetime
    guest_count: int
    total_amount: Decimal
    deposit_amount: Decimal
    deposit_paid: bool
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    status: ReservationStatus
    booked_by: str
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    checked_out_at: Optional[datetime] = None
    checked_out_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ============== 可用性 Schemas ==============

class ConflictResponse(BaseModel):
    reservation_id: str
    resource_id: str
    check_in: datetime
    check_out: datetime
    guest_name: str
    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    resource_id: str
    available: bool
    conflicts: List[ConflictResponse] = []


# ============== 审计日志 Schemas ==============

class AuditLogResponse(BaseModel):
    log_id: str
    timestamp: datetime
    operator_id: Optional[str] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    severity: str
    extra: Dict[str, Any] = {}

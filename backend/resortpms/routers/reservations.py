"""
预订管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.exceptions import ReservationError
from resortpms.models.ontology import ReservationStatus, ReservationType
from resortpms.models.schemas import (
    ReservationCreate, ReservationUpdate, ReservationCancel, StaffAction,
    ReservationResponse, AvailabilityResponse, ConflictResponse
)
from resortpms.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["预订管理"])


def _http_error(e: ReservationError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", response_model=List[ReservationResponse])
def list_reservations(
    status: Optional[ReservationStatus] = None,
    type: Optional[ReservationType] = None,
    guest_id: Optional[str] = None,
    resource_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """获取预订列表（可按状态/类型/客人/资源筛选）"""
    service = ReservationService(db)
    if status:
        reservations = service.get_reservations_by_status(status)
    elif type:
        reservations = service.get_reservations_by_type(type)
    elif guest_id:
        reservations = service.get_reservations_by_guest(guest_id)
    elif resource_id:
        reservations = service.get_reservations_by_resource(resource_id)
    else:
        reservations = service.get_reservations()

    # 多个筛选条件同时给出时取交集
    return [
        r for r in reservations
        if (status is None or r.status == status)
        and (type is None or r.type == type)
        and (guest_id is None or r.guest_id == guest_id)
        and (resource_id is None or r.resource_id == resource_id)
    ]


@router.get("/pending", response_model=List[ReservationResponse])
def get_pending_reservations(db: Session = Depends(get_db)):
    """获取待确认预订"""
    return ReservationService(db).get_pending_reservations()


@router.get("/today-check-ins", response_model=List[ReservationResponse])
def get_today_check_ins(db: Session = Depends(get_db)):
    """获取今日预抵"""
    return ReservationService(db).get_today_check_ins()


@router.get("/today-check-outs", response_model=List[ReservationResponse])
def get_today_check_outs(db: Session = Depends(get_db)):
    """获取今日预离"""
    return ReservationService(db).get_today_check_outs()


@router.get("/upcoming", response_model=List[ReservationResponse])
def get_upcoming_reservations(guest_id: str, db: Session = Depends(get_db)):
    """获取客人即将到来的预订"""
    return ReservationService(db).get_upcoming_reservations(guest_id)


@router.get("/date-range", response_model=List[ReservationResponse])
def get_reservations_for_date_range(
    start: str = Query(..., description="ISO-8601 起始时间（含）"),
    end: str = Query(..., description="ISO-8601 结束时间（不含）"),
    db: Session = Depends(get_db)
):
    """获取入住时间落在区间内的预订"""
    try:
        return ReservationService(db).get_reservations_for_date_range(start, end)
    except ReservationError as e:
        raise _http_error(e)


@router.get("/availability", response_model=AvailabilityResponse)
def check_availability(
    resource_id: str,
    check_in: str,
    check_out: str,
    exclude_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """查询资源在区间内是否可预订"""
    service = ReservationService(db)
    try:
        conflicts = service.find_conflicts(resource_id, check_in, check_out, exclude_id)
    except ReservationError as e:
        raise _http_error(e)
    return AvailabilityResponse(
        resource_id=resource_id,
        available=not conflicts,
        conflicts=[ConflictResponse.model_validate(c) for c in conflicts]
    )


@router.get("/code/{confirmation_code}", response_model=ReservationResponse)
def get_reservation_by_code(confirmation_code: str, db: Session = Depends(get_db)):
    """根据确认码获取预订"""
    reservation = ReservationService(db).get_reservation_by_confirmation_code(confirmation_code.upper())
    if not reservation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return reservation


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """获取预订详情"""
    reservation = ReservationService(db).get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return reservation


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(data: ReservationCreate, db: Session = Depends(get_db)):
    """创建预订"""
    try:
        return ReservationService(db).create_reservation(data)
    except ReservationError as e:
        raise _http_error(e)


@router.put("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(reservation_id: str, data: ReservationUpdate, db: Session = Depends(get_db)):
    """更新预订"""
    try:
        return ReservationService(db).update_reservation(reservation_id, data)
    except ReservationError as e:
        raise _http_error(e)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """删除预订（管理员操作）"""
    try:
        ReservationService(db).delete_reservation(reservation_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """确认预订"""
    try:
        return ReservationService(db).confirm_reservation(reservation_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/check-in", response_model=ReservationResponse)
def check_in(reservation_id: str, data: StaffAction, db: Session = Depends(get_db)):
    """办理入住"""
    try:
        return ReservationService(db).check_in(reservation_id, data.staff_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/check-out", response_model=ReservationResponse)
def check_out(reservation_id: str, data: StaffAction, db: Session = Depends(get_db)):
    """办理退房"""
    try:
        return ReservationService(db).check_out(reservation_id, data.staff_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(reservation_id: str, data: ReservationCancel, db: Session = Depends(get_db)):
    """取消预订"""
    try:
        return ReservationService(db).cancel_reservation(reservation_id, data.reason, data.cancelled_by)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/no-show", response_model=ReservationResponse)
def mark_no_show(reservation_id: str, db: Session = Depends(get_db)):
    """标记未到"""
    try:
        return ReservationService(db).mark_no_show(reservation_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/deposit", response_model=ReservationResponse)
def record_deposit(reservation_id: str, db: Session = Depends(get_db)):
    """记录押金已收"""
    try:
        return ReservationService(db).record_deposit(reservation_id)
    except ReservationError as e:
        raise _http_error(e)


@router.post("/{reservation_id}/deposit/refund", response_model=ReservationResponse)
def refund_deposit(reservation_id: str, db: Session = Depends(get_db)):
    """退还押金"""
    try:
        return ReservationService(db).refund_deposit(reservation_id)
    except ReservationError as e:
        raise _http_error(e)

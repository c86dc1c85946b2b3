"""
审计日志路由
"""
from typing import List, Optional
from fastapi import APIRouter, Query
from resortpms.engine.audit import audit_engine
from resortpms.models.schemas import AuditLogResponse

router = APIRouter(prefix="/audit-logs", tags=["审计日志"])


@router.get("", response_model=List[AuditLogResponse])
def list_audit_logs(
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000)
):
    """查询审计日志（可按预订 ID 或操作类型筛选）"""
    if entity_id:
        logs = audit_engine.get_by_entity("Reservation", entity_id, limit=limit)
    elif action:
        logs = audit_engine.get_by_action(action, limit=limit)
    else:
        logs = audit_engine.get_all(limit=limit)
    return [AuditLogResponse(**log.to_dict()) for log in logs]


@router.get("/stats")
def audit_statistics():
    """审计统计"""
    return audit_engine.get_statistics()

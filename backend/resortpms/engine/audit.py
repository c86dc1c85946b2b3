"""
resortpms/engine/audit.py

审计日志引擎 - 记录预订的关键操作（内存存储，有上限）
"""
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
import threading
import uuid

logger = logging.getLogger(__name__)


class AuditSeverity(str, Enum):
    """审计日志严重程度"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class AuditLog:
    """
    审计日志条目

    Attributes:
        log_id: 日志唯一标识
        timestamp: 日志时间戳
        operator_id: 操作人ID（员工标识，可为空）
        action: 操作类型（如 "reservation.checked_in"）
        entity_type: 实体类型
        entity_id: 实体ID
        severity: 严重程度
        extra: 额外信息
    """

    log_id: str
    timestamp: datetime
    operator_id: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[str]
    severity: AuditSeverity = AuditSeverity.INFO
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "log_id": self.log_id,
            "timestamp": self.timestamp.isoformat(),
            "operator_id": self.operator_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "severity": self.severity.value,
            "extra": self.extra,
        }


class AuditEngine:
    """
    审计日志引擎

    Example:
        >>> engine = AuditEngine()
        >>> engine.log(operator_id="staff-1", action="reservation.checked_in",
        ...            entity_type="Reservation", entity_id="...")
        >>> logs = engine.get_by_entity("Reservation", "...")
    """

    def __init__(self, max_logs: int = 10000):
        self._logs: List[AuditLog] = []
        self._max_logs = max_logs
        self._lock = threading.Lock()

    def log(
        self,
        operator_id: Optional[str] = None,
        action: str = "",
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """记录审计日志"""
        entry = AuditLog(
            log_id=uuid.uuid4().hex,
            timestamp=datetime.now(),
            operator_id=operator_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            severity=severity,
            extra=extra or {},
        )

        with self._lock:
            self._logs.append(entry)
            # 限制日志数量
            if len(self._logs) > self._max_logs:
                del self._logs[: len(self._logs) - self._max_logs]

        logger.debug(f"Audit log: {action} by {operator_id} on {entity_type}:{entity_id}")
        return entry

    def get_by_entity(self, entity_type: str, entity_id: str, limit: int = 100) -> List[AuditLog]:
        """获取实体的日志"""
        with self._lock:
            return [
                log for log in self._logs
                if log.entity_type == entity_type and log.entity_id == entity_id
            ][:limit]

    def get_by_action(self, action: str, limit: int = 100) -> List[AuditLog]:
        """获取指定操作的日志"""
        with self._lock:
            return [log for log in self._logs if log.action == action][:limit]

    def get_all(self, limit: int = 100, offset: int = 0) -> List[AuditLog]:
        """获取所有日志（分页）"""
        with self._lock:
            return self._logs[offset: offset + limit]

    def get_statistics(self) -> Dict[str, Any]:
        """获取审计统计"""
        with self._lock:
            counts: Dict[str, int] = {}
            for log in self._logs:
                counts[log.action] = counts.get(log.action, 0) + 1
            return {"total_logs": len(self._logs), "by_action": counts}

    def clear(self) -> None:
        """清空所有日志（用于测试）"""
        with self._lock:
            self._logs.clear()


def _create_audit_engine() -> AuditEngine:
    from resortpms.config import settings
    return AuditEngine(max_logs=settings.AUDIT_MAX_LOGS)


# 全局审计引擎实例
audit_engine = _create_audit_engine()


__all__ = ["AuditSeverity", "AuditLog", "AuditEngine", "audit_engine"]

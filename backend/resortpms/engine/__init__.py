"""
resortpms/engine - 引擎组件

- event_bus: 事件总线（发布/订阅）
- state_machine: 状态机引擎（状态转换）
- audit: 审计日志引擎（操作记录）
"""
from resortpms.engine.event_bus import Event, PublishResult, EventBus, event_bus
from resortpms.engine.state_machine import (
    StateTransition,
    StateMachineConfig,
    StateMachineSnapshot,
    StateMachine,
)
from resortpms.engine.audit import AuditSeverity, AuditLog, AuditEngine, audit_engine

__all__ = [
    "Event",
    "PublishResult",
    "EventBus",
    "event_bus",
    "StateTransition",
    "StateMachineConfig",
    "StateMachineSnapshot",
    "StateMachine",
    "AuditSeverity",
    "AuditLog",
    "AuditEngine",
    "audit_engine",
]

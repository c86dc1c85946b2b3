"""
resortpms/engine/event_bus.py

事件总线 - 内存级发布/订阅模式
预订服务通过它发布领域事件，审计等下游模块订阅处理
"""
from typing import Callable, Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

logger = logging.getLogger(__name__)


def _generate_event_id() -> str:
    """生成唯一事件ID"""
    return f"{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}"


@dataclass
class Event:
    """
    事件基类

    Attributes:
        event_type: 事件类型（如 "reservation.created"）
        timestamp: 事件时间戳
        data: 事件数据
        source: 触发来源（服务名）
        event_id: 唯一事件ID
    """

    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str = ""
    event_id: str = field(default_factory=_generate_event_id)


@dataclass
class PublishResult:
    """事件发布结果"""

    event_type: str
    subscriber_count: int
    success_count: int = 0
    failure_count: int = 0
    errors: List[Tuple[Callable, Exception]] = field(default_factory=list)


class EventBus:
    """
    事件总线 - 线程安全单例模式

    处理器异常被隔离并记录日志，不会传播给发布者。

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe("reservation.created", handler)
        >>> bus.publish(Event(event_type="reservation.created", timestamp=datetime.now(), data={}))
    """

    _instance: Optional["EventBus"] = None
    _lock = threading.Lock()

    def __new__(cls, history_size: int = 100) -> "EventBus":
        """单例模式 - 确保全局唯一实例"""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, history_size: int = 100):
        if self._initialized:
            return

        self._subscribers: Dict[str, List[Callable]] = {}
        self._event_history: deque = deque(maxlen=history_size)
        self._subscriber_lock = threading.RLock()
        self._initialized = True
        logger.info("EventBus initialized")

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """
        订阅事件

        Args:
            event_type: 事件类型（如 "reservation.created"）
            handler: 处理函数，接收 Event 对象作为参数
        """
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {getattr(handler, '__name__', handler)} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable) -> None:
        """取消订阅"""
        with self._subscriber_lock:
            if handler in self._subscribers.get(event_type, []):
                self._subscribers[event_type].remove(handler)

    def publish(self, event: Event) -> PublishResult:
        """
        发布事件（同步执行所有处理器）

        处理器异常不会影响其他处理器的执行，也不会抛给调用方。
        """
        self._event_history.append(event)

        # 在锁内复制，避免长时间持锁
        with self._subscriber_lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        result = PublishResult(event_type=event.event_type, subscriber_count=len(handlers))

        for handler in handlers:
            try:
                handler(event)
                result.success_count += 1
            except Exception as e:
                result.failure_count += 1
                result.errors.append((handler, e))
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)} error for {event.event_type}: {e}",
                    exc_info=True,
                )

        return result

    def get_subscribers(self, event_type: str) -> List[Callable]:
        with self._subscriber_lock:
            return list(self._subscribers.get(event_type, []))

    def get_history(self, event_type: Optional[str] = None, limit: int = 100) -> List[Event]:
        """获取事件历史（最新在后）"""
        events = list(self._event_history)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events[-limit:]

    def clear_subscribers(self) -> None:
        """清空所有订阅（用于测试）"""
        with self._subscriber_lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        """清空事件历史（用于测试）"""
        self._event_history.clear()


def _create_event_bus() -> EventBus:
    from resortpms.config import settings
    return EventBus(history_size=settings.EVENT_HISTORY_SIZE)


# 全局事件总线实例
event_bus = _create_event_bus()


__all__ = ["Event", "PublishResult", "EventBus", "event_bus"]

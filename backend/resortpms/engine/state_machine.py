"""
resortpms/engine/state_machine.py

状态机引擎 - 转换表 + 可选守卫条件
非法转换只在 can_transition_to 一处判定
"""
from typing import Dict, List, Any, Optional, Callable
from dataclasses import dataclass, field
import logging
import time

logger = logging.getLogger(__name__)


@dataclass
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作
        condition: 可选的转换条件，接收上下文字典
    """

    from_state: str
    to_state: str
    trigger: str
    condition: Optional[Callable[[Dict[str, Any]], bool]] = None

    def is_allowed(self, context: Dict[str, Any]) -> bool:
        """检查转换是否被允许"""
        if self.condition is None:
            return True
        return bool(self.condition(context))


@dataclass
class StateMachineConfig:
    """
    状态机配置

    Attributes:
        name: 状态机名称
        states: 所有状态的列表
        transitions: 转换列表
        initial_state: 初始状态
        final_states: 终态列表
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    final_states: List[str] = field(default_factory=list)


@dataclass
class StateMachineSnapshot:
    """状态机快照 - 记录一次已执行的转换"""

    previous_state: str
    current_state: str
    trigger: str
    timestamp: float


class StateMachine:
    """
    状态机引擎

    Example:
        >>> machine = StateMachine(config, initial_state="pending")
        >>> if machine.can_transition_to("confirmed", "confirm"):
        ...     machine.transition_to("confirmed", "confirm")
    """

    def __init__(self, config: StateMachineConfig, initial_state: Optional[str] = None):
        self._config = config
        self._current_state = initial_state if initial_state is not None else config.initial_state
        self._history: List[StateMachineSnapshot] = []
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}

        # 构建转换映射: (from_state, trigger) -> transition
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.trigger] = t

    @property
    def current_state(self) -> str:
        """获取当前状态"""
        return self._current_state

    def get_transition(self, trigger: str) -> Optional[StateTransition]:
        """获取当前状态下某触发动作对应的转换"""
        return self._transition_map.get(self._current_state, {}).get(trigger)

    def available_triggers(self) -> List[str]:
        """当前状态下定义的触发动作"""
        return list(self._transition_map.get(self._current_state, {}).keys())

    def can_transition_to(self, target_state: str, trigger: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        检查是否可以转换到目标状态

        Args:
            target_state: 目标状态
            trigger: 触发动作
            context: 可选的上下文数据（供守卫条件使用）

        Returns:
            True 如果转换被允许
        """
        if target_state not in self._config.states:
            return False

        transition = self.get_transition(trigger)
        if transition is None or transition.to_state != target_state:
            return False

        return transition.is_allowed(context or {})

    def transition_to(self, target_state: str, trigger: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        执行状态转换

        Returns:
            True 如果转换成功
        """
        if not self.can_transition_to(target_state, trigger, context):
            logger.warning(
                f"Invalid transition: {self._current_state} -> {target_state} (trigger: {trigger})"
            )
            return False

        previous_state = self._current_state
        self._current_state = target_state
        self._history.append(StateMachineSnapshot(
            previous_state=previous_state,
            current_state=target_state,
            trigger=trigger,
            timestamp=time.time(),
        ))

        logger.debug(f"{self._config.name} transition: {previous_state} -> {target_state} (trigger: {trigger})")
        return True

    def get_history(self) -> List[StateMachineSnapshot]:
        """获取转换历史"""
        return list(self._history)

    def reset(self, state: Optional[str] = None) -> None:
        """重置状态机到指定状态（默认初始状态）"""
        self._current_state = state if state is not None else self._config.initial_state
        self._history.clear()


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachineSnapshot",
    "StateMachine",
]

"""
导出阶段定义 - 状态机迁移表

状态：
    idle → preparing → capturing ⇄ slicing → finalizing → done
    任一非idle状态 → failed / cancelled

测试要点：
- test_happy_path_transitions: 正常路径
- test_failed_reachable: 任意阶段可失败
- test_illegal_transition: 非法迁移报错
"""

from __future__ import annotations

from dataclasses import dataclass

from ..interfaces import IllegalTransition
from ..models import ExportState

_ACTIVE = (
    ExportState.PREPARING,
    ExportState.CAPTURING,
    ExportState.SLICING,
    ExportState.FINALIZING,
)

TRANSITIONS: dict[ExportState, frozenset[ExportState]] = {
    ExportState.IDLE: frozenset({ExportState.PREPARING}),
    ExportState.PREPARING: frozenset({ExportState.CAPTURING}),
    ExportState.CAPTURING: frozenset({ExportState.SLICING, ExportState.FINALIZING}),
    ExportState.SLICING: frozenset({ExportState.CAPTURING, ExportState.FINALIZING}),
    ExportState.FINALIZING: frozenset({ExportState.DONE}),
    ExportState.DONE: frozenset(),
    ExportState.FAILED: frozenset(),
    ExportState.CANCELLED: frozenset(),
}


def can_transition(current: ExportState, target: ExportState) -> bool:
    """判断迁移是否合法"""
    if target in (ExportState.FAILED, ExportState.CANCELLED):
        return current in _ACTIVE
    return target in TRANSITIONS[current]


@dataclass
class StageMachine:
    """导出状态机"""
    state: ExportState = ExportState.IDLE

    def advance(self, target: ExportState) -> ExportState:
        if not can_transition(self.state, target):
            raise IllegalTransition(f"非法状态迁移: {self.state.value} -> {target.value}")
        self.state = target
        return target

    @property
    def is_active(self) -> bool:
        return self.state in _ACTIVE

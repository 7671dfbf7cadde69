"""
进度上报器 - (current, total, status) 三元组

规则：
- current 单调不减，且不超过 total
- total 一次导出内固定；仅 flow 路径在切片数确定后重算一次
- 纯展示用途，观察者异常只记录日志，不影响导出
"""

from __future__ import annotations

import logging

from ..interfaces import IProgressObserver
from ..models import ProgressState

logger = logging.getLogger(__name__)


class ProgressReporter:
    """进度上报器"""

    def __init__(self, observers: list[IProgressObserver] | None = None):
        self.state = ProgressState()
        self._observers: list[IProgressObserver] = list(observers or [])
        self._total_fixed = False
        self._retotaled = False
        self.history: list[ProgressState] = []

    def subscribe(self, observer: IProgressObserver) -> None:
        self._observers.append(observer)

    def start(self, status: str) -> None:
        """导出开始（total 尚未确定）"""
        self._emit(self.state.current, self.state.total, status)

    def set_total(self, total: int, status: str | None = None) -> None:
        """确定 total（一次导出仅一次）"""
        if self._total_fixed:
            raise RuntimeError("进度总数已确定，不能重复设置")
        self._total_fixed = True
        self._emit(self.state.current, max(0, total), status)

    def retotal(self, total: int, status: str | None = None) -> None:
        """flow 路径：切片数确定后重算 total（仅一次）"""
        if self._retotaled:
            raise RuntimeError("进度总数已重算过")
        self._retotaled = True
        self._total_fixed = True
        self._emit(self.state.current, max(total, self.state.current), status)

    def update(self, current: int, status: str | None = None) -> None:
        """推进到 current（不回退，不越过 total）"""
        current = max(self.state.current, min(current, self.state.total))
        self._emit(current, self.state.total, status)

    def status(self, status: str) -> None:
        self._emit(self.state.current, self.state.total, status)

    def complete(self, status: str) -> None:
        """结束：current 对齐 total"""
        self._emit(self.state.total, self.state.total, status)

    def _emit(self, current: int, total: int, status: str | None) -> None:
        self.state = ProgressState(
            current=current,
            total=total,
            status=status if status is not None else self.state.status,
        )
        self.history.append(self.state)
        logger.debug(f"进度 {self.state.label()} {self.state.status}")
        for observer in self._observers:
            try:
                observer(self.state)
            except Exception:
                logger.exception("进度观察者处理失败")

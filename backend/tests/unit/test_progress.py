"""
进度上报与状态机单元测试
"""

import pytest

from docexport.interfaces import IllegalTransition
from docexport.models import ExportState
from docexport.pipeline import ProgressReporter, StageMachine, can_transition


class TestProgressReporter:
    """进度上报测试"""

    def test_monotonic_and_clamped(self):
        """测试 current 不回退且不超过 total"""
        reporter = ProgressReporter()
        reporter.start("准备中…")
        reporter.set_total(3)
        reporter.update(2)
        reporter.update(1)
        assert reporter.state.current == 2
        reporter.update(10)
        assert reporter.state.current == 3

    def test_total_fixed_once(self):
        reporter = ProgressReporter()
        reporter.set_total(2)
        with pytest.raises(RuntimeError):
            reporter.set_total(3)

    def test_retotal_once_and_not_below_current(self):
        """测试 flow 路径重算 total"""
        reporter = ProgressReporter()
        reporter.set_total(2)
        reporter.update(2)
        reporter.retotal(1)
        assert reporter.state.total == 2
        with pytest.raises(RuntimeError):
            reporter.retotal(5)

    def test_observers_notified(self):
        seen = []
        reporter = ProgressReporter([seen.append])
        reporter.set_total(2, "开始")
        reporter.update(1, "第1页")
        reporter.complete("完成")
        assert [(s.current, s.total, s.status) for s in seen] == [
            (0, 2, "开始"),
            (1, 2, "第1页"),
            (2, 2, "完成"),
        ]
        assert reporter.history == seen

    def test_status_kept_when_omitted(self):
        reporter = ProgressReporter()
        reporter.set_total(2, "渲染中")
        reporter.update(1)
        assert reporter.state.status == "渲染中"

    def test_observer_error_ignored(self):
        """测试观察者异常不影响上报"""

        def broken(state):
            raise ValueError("display gone")

        reporter = ProgressReporter([broken])
        reporter.set_total(1)
        reporter.update(1)
        assert reporter.state.current == 1


class TestStageMachine:
    """状态机测试"""

    def test_happy_path_transitions(self):
        machine = StageMachine()
        for state in (
            ExportState.PREPARING,
            ExportState.CAPTURING,
            ExportState.SLICING,
            ExportState.CAPTURING,
            ExportState.FINALIZING,
            ExportState.DONE,
        ):
            machine.advance(state)
        assert machine.state == ExportState.DONE
        assert not machine.is_active

    def test_failed_reachable(self):
        """测试任意活动阶段可失败/取消"""
        for state in (ExportState.PREPARING, ExportState.CAPTURING, ExportState.SLICING, ExportState.FINALIZING):
            assert can_transition(state, ExportState.FAILED)
            assert can_transition(state, ExportState.CANCELLED)
        assert not can_transition(ExportState.IDLE, ExportState.FAILED)
        assert not can_transition(ExportState.DONE, ExportState.FAILED)

    def test_illegal_transition(self):
        machine = StageMachine()
        with pytest.raises(IllegalTransition):
            machine.advance(ExportState.CAPTURING)
        machine.advance(ExportState.PREPARING)
        with pytest.raises(IllegalTransition):
            machine.advance(ExportState.DONE)

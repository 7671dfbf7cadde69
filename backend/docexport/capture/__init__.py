"""
捕获模块 - 页面枚举/样式守卫/栅格化编排/空白检测/溢出切片

子模块：
- style_guard: 样式快照守卫与展示租约
- blank_detector: 空白页检测
- enumerator: 页面枚举
- orchestrator: 捕获编排
- slicer: 连续正文切片
"""

from .blank_detector import BlankDetector
from .enumerator import PageEnumerator
from .orchestrator import CaptureOrchestrator
from .slicer import ContentArea, OverflowSlicer
from .style_guard import (
    GlobalStyleOverride,
    PresentationLedger,
    StyleSnapshot,
    StyleSnapshotGuard,
    presentation_lease,
)

__all__ = [
    "BlankDetector",
    "PageEnumerator",
    "CaptureOrchestrator",
    "ContentArea",
    "OverflowSlicer",
    "GlobalStyleOverride",
    "PresentationLedger",
    "StyleSnapshot",
    "StyleSnapshotGuard",
    "presentation_lease",
]

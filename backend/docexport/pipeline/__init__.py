"""
流水线模块 - 状态机/进度/组装驱动/对外入口

子模块：
- stages: 导出状态机
- progress: 进度上报
- driver: 文档组装驱动
- api: 对外入口
"""

from .api import export_document, export_document_sync, format_failure_message, print_document
from .driver import DocumentAssemblyDriver, PageAssembler
from .progress import ProgressReporter
from .stages import TRANSITIONS, StageMachine, can_transition

__all__ = [
    "DocumentAssemblyDriver",
    "PageAssembler",
    "ProgressReporter",
    "StageMachine",
    "TRANSITIONS",
    "can_transition",
    "export_document",
    "export_document_sync",
    "format_failure_message",
    "print_document",
]

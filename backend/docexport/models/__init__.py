"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- Surface: 文档树节点引用
- CaptureUnit: 捕获单元（封面/页面/连续正文）
- PageSlice: 写入文档的单页图像
- ExportPlan: 捕获计划与分页策略
- ExportJob: 导出任务状态与进度
"""

from .capture import (
    CaptureKind,
    CaptureUnit,
    DiscreteStrategy,
    EmptyStrategy,
    ExportPlan,
    FlowStrategy,
    PageSizeSpec,
    PageSlice,
    PaginationStrategy,
    RenderOptions,
)
from .job import ExportJob, ExportState, ProgressState
from .surface import Surface

__all__ = [
    "Surface",
    "CaptureKind",
    "CaptureUnit",
    "RenderOptions",
    "PageSizeSpec",
    "PageSlice",
    "PaginationStrategy",
    "DiscreteStrategy",
    "FlowStrategy",
    "EmptyStrategy",
    "ExportPlan",
    "ExportJob",
    "ExportState",
    "ProgressState",
]

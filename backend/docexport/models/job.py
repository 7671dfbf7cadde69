"""
导出任务模型 - 定义单次导出的状态与生命周期
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ExportState(str, Enum):
    """导出状态机状态"""
    IDLE = "idle"
    PREPARING = "preparing"
    CAPTURING = "capturing"
    SLICING = "slicing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ProgressState(BaseModel):
    """进度三元组（仅供观察者展示，不影响控制流）"""
    current: int = 0
    total: int = 0
    status: str = ""

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.current / self.total * 100)

    def label(self) -> str:
        """如 "5 / 12 页" """
        return f"{self.current} / {self.total} 页"


class ExportJob(BaseModel):
    """导出任务实体"""
    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str = ""
    output_path: Path | None = None

    # 状态
    state: ExportState = ExportState.IDLE
    progress: ProgressState = Field(default_factory=ProgressState)
    cancel_requested: bool = False

    # 结果
    pages_written: int = 0
    pages_skipped: int = 0
    flags: list[str] = Field(default_factory=list, description="告警标记")
    errors: list[str] = Field(default_factory=list, description="错误信息")

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def is_finished(self) -> bool:
        return self.state in (ExportState.DONE, ExportState.FAILED, ExportState.CANCELLED)

    def mark_started(self) -> None:
        """标记开始"""
        self.started_at = datetime.now()

    def mark_done(self) -> None:
        """标记成功"""
        self.finished_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        """标记失败"""
        self.finished_at = datetime.now()
        self.errors.append(error)

    def request_cancel(self) -> None:
        """请求取消（在两个捕获单元之间生效）"""
        self.cancel_requested = True

    def add_flag(self, flag: str) -> None:
        """添加告警标记（不中断）"""
        if flag not in self.flags:
            self.flags.append(flag)

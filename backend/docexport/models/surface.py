"""
页面表面模型 - 文档树中可被整体栅格化的节点引用
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Surface(BaseModel):
    """文档树节点引用（句柄对核心逻辑不透明）"""

    handle: Any = Field(..., description="DOM适配器内部句柄（如ElementHandle）")
    label: str = Field("", description="人类可读标识（选择器#序号）")
    classes: list[str] = Field(default_factory=list)
    key: str = Field("", description="节点标识（跨查询稳定，用于去重）")

    model_config = {"arbitrary_types_allowed": True}

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @property
    def identity(self) -> str:
        """去重用标识（适配器未提供 key 时退回句柄对象标识）"""
        return self.key or f"handle:{id(self.handle)}"

    def __str__(self) -> str:
        return self.label or repr(self.handle)

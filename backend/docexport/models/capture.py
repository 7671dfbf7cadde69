"""
捕获模型 - 捕获单元/页面切片/分页策略

对应导出流程中枚举器 → 捕获编排 → 切片 → 文档组装之间传递的数据
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from PIL import Image
from pydantic import BaseModel, Field

from .surface import Surface


class CaptureKind(str, Enum):
    """捕获单元类型"""
    COVER = "cover"
    PAGE = "page"
    FLOW = "flow"


class CaptureUnit(BaseModel):
    """捕获单元（由枚举器生成，捕获编排器消费一次）"""
    kind: CaptureKind
    surface: Surface
    target_width_px: int
    target_height_px: int | None = None  # flow 单元为自然高度
    index: int = 0  # 同类单元内的顺序
    from_body_container: bool = False  # 无 .page 标记、以正文容器充当页面

    @property
    def is_cover(self) -> bool:
        return self.kind == CaptureKind.COVER


class RenderOptions(BaseModel):
    """栅格化参数"""
    scale: float = 2.0
    background: str | None = "#ffffff"  # None = 透明背景
    use_cors: bool = True


class PageSizeSpec(BaseModel):
    """物理页面规格"""
    width_mm: float = 210.0
    height_mm: float = 297.0
    orientation: str = "portrait"
    unit: str = "mm"


class PageSlice(BaseModel):
    """最终写入文档的单页图像及其物理落点"""
    image: Image.Image
    offset_mm: tuple[float, float] = (0.0, 0.0)
    size_mm: tuple[float, float]
    source_top_px: float = 0.0
    height_px: float | None = None

    model_config = {"arbitrary_types_allowed": True}


# ============================================================================
# 分页策略（标签联合）
# ============================================================================

class DiscreteStrategy(BaseModel):
    """离散页面：每个 .page（或章节）单独捕获"""
    kind: Literal["discrete"] = "discrete"
    units: list[CaptureUnit] = Field(default_factory=list)


class FlowStrategy(BaseModel):
    """连续正文：整体捕获后按页高切片"""
    kind: Literal["flow"] = "flow"
    unit: CaptureUnit


class EmptyStrategy(BaseModel):
    """无任何内容页面"""
    kind: Literal["empty"] = "empty"


PaginationStrategy = Union[DiscreteStrategy, FlowStrategy, EmptyStrategy]


class ExportPlan(BaseModel):
    """一次导出的捕获计划"""
    cover: CaptureUnit | None = None
    strategy: PaginationStrategy = Field(default_factory=EmptyStrategy)

    @property
    def content_units(self) -> list[CaptureUnit]:
        if isinstance(self.strategy, DiscreteStrategy):
            return list(self.strategy.units)
        if isinstance(self.strategy, FlowStrategy):
            return [self.strategy.unit]
        return []

    @property
    def total(self) -> int:
        """进度总数（flow 路径为暂定值）"""
        return (1 if self.cover else 0) + len(self.content_units)

    @property
    def is_empty(self) -> bool:
        return self.cover is None and not self.content_units

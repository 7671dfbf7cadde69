"""
溢出切片器 - 将连续正文的长图按页高切成多页

算法（单位：内容区mm，来自物理页减去页边距）：
1. ρ = 图像宽度px / 内容区宽度CW
2. 页高px = CH × ρ
3. 自 y=0 起每次切 min(页高px, H - y)，整宽；先铺白底再贴源区域
4. 切片物理高度 = 切片px / ρ，落点 (ML, MT)
5. y += 页高px，直到 y ≥ H

切片数 = ceil(H / 页高px)
"""

from __future__ import annotations

import math

from PIL import Image

from ..config import FlowConfig, PageConfig
from ..models import PageSlice


class ContentArea:
    """页面内容区（mm）"""

    def __init__(self, page: PageConfig, flow: FlowConfig):
        self.margin_top = flow.margin_top_mm
        self.margin_right = flow.margin_right_mm
        self.margin_bottom = flow.margin_bottom_mm
        self.margin_left = flow.margin_left_mm
        self.width = page.width_mm - flow.margin_left_mm - flow.margin_right_mm
        self.height = page.height_mm - flow.margin_top_mm - flow.margin_bottom_mm
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"页边距超出页面尺寸: 内容区 {self.width}x{self.height}mm")

    def __repr__(self) -> str:
        return f"ContentArea(CW={self.width}, CH={self.height}, ML={self.margin_left}, MT={self.margin_top})"


class OverflowSlicer:
    """溢出切片器实现"""

    def __init__(self, page: PageConfig | None = None, flow: FlowConfig | None = None, background: str = "#ffffff"):
        self.area = ContentArea(page or PageConfig(), flow or FlowConfig())
        self.background = background

    def px_per_mm(self, image: Image.Image) -> float:
        return image.width / self.area.width

    def page_height_px(self, image: Image.Image) -> float:
        return self.area.height * self.px_per_mm(image)

    def slice_count(self, image: Image.Image) -> int:
        if image.width == 0 or image.height == 0:
            return 0
        return math.ceil(image.height / self.page_height_px(image))

    def slice(self, image: Image.Image) -> list[PageSlice]:
        """切片并返回全部页面切片"""
        if image.width == 0 or image.height == 0:
            return []

        rho = self.px_per_mm(image)
        page_h = self.page_height_px(image)
        total_h = image.height
        source = image.convert("RGBA") if image.mode not in ("RGB", "RGBA") else image

        slices: list[PageSlice] = []
        y = 0.0
        while y < total_h:
            slice_h = min(page_h, total_h - y)
            top = math.floor(y)
            raster_h = max(1, math.ceil(slice_h))
            bottom = min(total_h, top + raster_h)

            canvas = Image.new("RGB", (image.width, raster_h), self.background)
            region = source.crop((0, top, image.width, bottom))
            if region.mode == "RGBA":
                canvas.paste(region, (0, 0), region)
            else:
                canvas.paste(region, (0, 0))

            slices.append(
                PageSlice(
                    image=canvas,
                    offset_mm=(self.area.margin_left, self.area.margin_top),
                    size_mm=(self.area.width, slice_h / rho),
                    source_top_px=y,
                    height_px=slice_h,
                )
            )
            y += page_h

        return slices

"""
页面枚举器 - 决定捕获单元及其顺序

职责：
1. 封面（.cover-page，可选）始终排在最前
2. 正文容器内的 .page 按文档顺序作为离散页
3. 无 .page 时退回章节页（.chapter-page）
4. 两者都没有时，整个正文容器作为一个 flow 单元（交给切片器）

测试要点：
- test_cover_then_pages: 封面 + 离散页顺序
- test_section_fallback: 章节页回退
- test_body_container_flag: 正文容器充当页面时打标
- test_flow_fallback: 无页面标记时走flow
- test_empty_document: 完全没有内容时返回空计划
"""

from __future__ import annotations

import logging

from ..config import RuntimeConfig, get_config
from ..interfaces import IDocumentTree, IPageEnumerator
from ..models import (
    CaptureKind,
    CaptureUnit,
    DiscreteStrategy,
    EmptyStrategy,
    ExportPlan,
    FlowStrategy,
    Surface,
)

logger = logging.getLogger(__name__)


class PageEnumerator(IPageEnumerator):
    """页面枚举器实现"""

    def __init__(self, tree: IDocumentTree, config: RuntimeConfig | None = None):
        self.tree = tree
        self.config = config or get_config()
        self.selectors = self.config.selectors

    async def enumerate(self) -> ExportPlan:
        # 1. 封面
        cover = await self._find_cover()

        # 2. 离散页（正文容器内的 .page）
        pages = await self.tree.query_all(f"{self.selectors.body} {self.selectors.page}")
        if pages:
            logger.info(f"检测到 {len(pages)} 个离散页面")
            return ExportPlan(cover=cover, strategy=DiscreteStrategy(units=self._page_units(pages, cover)))

        # 3. 章节页回退
        sections = await self.tree.query_all(self.selectors.section)
        if sections:
            logger.info(f"未找到离散页面，改用 {len(sections)} 个章节页")
            return ExportPlan(cover=cover, strategy=DiscreteStrategy(units=self._page_units(sections, cover)))

        # 4. 整体正文（flow）
        body = await self.tree.query_one(self.selectors.body)
        if body is not None:
            logger.info("未找到页面标记，正文将整体捕获后切片")
            unit = CaptureUnit(
                kind=CaptureKind.FLOW,
                surface=body,
                target_width_px=self.config.page.target_width_px,
                target_height_px=None,
            )
            return ExportPlan(cover=cover, strategy=FlowStrategy(unit=unit))

        if cover is None:
            logger.warning("文档中没有可导出的页面")
        return ExportPlan(cover=cover, strategy=EmptyStrategy())

    async def _find_cover(self) -> CaptureUnit | None:
        """查找封面（仅取第一个）"""
        cover = await self.tree.query_one(self.selectors.cover)
        if cover is None:
            return None
        return CaptureUnit(
            kind=CaptureKind.COVER,
            surface=cover,
            target_width_px=self.config.page.target_width_px,
            target_height_px=self.config.page.target_height_px,
        )

    def _page_units(
        self, surfaces: list[Surface], cover: CaptureUnit | None
    ) -> list[CaptureUnit]:
        """构建离散页单元（同一节点只出现一次，且不与封面重复）"""
        units: list[CaptureUnit] = []
        seen: set[str] = {cover.surface.identity} if cover else set()
        body_class = self.selectors.body_class

        for surface in surfaces:
            if surface.identity in seen:
                continue
            seen.add(surface.identity)
            units.append(
                CaptureUnit(
                    kind=CaptureKind.PAGE,
                    surface=surface,
                    target_width_px=self.config.page.target_width_px,
                    target_height_px=self.config.page.target_height_px,
                    index=len(units),
                    from_body_container=surface.has_class(body_class),
                )
            )
        return units

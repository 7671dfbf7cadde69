"""
捕获编排器 - 将单个捕获单元归一化到固定画布后栅格化

职责：
1. 在展示租约内强制固定像素尺寸/裁切溢出/零外边距/白底
2. 封面使用透明背景（允许满版出血图）
3. 正文容器充当页面时，padding 与 .page 对齐
4. flow 单元额外压平分页标记与分类区块阴影
5. 栅格化失败或超时统一转为 CaptureFailure（不重试）

测试要点：
- test_page_styles_applied: 捕获时样式已生效
- test_styles_restored_after_capture: 捕获后样式原样恢复
- test_render_failure_restores: 渲染失败仍恢复
- test_timeout_is_capture_failure: 超时转为捕获失败
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack

from PIL import Image

from ..config import RuntimeConfig, get_config
from ..interfaces import CaptureFailure, IDocumentTree, IRasterizer, RenderFailure
from ..models import CaptureKind, CaptureUnit, RenderOptions
from .style_guard import presentation_lease

logger = logging.getLogger(__name__)


class CaptureOrchestrator:
    """捕获编排器实现"""

    def __init__(
        self,
        tree: IDocumentTree,
        rasterizer: IRasterizer,
        config: RuntimeConfig | None = None,
    ):
        self.tree = tree
        self.rasterizer = rasterizer
        self.config = config or get_config()

    async def capture(self, unit: CaptureUnit) -> Image.Image:
        """捕获单元并返回位图"""
        props = self.presentation_for(unit)
        options = self.render_options_for(unit)
        timeout = self.config.timeouts.unit_capture_sec

        async with AsyncExitStack() as stack:
            await stack.enter_async_context(presentation_lease(self.tree, unit.surface, props))
            if unit.kind == CaptureKind.FLOW:
                await self._flatten_flow_children(unit, stack)

            try:
                image = await asyncio.wait_for(
                    self.rasterizer.render(unit.surface, options),
                    timeout=timeout if timeout > 0 else None,
                )
            except asyncio.TimeoutError as e:
                raise CaptureFailure(f"捕获超时({timeout}s): {unit.surface}") from e
            except RenderFailure as e:
                raise CaptureFailure(f"渲染失败: {unit.surface}: {e}") from e

        logger.debug(f"捕获完成: {unit.kind.value} {unit.surface} -> {image.size}")
        return image

    def presentation_for(self, unit: CaptureUnit) -> dict[str, str]:
        """单元捕获期间的内联样式"""
        page = self.config.page
        width = f"{unit.target_width_px}px"

        if unit.kind == CaptureKind.COVER:
            height = f"{unit.target_height_px}px"
            return {
                "width": width,
                "min-height": height,
                "height": height,
                "margin": "0",
                "overflow": "hidden",
            }

        if unit.kind == CaptureKind.FLOW:
            return {
                "background": page.background,
                "box-shadow": "none",
                "border-radius": "0",
                "margin": "0",
                "padding": self.config.flow.body_padding,
                "width": width,
            }

        height = f"{unit.target_height_px}px"
        props = {
            "width": width,
            "height": height,
            "min-height": height,
            "max-height": "none",
            "overflow": "hidden",
            "margin": "0",
            "box-shadow": "none",
            "border-radius": "0",
            "background": page.background,
        }
        # 正文容器充当页面：padding 与 .page 一致，页眉负边距才能对齐
        if unit.from_body_container:
            props["padding"] = page.page_padding
        return props

    def render_options_for(self, unit: CaptureUnit) -> RenderOptions:
        capture = self.config.capture
        return RenderOptions(
            scale=capture.scale,
            background=None if unit.is_cover else self.config.page.background,
            use_cors=capture.use_cors,
        )

    async def _flatten_flow_children(self, unit: CaptureUnit, stack: AsyncExitStack) -> None:
        """flow 捕获前压平分页标记与分类阴影（同样走租约）"""
        selectors = self.config.selectors

        breaks = await self.tree.query_within(unit.surface, selectors.page_break)
        for section in breaks:
            await stack.enter_async_context(
                presentation_lease(
                    self.tree,
                    section,
                    {
                        "margin-top": self.config.flow.break_margin_top,
                        "padding-top": "0",
                        "border-top": "none",
                    },
                )
            )

        categories = await self.tree.query_within(unit.surface, selectors.category)
        for category in categories:
            await stack.enter_async_context(
                presentation_lease(self.tree, category, {"box-shadow": "none"})
            )

        if breaks or categories:
            logger.debug(f"flow 捕获前压平: 分页标记 {len(breaks)} 个, 分类区块 {len(categories)} 个")

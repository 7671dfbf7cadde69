"""
栅格化器 - Playwright 元素截图

说明：
- 过采样倍率由浏览器上下文的 device_scale_factor 决定；
  请求倍率与上下文不一致时按比例重采样
- background=None 时截取透明背景（封面满版出血）
- 浏览器合成跨域图片不会污染截图，use_cors 仅为接口兼容保留
"""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image

from ..interfaces import IRasterizer, RenderFailure
from ..models import RenderOptions, Surface

logger = logging.getLogger(__name__)


class PlaywrightRasterizer(IRasterizer):
    """Playwright 栅格化器实现"""

    def __init__(self, device_scale_factor: float = 2.0, timeout_ms: float = 30000):
        self.device_scale_factor = device_scale_factor
        self.timeout_ms = timeout_ms

    async def render(self, surface: Surface, options: RenderOptions) -> Image.Image:
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        try:
            png = await surface.handle.screenshot(
                type="png",
                omit_background=options.background is None,
                scale="device",
                animations="disabled",
                timeout=self.timeout_ms,
            )
        except PlaywrightError as e:
            raise RenderFailure(f"元素截图失败: {surface}: {e}") from e

        image = Image.open(BytesIO(png))
        image.load()

        if options.scale != self.device_scale_factor:
            ratio = options.scale / self.device_scale_factor
            size = (max(1, round(image.width * ratio)), max(1, round(image.height * ratio)))
            logger.debug(f"重采样 {image.size} -> {size}")
            image = image.resize(size, Image.LANCZOS)

        return image

"""
浏览器会话 - Playwright/Chromium 能力加载与页面打开

职责：
1. 惰性加载 playwright 并启动 Chromium（幂等）
2. 以配置的设备像素比（默认2×）创建上下文，作为栅格化的过采样倍率
3. 打开本地HTML文件或URL
4. 加载失败统一抛出 DependencyLoadFailure（发生在任何DOM变更之前）

依赖：
- playwright: 浏览器自动化（需 `playwright install chromium`）
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from ..config import RuntimeConfig, get_config
from ..interfaces import DependencyLoadFailure, DocExportError

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


def _require_playwright():
    try:
        from playwright.async_api import async_playwright  # type: ignore

        return async_playwright
    except ImportError as e:
        raise DependencyLoadFailure(
            "缺少依赖: 需要安装 playwright（pip install playwright && playwright install chromium）"
        ) from e


def resolve_source(source: str | Path) -> str:
    """将本地路径或URL统一为可导航的URL"""
    text = str(source)
    scheme = urlparse(text).scheme.lower()
    if scheme in ("http", "https", "file", "data", "about"):
        return text

    path = Path(text).expanduser()
    if not path.exists():
        raise DocExportError(f"文档不存在: {path}")
    return path.resolve().as_uri()


class BrowserSession:
    """Playwright 浏览器会话（async with 使用）"""

    def __init__(self, config: RuntimeConfig | None = None):
        self.config = config or get_config()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    @property
    def started(self) -> bool:
        return self._context is not None

    @property
    def device_scale_factor(self) -> float:
        return self.config.capture.scale

    async def start(self) -> None:
        """启动浏览器（已启动则忽略）"""
        if self.started:
            return

        async_playwright = _require_playwright()
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        browser_cfg = self.config.browser
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=browser_cfg.headless)
            self._context = await self._browser.new_context(
                viewport={"width": browser_cfg.viewport_width, "height": browser_cfg.viewport_height},
                device_scale_factor=self.device_scale_factor,
            )
        except PlaywrightError as e:
            await self.close()
            raise DependencyLoadFailure(f"浏览器启动失败: {e}") from e

        logger.info(f"浏览器已启动 (headless={browser_cfg.headless}, scale={self.device_scale_factor})")

    async def open(self, source: str | Path) -> Page:
        """打开文档页面"""
        await self.start()
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        url = resolve_source(source)
        page = await self._context.new_page()
        try:
            await page.goto(
                url,
                wait_until=self.config.browser.wait_until,
                timeout=self.config.timeouts.navigation_sec * 1000,
            )
        except PlaywrightError as e:
            await page.close()
            raise DocExportError(f"文档打开失败: {url}: {e}") from e

        logger.info(f"已打开文档: {url}")
        return page

    async def close(self) -> None:
        """关闭浏览器（可重复调用）"""
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

"""
浏览器能力模块 - Playwright 会话/DOM适配/栅格化

子模块：
- session: 浏览器启动与文档打开
- dom: 文档树适配器
- rasterizer: 元素截图
"""

from .dom import PlaywrightDocumentTree
from .rasterizer import PlaywrightRasterizer
from .session import BrowserSession, resolve_source

__all__ = [
    "BrowserSession",
    "PlaywrightDocumentTree",
    "PlaywrightRasterizer",
    "resolve_source",
]

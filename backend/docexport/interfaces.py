"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 核心分页逻辑只通过接口访问浏览器与PDF库，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from docexport.interfaces import IRasterizer

    class MyRasterizer(IRasterizer):
        async def render(self, surface: Surface, options: RenderOptions) -> Image.Image:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from PIL import Image

    from .models import ExportPlan, PageSizeSpec, ProgressState, RenderOptions, Surface


# ============================================================================
# 文档树（DOM）接口
# ============================================================================

class IDocumentTree(ABC):
    """文档树适配器接口 - 查询节点与读写内联样式"""

    @abstractmethod
    async def query_all(self, selector: str) -> list[Surface]:
        """
        按文档顺序返回所有匹配节点

        Args:
            selector: CSS选择器（可为逗号分隔的选择器组）

        Returns:
            匹配节点列表（不重复，文档顺序）
        """
        ...

    async def query_one(self, selector: str) -> Surface | None:
        """返回第一个匹配节点"""
        matches = await self.query_all(selector)
        return matches[0] if matches else None

    @abstractmethod
    async def query_within(self, surface: Surface, selector: str) -> list[Surface]:
        """在指定节点的子树中查询"""
        ...

    @abstractmethod
    async def root(self) -> Surface:
        """<html> 节点"""
        ...

    @abstractmethod
    async def body(self) -> Surface:
        """<body> 节点"""
        ...

    @abstractmethod
    async def get_style_text(self, surface: Surface) -> str:
        """读取内联样式序列化字符串（cssText）"""
        ...

    @abstractmethod
    async def set_style_text(self, surface: Surface, css_text: str) -> None:
        """整体覆盖内联样式"""
        ...

    @abstractmethod
    async def set_style(self, surface: Surface, props: dict[str, str]) -> None:
        """逐项设置内联样式属性（CSS属性名，如 min-height）"""
        ...

    @abstractmethod
    async def add_global_style(self, css: str) -> str:
        """
        向文档注入全局样式规则

        Returns:
            用于移除该规则的令牌
        """
        ...

    @abstractmethod
    async def remove_global_style(self, token: str) -> None:
        """移除注入的全局样式规则"""
        ...

    @abstractmethod
    async def scroll_to_top(self) -> None:
        """滚动到文档顶部"""
        ...

    @abstractmethod
    async def wait_for_images(self, timeout_ms: int) -> None:
        """
        等待所有内嵌图片加载完成

        每张图片最多等待 timeout_ms，超时或加载失败都视为完成，从不抛出。
        """
        ...


# ============================================================================
# 栅格化与文档组装接口
# ============================================================================

class IRasterizer(ABC):
    """栅格化器接口 - 将节点渲染为位图"""

    @abstractmethod
    async def render(self, surface: Surface, options: RenderOptions) -> Image.Image:
        """
        渲染单个节点

        Args:
            surface: 待渲染节点
            options: 缩放倍率/背景色/跨域设置

        Returns:
            渲染得到的位图（设备像素）

        Raises:
            RenderFailure: 渲染失败（跨域污染/内部错误）
        """
        ...


class IOutputDocument(ABC):
    """输出文档接口（单位：mm，原点在页面左上角）"""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """当前页数"""
        ...

    @abstractmethod
    def add_page(self) -> None:
        """追加新页并切换到该页"""
        ...

    @abstractmethod
    def add_image(self, image: Image.Image, x: float, y: float, w: float, h: float) -> None:
        """在当前页放置图像"""
        ...

    @abstractmethod
    def save(self, filename: str | Path) -> Path:
        """
        保存文档

        Raises:
            AssemblyFailure: 保存失败
        """
        ...


class IDocumentBackend(ABC):
    """文档组装后端接口"""

    @abstractmethod
    def new_document(self, page_size: PageSizeSpec) -> IOutputDocument:
        """创建新文档（自带第1页）"""
        ...


# ============================================================================
# 核心组件接口
# ============================================================================

class IBlankDetector(ABC):
    """空白页检测器接口"""

    @abstractmethod
    def is_blank(self, image: Image.Image) -> bool:
        """判断位图是否为空白（近白色）"""
        ...


class IPageEnumerator(ABC):
    """页面枚举器接口"""

    @abstractmethod
    async def enumerate(self) -> ExportPlan:
        """
        生成捕获计划

        顺序：封面（可选）→ .page 离散页 → 章节页 → 整体正文（flow）
        """
        ...


class IProgressObserver(Protocol):
    """进度观察者协议"""

    def __call__(self, state: ProgressState) -> None:
        ...


# ============================================================================
# 异常定义
# ============================================================================

class DocExportError(Exception):
    """基础异常"""
    pass


class DependencyLoadFailure(DocExportError):
    """外部能力（浏览器/PDF库）加载失败"""
    pass


class RenderFailure(DocExportError):
    """栅格化器渲染失败"""
    pass


class CaptureFailure(DocExportError):
    """单元捕获失败（渲染失败或超时），中止整次导出"""
    pass


class AssemblyFailure(DocExportError):
    """文档组装/保存失败"""
    pass


class ExportCancelled(DocExportError):
    """导出被取消"""
    pass


class IllegalTransition(DocExportError):
    """状态机非法迁移"""
    pass

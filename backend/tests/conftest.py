"""
pytest 配置与公共 fixtures

不依赖真实浏览器/PDF库：
- FakeElement / FakeDocumentTree: 内存中的文档树（支持 tag/.class/后代/逗号 选择器）
- FakeRasterizer: 按捕获时的内联样式生成纯色位图，并记录捕获时刻的样式
- RecordingDocumentBackend: 记录页面与图像落点的输出文档

使用方式：
    def test_something(make_element, make_tree, runtime_config):
        tree = make_tree(make_element("div", ["doc-body"]))
"""

from __future__ import annotations

import asyncio
import itertools
import re
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from docexport.config import RuntimeConfig
from docexport.interfaces import (
    AssemblyFailure,
    DependencyLoadFailure,
    IDocumentBackend,
    IDocumentTree,
    IOutputDocument,
    IRasterizer,
    RenderFailure,
)
from docexport.models import PageSizeSpec, RenderOptions, Surface

# ============================================================================
# 内存文档树
# ============================================================================

_ids = itertools.count(1)
_COMPOUND = re.compile(r"^([a-zA-Z][\w-]*)?((?:\.[\w-]+)*)$")


def parse_css(css_text: str) -> dict[str, str]:
    style: dict[str, str] = {}
    for decl in css_text.split(";"):
        if ":" in decl:
            name, value = decl.split(":", 1)
            style[name.strip()] = value.strip()
    return style


class FakeElement:
    """内存DOM节点"""

    def __init__(
        self,
        tag: str = "div",
        classes: list[str] | None = None,
        children: list[FakeElement] | None = None,
        style: str = "",
        fill: str = "#336699",
        content_height: int = 1000,
    ):
        self.node_id = f"e{next(_ids)}"
        self.tag = tag
        self.classes = list(classes or [])
        self.style = parse_css(style)
        self.fill = fill
        self.content_height = content_height
        self.parent: FakeElement | None = None
        self.children: list[FakeElement] = []
        for child in children or []:
            self.append(child)

    def append(self, child: FakeElement) -> FakeElement:
        child.parent = self
        self.children.append(child)
        return child

    def iter(self):
        """先序遍历（含自身，即文档顺序）"""
        yield self
        for child in self.children:
            yield from child.iter()

    @property
    def css_text(self) -> str:
        return " ".join(f"{k}: {v};" for k, v in self.style.items())

    def __repr__(self) -> str:
        return f"<{self.tag} {'.'.join(self.classes)} {self.node_id}>"


def _match_compound(el: FakeElement, compound: str) -> bool:
    m = _COMPOUND.match(compound)
    if m is None:
        raise ValueError(f"不支持的选择器: {compound}")
    tag, classes = m.group(1), [c for c in m.group(2).split(".") if c]
    if tag and el.tag != tag:
        return False
    return all(c in el.classes for c in classes)


def _match_selector(el: FakeElement, parts: list[str]) -> bool:
    if not _match_compound(el, parts[-1]):
        return False
    rest = parts[:-1]
    node = el.parent
    while rest and node is not None:
        if _match_compound(node, rest[-1]):
            rest = rest[:-1]
        node = node.parent
    return not rest


class FakeDocumentTree(IDocumentTree):
    """内存文档树（IDocumentTree 实现）"""

    def __init__(self, *body_children: FakeElement):
        self.body_el = FakeElement("body", children=list(body_children))
        self.html = FakeElement("html", children=[self.body_el])
        self.global_styles: dict[str, str] = {}
        self.global_style_log: list[str] = []
        self.mutations = 0
        self.scrolled = False
        self.images_waited_ms: int | None = None
        self._tokens = itertools.count(1)

    def surface(self, el: FakeElement) -> Surface:
        return Surface(handle=el, label=repr(el), classes=list(el.classes), key=el.node_id)

    def find(self, selector: str) -> list[FakeElement]:
        return [s.handle for s in self._select(self.html.iter(), selector)]

    def styles(self) -> dict[str, dict[str, str]]:
        """所有节点内联样式的快照"""
        return {el.node_id: dict(el.style) for el in self.html.iter()}

    def _select(self, nodes, selector: str) -> list[Surface]:
        groups = [g.split() for g in selector.split(",") if g.strip()]
        return [self.surface(el) for el in nodes if any(_match_selector(el, parts) for parts in groups)]

    async def query_all(self, selector: str) -> list[Surface]:
        return self._select(self.html.iter(), selector)

    async def query_within(self, surface: Surface, selector: str) -> list[Surface]:
        descendants = itertools.islice(surface.handle.iter(), 1, None)
        return self._select(descendants, selector)

    async def root(self) -> Surface:
        return self.surface(self.html)

    async def body(self) -> Surface:
        return self.surface(self.body_el)

    async def get_style_text(self, surface: Surface) -> str:
        return surface.handle.css_text

    async def set_style_text(self, surface: Surface, css_text: str) -> None:
        surface.handle.style = parse_css(css_text)

    async def set_style(self, surface: Surface, props: dict[str, str]) -> None:
        self.mutations += 1
        surface.handle.style.update(props)

    async def add_global_style(self, css: str) -> str:
        token = f"g{next(self._tokens)}"
        self.global_styles[token] = css
        self.global_style_log.append(f"add:{token}")
        return token

    async def remove_global_style(self, token: str) -> None:
        self.global_styles.pop(token, None)
        self.global_style_log.append(f"remove:{token}")

    async def scroll_to_top(self) -> None:
        self.scrolled = True

    async def wait_for_images(self, timeout_ms: int) -> None:
        self.images_waited_ms = timeout_ms


# ============================================================================
# 栅格化器
# ============================================================================

def _px(value: str | None) -> float | None:
    if value and value.endswith("px"):
        return float(value[:-2])
    return None


class FakeRasterizer(IRasterizer):
    """按捕获时的内联样式生成纯色位图"""

    def __init__(self, tree: FakeDocumentTree):
        self.tree = tree
        self.rendered: list[dict] = []
        self.fail_on: set[str] = set()
        self.hang_on: set[str] = set()

    async def render(self, surface: Surface, options: RenderOptions) -> Image.Image:
        el: FakeElement = surface.handle
        self.rendered.append(
            {
                "node_id": el.node_id,
                "style": dict(el.style),
                "options": options,
                "global_styles": dict(self.tree.global_styles),
                "styles": self.tree.styles(),
            }
        )
        if el.node_id in self.fail_on:
            raise RenderFailure(f"模拟渲染失败: {el}")
        if el.node_id in self.hang_on:
            await asyncio.sleep(3600)

        width = _px(el.style.get("width")) or 794
        height = _px(el.style.get("height")) or el.content_height
        size = (round(width * options.scale), round(height * options.scale))
        mode = "RGBA" if options.background is None else "RGB"
        return Image.new(mode, size, el.fill)

    @property
    def rendered_ids(self) -> list[str]:
        return [r["node_id"] for r in self.rendered]


# ============================================================================
# 输出文档
# ============================================================================

class RecordingDocument(IOutputDocument):
    """记录每页图像落点的输出文档"""

    def __init__(self, page_size: PageSizeSpec, save_error: bool = False):
        self.page_size = page_size
        self.pages: list[list[tuple]] = [[]]
        self.saved_to: Path | None = None
        self.save_error = save_error

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def add_page(self) -> None:
        self.pages.append([])

    def add_image(self, image: Image.Image, x: float, y: float, w: float, h: float) -> None:
        self.pages[-1].append((image, x, y, w, h))

    def save(self, filename: str | Path) -> Path:
        if self.save_error:
            raise AssemblyFailure(f"模拟保存失败: {filename}")
        self.saved_to = Path(filename)
        return self.saved_to


class RecordingDocumentBackend(IDocumentBackend):
    def __init__(self, unavailable: bool = False, save_error: bool = False):
        self.unavailable = unavailable
        self.save_error = save_error
        self.documents: list[RecordingDocument] = []

    def new_document(self, page_size: PageSizeSpec) -> IOutputDocument:
        if self.unavailable:
            raise DependencyLoadFailure("模拟: PDF库不可用")
        document = RecordingDocument(page_size, save_error=self.save_error)
        self.documents.append(document)
        return document

    @property
    def document(self) -> RecordingDocument:
        return self.documents[-1]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """运行期配置（默认值）"""
    return RuntimeConfig()


@pytest.fixture
def make_element():
    """节点构造器"""
    return FakeElement


@pytest.fixture
def make_tree():
    """文档树构造器"""
    return FakeDocumentTree


@pytest.fixture
def make_rasterizer():
    return FakeRasterizer


@pytest.fixture
def make_backend():
    return RecordingDocumentBackend


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)

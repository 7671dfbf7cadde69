"""
DOM适配器 - 基于 Playwright Page 的文档树实现

所有读写都在页面内执行JS；节点句柄为 ElementHandle。
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from ..interfaces import IDocumentTree
from ..models import Surface

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

# 节点标识保存在页面内的 WeakMap 中，不改动DOM
_NODE_INFO_JS = """el => {
  const ids = window.__docexportNodeIds || (window.__docexportNodeIds = new WeakMap());
  if (!ids.has(el)) {
    window.__docexportNextId = (window.__docexportNextId || 0) + 1;
    ids.set(el, `n${window.__docexportNextId}`);
  }
  return { key: ids.get(el), classes: Array.from(el.classList) };
}"""
_GET_STYLE_JS = "el => el.style.cssText"
_SET_STYLE_TEXT_JS = "(el, css) => { el.style.cssText = css; }"
_SET_STYLE_JS = """(el, props) => {
  for (const [name, value] of Object.entries(props)) {
    el.style.setProperty(name, value);
  }
}"""
_ADD_STYLE_JS = """([token, css]) => {
  const style = document.createElement('style');
  style.setAttribute('data-docexport-token', token);
  style.textContent = css;
  document.head.appendChild(style);
}"""
_REMOVE_STYLE_JS = """(token) => {
  document.querySelectorAll(`style[data-docexport-token="${token}"]`)
    .forEach(s => s.remove());
}"""
# 每张图片最多等待 timeout 毫秒；加载失败/超时均视为完成
_WAIT_IMAGES_JS = """(timeout) => Promise.all(
  Array.from(document.querySelectorAll('img')).map(img => {
    if (img.complete && img.naturalWidth > 0) return Promise.resolve();
    return new Promise(ok => {
      img.addEventListener('load', ok, { once: true });
      img.addEventListener('error', ok, { once: true });
      setTimeout(ok, timeout);
    });
  })
).then(() => true)"""


class PlaywrightDocumentTree(IDocumentTree):
    """Playwright 文档树实现"""

    def __init__(self, page: Page):
        self.page = page

    async def _wrap(self, handles: list[ElementHandle], selector: str) -> list[Surface]:
        surfaces = []
        for i, handle in enumerate(handles):
            info = await handle.evaluate(_NODE_INFO_JS)
            surfaces.append(
                Surface(handle=handle, label=f"{selector}#{i}", classes=list(info["classes"]), key=info["key"])
            )
        return surfaces

    async def query_all(self, selector: str) -> list[Surface]:
        handles = await self.page.query_selector_all(selector)
        return await self._wrap(handles, selector)

    async def query_within(self, surface: Surface, selector: str) -> list[Surface]:
        handles = await surface.handle.query_selector_all(selector)
        return await self._wrap(handles, f"{surface.label} {selector}")

    async def _document_node(self, expression: str, label: str) -> Surface:
        handle = (await self.page.evaluate_handle(expression)).as_element()
        info = await handle.evaluate(_NODE_INFO_JS)
        return Surface(handle=handle, label=label, classes=list(info["classes"]), key=info["key"])

    async def root(self) -> Surface:
        return await self._document_node("() => document.documentElement", "html")

    async def body(self) -> Surface:
        return await self._document_node("() => document.body", "body")

    async def get_style_text(self, surface: Surface) -> str:
        return await surface.handle.evaluate(_GET_STYLE_JS)

    async def set_style_text(self, surface: Surface, css_text: str) -> None:
        await surface.handle.evaluate(_SET_STYLE_TEXT_JS, css_text)

    async def set_style(self, surface: Surface, props: dict[str, str]) -> None:
        await surface.handle.evaluate(_SET_STYLE_JS, props)

    async def add_global_style(self, css: str) -> str:
        token = uuid.uuid4().hex
        await self.page.evaluate(_ADD_STYLE_JS, [token, css])
        return token

    async def remove_global_style(self, token: str) -> None:
        await self.page.evaluate(_REMOVE_STYLE_JS, token)

    async def scroll_to_top(self) -> None:
        await self.page.evaluate("() => window.scrollTo(0, 0)")

    async def wait_for_images(self, timeout_ms: int) -> None:
        await self.page.evaluate(_WAIT_IMAGES_JS, timeout_ms)

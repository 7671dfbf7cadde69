"""
样式快照守卫 - 变更窗口前后保存/恢复节点内联样式

职责：
1. begin/end：快照 cssText 并在结束时原样恢复（恰好一次）
2. presentation_lease：作用域化的"展示租约"，任何退出路径都恢复
3. PresentationLedger：记录整文档级变更，按逆序恢复（幂等）
4. GlobalStyleOverride：全局圆角抑制规则，防重复安装/卸载

测试要点：
- test_lease_restores_on_exception: 异常时仍恢复
- test_end_is_idempotent: 重复end不会二次写入
- test_ledger_reverse_order: 逆序恢复
- test_override_guarded: 重复install/uninstall无副作用
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..interfaces import IDocumentTree
    from ..models import Surface

logger = logging.getLogger(__name__)


@dataclass
class StyleSnapshot:
    """内联样式快照令牌"""
    surface: Surface
    css_text: str
    restored: bool = False


class StyleSnapshotGuard:
    """样式快照守卫（无共享可变状态，可在不同节点上嵌套使用）"""

    def __init__(self, tree: IDocumentTree):
        self.tree = tree

    async def begin(self, surface: Surface) -> StyleSnapshot:
        """在首次变更前快照"""
        css_text = await self.tree.get_style_text(surface)
        return StyleSnapshot(surface=surface, css_text=css_text)

    async def end(self, surface: Surface, snapshot: StyleSnapshot) -> None:
        """恢复快照（已恢复则忽略）"""
        if snapshot.restored:
            return
        if snapshot.surface is not surface:
            raise ValueError(f"快照不属于该节点: {surface}")
        await self.tree.set_style_text(surface, snapshot.css_text)
        snapshot.restored = True


@asynccontextmanager
async def presentation_lease(
    tree: IDocumentTree,
    surface: Surface,
    props: dict[str, str] | None = None,
) -> AsyncIterator[StyleSnapshot]:
    """
    展示租约：快照 → 应用样式 → 使用 → 无条件恢复

    使用方式：
        async with presentation_lease(tree, page, {"overflow": "hidden"}):
            image = await rasterizer.render(page, options)
    """
    guard = StyleSnapshotGuard(tree)
    snapshot = await guard.begin(surface)
    try:
        if props:
            await tree.set_style(surface, props)
        yield snapshot
    finally:
        await guard.end(surface, snapshot)


class PresentationLedger:
    """整文档级变更台账（隐藏界面元素、html/body归一化）"""

    def __init__(self, tree: IDocumentTree):
        self.tree = tree
        self._guard = StyleSnapshotGuard(tree)
        self._entries: list[StyleSnapshot] = []

    def __len__(self) -> int:
        return len(self._entries)

    async def mutate(self, surface: Surface, props: dict[str, str]) -> StyleSnapshot:
        """快照后应用样式，并记录待恢复"""
        snapshot = await self._guard.begin(surface)
        self._entries.append(snapshot)
        await self.tree.set_style(surface, props)
        return snapshot

    async def restore_all(self) -> int:
        """按应用的逆序恢复全部变更（可重复调用）"""
        restored = 0
        while self._entries:
            snapshot = self._entries.pop()
            await self._guard.end(snapshot.surface, snapshot)
            restored += 1
        return restored


class GlobalStyleOverride:
    """全局样式覆盖（捕获期间抑制圆角，避免裁切边缘出现圆角残影）"""

    def __init__(self, tree: IDocumentTree, css: str):
        self.tree = tree
        self.css = css
        self._token: str | None = None

    @property
    def installed(self) -> bool:
        return self._token is not None

    async def install(self) -> bool:
        """安装规则（已安装则忽略）"""
        if self._token is not None:
            logger.debug("全局样式已安装，忽略重复安装")
            return False
        self._token = await self.tree.add_global_style(self.css)
        return True

    async def uninstall(self) -> bool:
        """卸载规则（未安装则忽略）"""
        if self._token is None:
            return False
        token, self._token = self._token, None
        await self.tree.remove_global_style(token)
        return True

    async def __aenter__(self) -> GlobalStyleOverride:
        await self.install()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.uninstall()

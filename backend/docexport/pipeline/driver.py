"""
文档组装驱动 - 编排一次完整导出

职责：
1. 按状态机顺序执行 准备 → 捕获(→切片) → 收尾
2. 逐单元串行捕获，空白页跳过，首个页面不额外插入空页
3. 更新进度（单调，flow 路径切片后重算 total）
4. 任何退出路径（成功/失败/取消）都执行整文档恢复兜底

测试要点：
- test_cover_and_pages_order: 页序
- test_blank_page_skipped: 空白页跳过
- test_flow_slicing: flow 切片与进度重算
- test_failure_restores_document: 失败时文档恢复
- test_cancel_between_units: 单元间取消
- test_empty_document: 空文档不报错
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from ..capture import (
    BlankDetector,
    CaptureOrchestrator,
    GlobalStyleOverride,
    OverflowSlicer,
    PageEnumerator,
    PresentationLedger,
)
from ..config import RuntimeConfig, get_config
from ..interfaces import (
    DocExportError,
    ExportCancelled,
    IDocumentBackend,
    IDocumentTree,
    IOutputDocument,
    IProgressObserver,
    IRasterizer,
)
from ..models import (
    DiscreteStrategy,
    ExportJob,
    ExportPlan,
    ExportState,
    FlowStrategy,
    PageSizeSpec,
    PageSlice,
)
from .progress import ProgressReporter
from .stages import StageMachine

logger = logging.getLogger(__name__)


class PageAssembler:
    """按顺序写入页面切片（首页不额外插入新页）"""

    def __init__(self, document: IOutputDocument):
        self.document = document
        self.needs_new_page = False
        self.pages_written = 0

    def append(self, page_slice: PageSlice) -> None:
        if self.needs_new_page:
            self.document.add_page()
        self.needs_new_page = True

        x, y = page_slice.offset_mm
        w, h = page_slice.size_mm
        self.document.add_image(page_slice.image, x, y, w, h)
        self.pages_written += 1


class DocumentAssemblyDriver:
    """文档组装驱动（每次 run 为一次独立导出）"""

    def __init__(
        self,
        tree: IDocumentTree,
        rasterizer: IRasterizer,
        backend: IDocumentBackend,
        config: RuntimeConfig | None = None,
        observers: list[IProgressObserver] | None = None,
    ):
        self.config = config or get_config()
        self.tree = tree
        self.backend = backend
        self.observers = list(observers or [])

        self.enumerator = PageEnumerator(tree, self.config)
        self.orchestrator = CaptureOrchestrator(tree, rasterizer, self.config)
        self.blank_detector = BlankDetector(self.config.blank_detection)
        self.slicer = OverflowSlicer(self.config.page, self.config.flow, self.config.page.background)

        # 以下为单次导出状态，run() 开始时重建
        self.machine = StageMachine()
        self.progress = ProgressReporter(self.observers)
        self.ledger = PresentationLedger(tree)
        self.override = GlobalStyleOverride(tree, self.config.capture.corner_radius_css)

    async def run(self, filename: str | Path | None = None, job: ExportJob | None = None) -> ExportJob:
        """执行导出，成功返回任务记录；失败抛出 DocExportError"""
        job = job or ExportJob()
        job.output_path = self.config.resolve_output(filename)
        self._reset()
        job.mark_started()

        try:
            document = await self._prepare(job)
            plan = await self._enter_capturing(job)
            assembler = PageAssembler(document)
            await self._capture_all(plan, assembler, job)
            await self._finalize(document, job)

        except ExportCancelled as e:
            self._transition(job, ExportState.CANCELLED)
            job.mark_failed(str(e))
            logger.warning(f"[{job.job_id}] 导出已取消")
            raise

        except DocExportError as e:
            self._fail(job, e)
            raise

        except Exception as e:
            self._fail(job, e)
            raise DocExportError(f"导出过程中出现未预期错误: {e}") from e

        finally:
            await self._safety_restore(job)

        return job

    # ------------------------------------------------------------------
    # 各阶段
    # ------------------------------------------------------------------

    async def _prepare(self, job: ExportJob) -> IOutputDocument:
        """准备：加载文档能力、等待图片、回到顶部（不做任何DOM变更）"""
        self._transition(job, ExportState.PREPARING)
        self.progress.start("准备中…")

        page = self.config.page
        document = self.backend.new_document(
            PageSizeSpec(width_mm=page.width_mm, height_mm=page.height_mm, orientation=page.orientation)
        )

        await self.tree.scroll_to_top()
        self.progress.status("等待图片加载…")
        await self.tree.wait_for_images(self.config.capture.image_wait_timeout_ms)
        return document

    async def _enter_capturing(self, job: ExportJob) -> ExportPlan:
        """隐藏界面元素、归一化整文档背景/边距，并枚举捕获单元"""
        self._transition(job, ExportState.CAPTURING)
        background = self.config.page.background

        for chrome in await self.tree.query_all(self.config.selectors.chrome):
            await self.ledger.mutate(chrome, {"display": "none"})

        await self.ledger.mutate(await self.tree.root(), {"background": background})
        await self.ledger.mutate(
            await self.tree.body(),
            {"background": background, "max-width": "none", "margin": "0", "padding": "0"},
        )

        plan = await self.enumerator.enumerate()
        self.progress.set_total(plan.total)
        logger.info(
            f"[{job.job_id}] 捕获计划: 封面={'有' if plan.cover else '无'}, "
            f"策略={plan.strategy.kind}, 单元数={plan.total}"
        )
        return plan

    async def _capture_all(self, plan: ExportPlan, assembler: PageAssembler, job: ExportJob) -> None:
        if plan.is_empty:
            logger.info(f"[{job.job_id}] 无可导出页面，将输出空文档")
            return

        if self.config.capture.suppress_corner_radius:
            await self.override.install()

        position = 0
        if plan.cover is not None:
            self._check_cancel(job)
            position += 1
            self.progress.update(position, "渲染封面中…")
            image = await self.orchestrator.capture(plan.cover)
            assembler.append(self._full_page(image))

        strategy = plan.strategy
        if isinstance(strategy, DiscreteStrategy):
            for unit in strategy.units:
                self._check_cancel(job)
                position += 1
                self.progress.update(position, f"渲染第 {position} 页…")
                image = await self.orchestrator.capture(unit)
                if self._is_blank(image):
                    job.pages_skipped += 1
                    job.add_flag(f"空白页已跳过:{unit.surface}")
                    logger.info(f"[{job.job_id}] 空白页已跳过: {unit.surface}")
                    continue
                assembler.append(self._full_page(image))

        elif isinstance(strategy, FlowStrategy):
            # 正文的进度步数在切片数确定后才计入
            self._check_cancel(job)
            self.progress.status("渲染正文中…")
            image = await self.orchestrator.capture(strategy.unit)
            await self._slice_flow(image, plan, assembler, job)

        await self.override.uninstall()
        job.pages_written = assembler.pages_written

    async def _slice_flow(
        self,
        image: Image.Image,
        plan: ExportPlan,
        assembler: PageAssembler,
        job: ExportJob,
    ) -> None:
        """flow：整图切片后逐页写入"""
        self._transition(job, ExportState.SLICING)
        cover_count = 1 if plan.cover else 0

        if self._is_blank(image):
            slices: list[PageSlice] = []
            job.add_flag("正文为空白，未输出正文页")
            logger.info(f"[{job.job_id}] 正文捕获结果为空白，跳过切片")
        else:
            slices = self.slicer.slice(image)

        self.progress.retotal(cover_count + len(slices))
        logger.info(f"[{job.job_id}] 正文切片: {len(slices)} 页 (图像 {image.width}x{image.height}px)")

        for n, page_slice in enumerate(slices, start=1):
            self._check_cancel(job)
            self.progress.update(cover_count + n, f"处理第 {n} 页…")
            assembler.append(page_slice)

        self._transition(job, ExportState.CAPTURING)

    async def _finalize(self, document: IOutputDocument, job: ExportJob) -> Path:
        """收尾：移除全局样式、逆序恢复整文档变更、保存"""
        self._transition(job, ExportState.FINALIZING)
        await self.override.uninstall()
        restored = await self.ledger.restore_all()
        logger.debug(f"[{job.job_id}] 已恢复 {restored} 处整文档样式")

        self.progress.complete("保存PDF中…")
        path = document.save(job.output_path)

        self._transition(job, ExportState.DONE)
        job.mark_done()
        logger.info(
            f"[{job.job_id}] 导出完成: {path} "
            f"(写入 {job.pages_written} 页, 跳过空白 {job.pages_skipped} 页)"
        )
        return path

    # ------------------------------------------------------------------
    # 辅助
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.machine = StageMachine()
        self.progress = ProgressReporter(self.observers)
        self.ledger = PresentationLedger(self.tree)
        self.override = GlobalStyleOverride(self.tree, self.config.capture.corner_radius_css)

    def _transition(self, job: ExportJob, state: ExportState) -> None:
        previous = self.machine.state
        self.machine.advance(state)
        job.state = state
        logger.info(f"[{job.job_id}] 状态: {previous.value} -> {state.value}")

    def _fail(self, job: ExportJob, error: Exception) -> None:
        logger.error(f"[{job.job_id}] 导出失败({self.machine.state.value}): {error}")
        if self.machine.is_active:
            self._transition(job, ExportState.FAILED)
        job.mark_failed(str(error))

    def _check_cancel(self, job: ExportJob) -> None:
        if job.cancel_requested:
            raise ExportCancelled(f"导出已取消: {job.job_id}")

    def _is_blank(self, image: Image.Image) -> bool:
        return self.config.blank_detection.enabled and self.blank_detector.is_blank(image)

    def _full_page(self, image: Image.Image) -> PageSlice:
        page = self.config.page
        return PageSlice(
            image=image,
            offset_mm=(0.0, 0.0),
            size_mm=(page.width_mm, page.height_mm),
            height_px=float(image.height),
        )

    async def _safety_restore(self, job: ExportJob) -> None:
        """兜底恢复（幂等，成功路径下为空操作）"""
        for action in (self.override.uninstall, self.ledger.restore_all):
            try:
                await action()
            except Exception:
                logger.exception(f"[{job.job_id}] 兜底恢复失败")

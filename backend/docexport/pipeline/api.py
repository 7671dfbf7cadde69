"""
对外入口 - 一次调用完成导出

提供：
- export_document: 打开文档 → 逐页栅格化 → 组装PDF（异步）
- export_document_sync: 同步包装
- print_document: 备用路径，调用浏览器原生打印生成PDF
- format_failure_message: 面向用户的失败提示（包含备用路径）
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..browser import BrowserSession, PlaywrightDocumentTree, PlaywrightRasterizer
from ..config import RuntimeConfig, get_config
from ..doc_gen import ReportLabDocumentBackend
from ..interfaces import AssemblyFailure, DocExportError, IProgressObserver
from ..models import ExportJob
from .driver import DocumentAssemblyDriver

logger = logging.getLogger(__name__)


async def export_document(
    source: str | Path,
    filename: str | Path | None = None,
    *,
    config: RuntimeConfig | None = None,
    observers: list[IProgressObserver] | None = None,
    job: ExportJob | None = None,
) -> ExportJob:
    """
    将HTML文档导出为PDF

    Args:
        source: 本地HTML路径或URL
        filename: 输出文件名（缺省取配置 output.default_filename）
        config: 运行期配置
        observers: 进度观察者
        job: 外部持有的任务记录（可用于 request_cancel）

    Returns:
        完成的任务记录

    Raises:
        DocExportError: 导出失败（文档已恢复原状）
    """
    config = config or get_config()
    job = job or ExportJob(source=str(source))
    job.source = str(source)

    try:
        async with BrowserSession(config) as session:
            page = await session.open(source)
            driver = DocumentAssemblyDriver(
                tree=PlaywrightDocumentTree(page),
                rasterizer=PlaywrightRasterizer(
                    device_scale_factor=session.device_scale_factor,
                    timeout_ms=config.timeouts.unit_capture_sec * 1000,
                ),
                backend=ReportLabDocumentBackend(jpeg_quality=config.capture.jpeg_quality),
                config=config,
                observers=observers,
            )
            await driver.run(filename, job)
    except DocExportError as e:
        if not job.errors:
            job.mark_failed(str(e))
        logger.error(format_failure_message(e, source, config))
        raise

    return job


def export_document_sync(
    source: str | Path,
    filename: str | Path | None = None,
    **kwargs,
) -> ExportJob:
    """同步导出（内部启动事件循环）"""
    return asyncio.run(export_document(source, filename, **kwargs))


async def print_document(
    source: str | Path,
    filename: str | Path | None = None,
    *,
    config: RuntimeConfig | None = None,
) -> Path:
    """备用路径：浏览器原生打印为PDF（不做逐页栅格化）"""
    config = config or get_config()
    output_path = config.resolve_output(filename)

    async with BrowserSession(config) as session:
        page = await session.open(source)
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        try:
            await page.emulate_media(media="print")
            pdf_bytes = await asyncio.wait_for(
                page.pdf(
                    width=f"{config.page.width_mm}mm",
                    height=f"{config.page.height_mm}mm",
                    landscape=config.page.orientation == "landscape",
                    print_background=True,
                ),
                timeout=config.timeouts.print_pdf_sec,
            )
        except asyncio.TimeoutError as e:
            raise DocExportError(f"浏览器打印超时: {config.timeouts.print_pdf_sec}s") from e
        except PlaywrightError as e:
            raise DocExportError(f"浏览器打印失败: {e}") from e

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(pdf_bytes)
    except OSError as e:
        raise AssemblyFailure(f"PDF保存失败: {output_path}: {e}") from e

    logger.info(f"浏览器打印完成: {output_path}")
    return output_path


def format_failure_message(
    error: BaseException,
    source: str | Path,
    config: RuntimeConfig | None = None,
) -> str:
    """生成失败提示（指向浏览器原生打印的备用命令）"""
    config = config or get_config()
    return (
        f"PDF生成失败:\n{error}\n\n"
        f"可改用浏览器打印功能生成PDF:\n"
        f"  {config.output.fallback_command} {source}"
    )

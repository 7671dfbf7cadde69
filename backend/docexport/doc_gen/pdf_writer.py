"""
PDF写入器 - 将页面位图组装为固定尺寸PDF

职责：
1. 创建A4（或配置尺寸）文档，初始即有第1页
2. 以mm为单位、左上角为原点放置图像（内部换算为PDF点、左下角原点）
3. 图像按JPEG(质量92)嵌入，透明像素铺白
4. 保存PDF，失败转为 AssemblyFailure
5. 保存前校验写出的页数与组装页数一致

依赖：
- reportlab: PDF画布
- Pillow: 图像编码
"""

from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path

from PIL import Image

from ..interfaces import AssemblyFailure, DependencyLoadFailure, IDocumentBackend, IOutputDocument
from ..models import PageSizeSpec

logger = logging.getLogger(__name__)

MM_TO_PT = 72.0 / 25.4
_PAGE_OBJECT = re.compile(rb"/Type\s*/Page(?![A-Za-z])")


def _require_reportlab():
    try:
        from reportlab.pdfgen import canvas  # type: ignore

        return canvas
    except ImportError as e:
        raise DependencyLoadFailure(
            "缺少依赖: 需要安装 reportlab 才能生成PDF"
        ) from e


def flatten_to_rgb(image: Image.Image, background: str = "#ffffff") -> Image.Image:
    """透明/调色板图像铺底转为RGB"""
    if image.mode == "RGB":
        return image
    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background)
    canvas.paste(rgba, (0, 0), rgba)
    return canvas


class ReportLabDocument(IOutputDocument):
    """基于 reportlab 画布的输出文档"""

    def __init__(self, page_size: PageSizeSpec, jpeg_quality: int = 92):
        canvas_mod = _require_reportlab()
        self.page_size = page_size
        self.jpeg_quality = jpeg_quality
        self._buffer = BytesIO()
        self._width_pt = page_size.width_mm * MM_TO_PT
        self._height_pt = page_size.height_mm * MM_TO_PT
        self._canvas = canvas_mod.Canvas(self._buffer, pagesize=(self._width_pt, self._height_pt))
        self._page_count = 1

    @property
    def page_count(self) -> int:
        return self._page_count

    def add_page(self) -> None:
        self._canvas.showPage()
        self._page_count += 1

    def add_image(self, image: Image.Image, x: float, y: float, w: float, h: float) -> None:
        from reportlab.lib.utils import ImageReader  # type: ignore

        rgb = flatten_to_rgb(image)
        data = BytesIO()
        rgb.save(data, format="JPEG", quality=self.jpeg_quality)
        data.seek(0)

        # 左上角原点(mm) → 左下角原点(pt)
        x_pt = x * MM_TO_PT
        w_pt = w * MM_TO_PT
        h_pt = h * MM_TO_PT
        y_pt = self._height_pt - y * MM_TO_PT - h_pt
        self._canvas.drawImage(ImageReader(data), x_pt, y_pt, width=w_pt, height=h_pt)

    def save(self, filename: str | Path) -> Path:
        path = Path(filename)
        try:
            self._canvas.showPage()
            self._canvas.save()
            pdf_bytes = self._buffer.getvalue()
            written = count_pdf_pages(pdf_bytes)
            if written != self._page_count:
                raise AssemblyFailure(f"PDF页数不一致: 应为 {self._page_count} 页, 实际 {written} 页")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(pdf_bytes)
        except OSError as e:
            raise AssemblyFailure(f"PDF保存失败: {path}: {e}") from e
        logger.info(f"PDF已保存: {path} ({self._page_count} 页)")
        return path


class ReportLabDocumentBackend(IDocumentBackend):
    """reportlab 文档组装后端"""

    def __init__(self, jpeg_quality: int = 92):
        self.jpeg_quality = jpeg_quality

    def new_document(self, page_size: PageSizeSpec) -> IOutputDocument:
        return ReportLabDocument(page_size, jpeg_quality=self.jpeg_quality)


def count_pdf_pages(source: bytes | str | Path) -> int:
    """
    PDF页数统计

    按页对象字典中的 /Type /Page 计数（/Type /Pages 为页树节点，不计入）。
    适用于 reportlab 等不使用对象流的输出。
    """
    data = source if isinstance(source, bytes) else Path(source).read_bytes()
    return len(_PAGE_OBJECT.findall(data))

"""
文档组装模块 - 页面位图 → PDF

子模块：
- pdf_writer: reportlab PDF写入与页数统计
"""

from .pdf_writer import ReportLabDocument, ReportLabDocumentBackend, count_pdf_pages, flatten_to_rgb

__all__ = [
    "ReportLabDocument",
    "ReportLabDocumentBackend",
    "count_pdf_pages",
    "flatten_to_rgb",
]

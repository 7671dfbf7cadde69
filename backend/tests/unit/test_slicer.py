"""
溢出切片器单元测试

内容区: CW = 210-16-16 = 178mm, CH = 297-18-22 = 257mm
宽 356px 的图像: ρ = 2 px/mm, 页高 514px
"""

import pytest
from PIL import Image

from docexport.capture import ContentArea, OverflowSlicer
from docexport.config import FlowConfig, PageConfig


class TestContentArea:
    def test_default_area(self):
        area = ContentArea(PageConfig(), FlowConfig())
        assert area.width == 178.0
        assert area.height == 257.0

    def test_margins_exceed_page(self):
        with pytest.raises(ValueError):
            ContentArea(PageConfig(), FlowConfig(margin_left_mm=150, margin_right_mm=60))


class TestOverflowSlicer:
    """切片测试"""

    def test_three_slices(self):
        """测试 H=1200 切为 514/514/172"""
        slicer = OverflowSlicer()
        image = Image.new("RGB", (356, 1200), "#336699")

        slices = slicer.slice(image)

        assert slicer.px_per_mm(image) == 2.0
        assert slicer.page_height_px(image) == 514.0
        assert [s.height_px for s in slices] == [514.0, 514.0, 172.0]
        assert [s.source_top_px for s in slices] == [0.0, 514.0, 1028.0]
        assert [s.image.size for s in slices] == [(356, 514), (356, 514), (356, 172)]
        assert [s.size_mm for s in slices] == [(178.0, 257.0), (178.0, 257.0), (178.0, 86.0)]
        assert all(s.offset_mm == (16.0, 18.0) for s in slices)

    def test_slices_cover_source_height(self):
        """测试切片高度之和等于原图高度"""
        image = Image.new("RGB", (1588, 6000), "#336699")
        slices = OverflowSlicer().slice(image)
        assert len(slices) == OverflowSlicer().slice_count(image) == 3
        assert sum(s.height_px for s in slices) == pytest.approx(6000)
        assert all(s.size_mm[1] <= 257.0 + 1e-9 for s in slices)

    def test_exact_multiple(self):
        image = Image.new("RGB", (356, 1028), "#336699")
        slices = OverflowSlicer().slice(image)
        assert [s.height_px for s in slices] == [514.0, 514.0]

    def test_short_image_single_slice(self):
        image = Image.new("RGB", (356, 100), "#336699")
        slices = OverflowSlicer().slice(image)
        assert len(slices) == 1
        assert slices[0].size_mm == (178.0, 50.0)

    def test_pixels_copied(self):
        """测试切片内容来自源图对应区域"""
        image = Image.new("RGB", (356, 1200), "white")
        image.paste((200, 0, 0), (0, 600, 356, 700))
        slices = OverflowSlicer().slice(image)
        assert slices[0].image.getpixel((10, 10)) == (255, 255, 255)
        assert slices[1].image.getpixel((10, 600 - 514 + 10)) == (200, 0, 0)

    def test_transparent_filled_white(self):
        """测试透明区域铺白"""
        image = Image.new("RGBA", (356, 100), (0, 0, 0, 0))
        page_slice = OverflowSlicer().slice(image)[0]
        assert page_slice.image.mode == "RGB"
        assert page_slice.image.getpixel((5, 5)) == (255, 255, 255)

    def test_empty_image(self):
        slicer = OverflowSlicer()
        assert slicer.slice(Image.new("RGB", (356, 0))) == []
        assert slicer.slice_count(Image.new("RGB", (356, 0))) == 0

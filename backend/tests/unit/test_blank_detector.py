"""
空白页检测单元测试
"""

from PIL import Image

from docexport.capture import BlankDetector
from docexport.config import BlankDetectionConfig


class TestBlankDetector:
    """空白检测测试"""

    def test_all_white_is_blank(self):
        assert BlankDetector().is_blank(Image.new("RGB", (100, 80), "white"))

    def test_near_white_is_blank(self):
        """测试 ≥250 的近白色视为空白"""
        assert BlankDetector().is_blank(Image.new("RGB", (100, 80), (252, 252, 252)))

    def test_below_threshold_not_blank(self):
        assert not BlankDetector().is_blank(Image.new("RGB", (100, 80), (249, 255, 255)))

    def test_single_pixel_at_cell_centre(self):
        """测试网格中心的单个深色像素即可判为非空白"""
        image = Image.new("RGB", (100, 80), "white")
        image.putpixel((50, 30), (0, 0, 0))
        assert not BlankDetector().is_blank(image)

    def test_border_not_sampled(self):
        """测试边界像素不参与采样"""
        image = Image.new("RGB", (100, 80), "white")
        for x in range(100):
            image.putpixel((x, 0), (0, 0, 0))
            image.putpixel((x, 79), (0, 0, 0))
        assert BlankDetector().is_blank(image)

    def test_sample_points_grid(self):
        points = BlankDetector().sample_points(100, 80)
        assert len(points) == 20
        assert points[0] == (10, 10)
        assert points[-1] == (90, 70)

    def test_rgba_converted(self):
        """测试透明图像按RGB通道判断"""
        assert not BlankDetector().is_blank(Image.new("RGBA", (40, 40), (10, 20, 30, 255)))

    def test_custom_threshold(self):
        detector = BlankDetector(BlankDetectionConfig(white_threshold=200))
        assert detector.is_blank(Image.new("RGB", (40, 40), (210, 210, 210)))

    def test_tiny_image(self):
        """测试小于网格尺寸的图像不越界"""
        assert BlankDetector().is_blank(Image.new("RGB", (1, 1), "white"))
        assert not BlankDetector().is_blank(Image.new("RGB", (1, 1), "black"))

"""
空白页检测器 - 稀疏采样判断位图是否近白

规则：
- 将图像划分为 cols×rows 网格（默认5×4），采样每格中心点
- 所有采样点的RGB通道都 ≥ white_threshold（默认250）才判为空白
- 中心点采样永远不会落在图像边界上（边界多为背景留白，容易误判）

这是启发式：允许漏判（近白内容被保留），不允许误删内容页。
"""

from __future__ import annotations

from PIL import Image

from ..config import BlankDetectionConfig
from ..interfaces import IBlankDetector


class BlankDetector(IBlankDetector):
    """空白页检测器实现"""

    def __init__(self, config: BlankDetectionConfig | None = None):
        self.config = config or BlankDetectionConfig()

    def sample_points(self, width: int, height: int) -> list[tuple[int, int]]:
        """网格中心采样坐标（按行优先）"""
        cols = max(1, self.config.sample_grid_cols)
        rows = max(1, self.config.sample_grid_rows)
        points = []
        for j in range(rows):
            y = int((j + 0.5) * height / rows)
            for i in range(cols):
                x = int((i + 0.5) * width / cols)
                points.append((min(x, width - 1), min(y, height - 1)))
        return points

    def is_blank(self, image: Image.Image) -> bool:
        width, height = image.size
        if width == 0 or height == 0:
            return True

        rgb = image if image.mode == "RGB" else image.convert("RGB")
        threshold = self.config.white_threshold

        for x, y in self.sample_points(width, height):
            r, g, b = rgb.getpixel((x, y))
            if r < threshold or g < threshold or b < threshold:
                return False
        return True

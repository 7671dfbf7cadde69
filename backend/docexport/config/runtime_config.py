"""
运行期配置 - 读取 documents/runtime.yaml

职责：
- 加载页面尺寸/边距/选择器/捕获/空白检测/超时等运行参数
- 提供环境变量覆盖机制（DOCEXPORT_ 前缀）
- 类型安全的配置访问
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

MM_PER_INCH = 25.4


class PageConfig(BaseModel):
    """物理页面配置（默认A4纵向）"""

    width_mm: float = 210.0
    height_mm: float = 297.0
    orientation: str = "portrait"
    css_dpi: int = 96
    # .page 元素的内边距，doc-body 作为页面捕获时强制对齐
    page_padding: str = "68px 60px 83px 60px"
    background: str = "#ffffff"

    @property
    def target_width_px(self) -> int:
        """页面宽度（CSS像素）"""
        return round(self.width_mm / MM_PER_INCH * self.css_dpi)

    @property
    def target_height_px(self) -> int:
        """页面高度（CSS像素）"""
        return round(self.height_mm / MM_PER_INCH * self.css_dpi)


class FlowConfig(BaseModel):
    """连续正文切片配置（单位：mm）"""

    margin_top_mm: float = 18.0
    margin_right_mm: float = 16.0
    margin_bottom_mm: float = 22.0
    margin_left_mm: float = 16.0
    body_padding: str = "24px 32px"
    break_margin_top: str = "28px"


class SelectorConfig(BaseModel):
    """DOM选择器配置"""

    cover: str = ".cover-page"
    body: str = ".doc-body"
    page: str = ".page"
    section: str = ".chapter-page"
    chrome: str = ".no-print, .viewer-bar"
    page_break: str = "section.page-break"
    category: str = ".category-section"

    @property
    def body_class(self) -> str:
        """正文容器的类名（不含前导点）"""
        return self.body.strip().lstrip(".")


class CaptureConfig(BaseModel):
    """捕获配置"""

    scale: float = 2.0
    use_cors: bool = True
    jpeg_quality: int = 92
    image_wait_timeout_ms: int = 5000
    suppress_corner_radius: bool = True
    corner_radius_css: str = (
        ":root{--radius-default:0!important}"
        "*,*::before,*::after{border-radius:0!important}"
    )


class BlankDetectionConfig(BaseModel):
    """空白页检测策略"""

    enabled: bool = True
    sample_grid_cols: int = 5
    sample_grid_rows: int = 4
    white_threshold: int = 250


class TimeoutConfig(BaseModel):
    """超时配置"""

    unit_capture_sec: float = 120.0
    navigation_sec: float = 60.0
    print_pdf_sec: float = 120.0


class BrowserConfig(BaseModel):
    """浏览器配置"""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 900
    wait_until: str = "networkidle"


class OutputConfig(BaseModel):
    """输出配置"""

    default_filename: str = "document.pdf"
    fallback_command: str = "docexport print"


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: str = "docexport.log"


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    base_dir: Path = Path(".")

    page: PageConfig = Field(default_factory=PageConfig)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    blank_detection: BlankDetectionConfig = Field(default_factory=BlankDetectionConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "DOCEXPORT_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        return cls(
            base_dir=path.parent.resolve(),
            page=PageConfig(**cls._extract(runtime_opts, "page")),
            flow=FlowConfig(**cls._extract(runtime_opts, "flow")),
            selectors=SelectorConfig(**cls._extract(runtime_opts, "selectors")),
            capture=CaptureConfig(**cls._extract(runtime_opts, "capture")),
            blank_detection=BlankDetectionConfig(**cls._extract(runtime_opts, "blank_detection")),
            timeouts=TimeoutConfig(**cls._extract(runtime_opts, "timeouts")),
            browser=BrowserConfig(**cls._extract(runtime_opts, "browser")),
            output=OutputConfig(**cls._extract(runtime_opts, "output")),
            logging=LoggingConfig(**cls._extract(runtime_opts, "logging")),
        )

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def resolve_output(self, filename: str | Path | None) -> Path:
        """解析输出文件路径（相对路径基于base_dir）"""
        path = Path(filename or self.output.default_filename)
        if path.suffix.lower() != ".pdf":
            path = path.with_suffix(".pdf")
        if not path.is_absolute():
            path = self.base_dir / path
        return path


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        default_path = Path("documents/runtime.yaml")
        if not default_path.exists():
            fallback_path = Path("config/runtime.yaml")
            if fallback_path.exists():
                default_path = fallback_path
        _config = RuntimeConfig.from_yaml(default_path)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or "documents/runtime.yaml"
    _config = RuntimeConfig.from_yaml(path)
    return _config

"""
文档PDF导出系统 - 核心模块

将HTML文档中的封面与各页面（或连续正文）逐一栅格化，
按A4尺寸分页后组装为单个PDF。

模块结构：
- config/     运行期配置加载
- models/     数据模型定义
- capture/    捕获（样式快照/空白检测/页面枚举/捕获编排/溢出切片）
- browser/    浏览器能力（Playwright会话/DOM适配/栅格化）
- doc_gen/    文档组装（ReportLab PDF写入）
- pipeline/   导出状态机/进度/入口
"""

__version__ = "0.1.0"

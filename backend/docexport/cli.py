"""
命令行入口

用法：
    docexport export report.html -o report.pdf
    docexport print report.html -o report.pdf      # 备用：浏览器原生打印
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import RuntimeConfig, get_config, reload_config
from .interfaces import DocExportError
from .models import ProgressState

logger = logging.getLogger("docexport")


def setup_logging(config: RuntimeConfig, level: str | None = None) -> None:
    """按配置初始化日志（控制台，可选文件）"""
    log_cfg = config.logging
    logging.basicConfig(
        level=getattr(logging, (level or log_cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if log_cfg.log_to_file:
        log_path = Path(log_cfg.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)


def _print_progress(state: ProgressState) -> None:
    logger.info(f"[{state.label()}] {state.status}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docexport",
        description="将HTML文档逐页栅格化并导出为PDF",
    )
    parser.add_argument("--config", default="", help="运行期配置YAML（默认：documents/runtime.yaml）")
    parser.add_argument("--log-level", default="", help="日志级别（覆盖配置）")

    sub = parser.add_subparsers(dest="command", required=True)

    export_p = sub.add_parser("export", help="逐页栅格化导出PDF")
    export_p.add_argument("source", help="HTML文件路径或URL")
    export_p.add_argument("-o", "--output", default="", help="输出PDF路径")

    print_p = sub.add_parser("print", help="浏览器原生打印为PDF（备用路径）")
    print_p.add_argument("source", help="HTML文件路径或URL")
    print_p.add_argument("-o", "--output", default="", help="输出PDF路径")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = reload_config(args.config) if args.config else get_config()
    setup_logging(config, args.log_level or None)

    # 命令行给出的相对路径以当前目录为准
    output = Path(args.output).resolve() if args.output else None

    from .pipeline import export_document, format_failure_message, print_document

    try:
        if args.command == "export":
            job = asyncio.run(
                export_document(args.source, output, config=config, observers=[_print_progress])
            )
            print(f"已导出: {job.output_path} ({job.pages_written} 页)")
        else:
            path = asyncio.run(print_document(args.source, output, config=config))
            print(f"已导出: {path}")
    except DocExportError as e:
        if args.command == "export":
            print(format_failure_message(e, args.source, config), file=sys.stderr)
        else:
            print(f"PDF生成失败: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
命令行与对外入口测试（不启动浏览器）
"""

import pytest

from docexport import cli, pipeline
from docexport.interfaces import CaptureFailure
from docexport.models import ExportJob
from docexport.pipeline import format_failure_message


class TestFailureMessage:
    def test_names_fallback_command(self, runtime_config):
        """测试失败提示包含备用命令"""
        message = format_failure_message(CaptureFailure("捕获超时"), "report.html", runtime_config)
        assert "捕获超时" in message
        assert "docexport print report.html" in message


class TestParser:
    def test_export_args(self):
        args = cli.build_parser().parse_args(["export", "report.html", "-o", "out.pdf"])
        assert args.command == "export"
        assert args.source == "report.html"
        assert args.output == "out.pdf"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestMain:
    """main() 退出码测试"""

    def test_export_success(self, monkeypatch, temp_dir, capsys):
        calls = {}

        async def fake_export(source, filename=None, *, config=None, observers=None, job=None):
            calls["source"] = source
            calls["filename"] = filename
            return ExportJob(source=source, output_path=filename, pages_written=2)

        monkeypatch.setattr(pipeline, "export_document", fake_export)
        code = cli.main(["export", "report.html", "-o", str(temp_dir / "out.pdf")])

        assert code == 0
        assert calls["source"] == "report.html"
        assert calls["filename"].name == "out.pdf"
        assert "2 页" in capsys.readouterr().out

    def test_export_failure_exit_code(self, monkeypatch, capsys):
        async def fake_export(source, filename=None, **kwargs):
            raise CaptureFailure("渲染失败")

        monkeypatch.setattr(pipeline, "export_document", fake_export)
        code = cli.main(["export", "report.html"])

        assert code == 1
        err = capsys.readouterr().err
        assert "渲染失败" in err
        assert "docexport print report.html" in err

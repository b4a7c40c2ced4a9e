"""Tests for mdserve._cli — argument parsing and dispatch to serve()."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdserve._cli import _build_parser, main


class TestBuildParser:
    """_build_parser — CLI argument parsing."""

    def test_defaults(self) -> None:
        args = _build_parser().parse_args([])
        assert args.dir == "."
        assert args.host is None
        assert args.port is None
        assert args.file is None
        assert args.live_reload is None
        assert args.template_dir is None
        assert args.verbose is None

    def test_directory_argument(self) -> None:
        args = _build_parser().parse_args(["docs/"])
        assert args.dir == "docs/"

    def test_all_flags(self) -> None:
        args = _build_parser().parse_args([
            "docs/",
            "--host", "0.0.0.0",
            "--port", "4000",
            "--file", "guide.md",
            "--no-livereload",
            "--template-dir", "theme",
            "-v",
        ])
        assert args.dir == "docs/"
        assert args.host == "0.0.0.0"
        assert args.port == 4000
        assert args.file == "guide.md"
        assert args.live_reload is False
        assert args.template_dir == "theme"
        assert args.verbose is True

    def test_livereload_flag(self) -> None:
        assert _build_parser().parse_args(["--livereload"]).live_reload is True

    def test_port_must_be_int(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--port", "abc"])

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "mdserve 0.1.0" in capsys.readouterr().out


class TestMain:
    """main() — hands parsed options to serve(), reports errors."""

    def test_passes_options_to_serve(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        calls: list[dict[str, object]] = []
        monkeypatch.setattr("mdserve.app.serve", lambda **kwargs: calls.append(kwargs))

        main([str(tmp_path), "--port", "4000", "--file", "a.md", "--no-livereload"])

        assert calls == [{
            "root": str(tmp_path),
            "host": None,
            "port": 4000,
            "file": "a.md",
            "live_reload": False,
            "template_dir": None,
            "verbose": None,
        }]

    def test_missing_directory_exits_1(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing")])
        assert exc_info.value.code == 1
        assert "Error: Directory does not exist" in capsys.readouterr().err

    def test_bind_failure_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def fail(**_kwargs: object) -> None:
            raise OSError("address already in use")

        monkeypatch.setattr("mdserve.app.serve", fail)
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path)])
        assert exc_info.value.code == 1
        assert "address already in use" in capsys.readouterr().err

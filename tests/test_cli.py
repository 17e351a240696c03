"""Tests for the sdrf-parse command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sdrf_parser.cli import main

DOC = (
    "Protocol REF\tTerm Source REF\tResult File\n"
    "grow\tMO\tout.txt\n"
)


def _write(tmp_path: Path, text: str = DOC) -> Path:
    path = tmp_path / "exp.sdrf"
    path.write_text(text, encoding="utf-8")
    return path


def _mock_handler(valid: bool) -> MagicMock:
    handler = MagicMock()
    handler.is_valid_term.return_value = valid
    handler.is_valid_accession.return_value = valid
    return handler


class TestMain:
    """Tests for cli.main."""

    def test_prints_experiment(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main([str(_write(tmp_path))]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Slot 0:")
        assert "grow <MO:grow>" in out

    def test_parse_error_returns_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = _write(tmp_path, "Weird Column\tProtocol REF\nx\tP\n")
        assert main([str(path)]) == 1
        assert "Weird Column" in capsys.readouterr().err

    def test_missing_file_returns_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main([str(tmp_path / "missing.sdrf")]) == 1
        assert "ERROR" in capsys.readouterr().err

    def test_validate_success(self, tmp_path: Path) -> None:
        handler = _mock_handler(valid=True)
        with patch("sdrf_parser.cli.CVHandler") as mock_cls:
            mock_cls.return_value.__enter__.return_value = handler
            assert main([str(_write(tmp_path)), "--validate"]) == 0
        handler.is_valid_term.assert_called_once_with("MO", "grow")

    def test_validate_failure_returns_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        handler = _mock_handler(valid=False)
        with patch("sdrf_parser.cli.CVHandler") as mock_cls:
            mock_cls.return_value.__enter__.return_value = handler
            assert main([str(_write(tmp_path)), "--validate"]) == 1
        assert "did not validate" in capsys.readouterr().err

    def test_no_validation_without_flag(self, tmp_path: Path) -> None:
        with patch("sdrf_parser.cli.CVHandler") as mock_cls:
            assert main([str(_write(tmp_path)), "--log-level", "DEBUG"]) == 0
        mock_cls.assert_not_called()

"""Tests for scripts/validate_consistency.py."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from tests.conftest import make_position

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "validate_consistency.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("validate_consistency", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write(path: Path, positions: list[dict]) -> str:
    path.write_text(json.dumps(positions))
    return str(path)


def test_consistent_pages_exit_zero(cli, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    page1 = _write(tmp_path / "p1.json", [make_position("CE", "TM", subtitle="Mixing", classification="direct")])
    page2 = _write(tmp_path / "p2.json", [make_position("CE", "TM", subtitle="Mixing", classification="direct")])
    assert cli.main(["--page", f"page1={page1}", "--page", f"page2={page2}"]) == 0
    assert "Overall   : PASS" in capsys.readouterr().out


def test_inconsistent_pages_exit_one(cli, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    page1 = _write(tmp_path / "p1.json", [make_position("CE", "TM", subtitle="Mixing", classification="direct")])
    page2 = _write(tmp_path / "p2.json", [make_position("CE", "TM", subtitle="Mixing", classification="OH")])
    out = tmp_path / "report.json"
    code = cli.main(
        ["--page", f"page1={page1}", "--page", f"page2={page2}", "--format", "json", "--output", str(out)]
    )
    assert code == 1
    printed = json.loads(capsys.readouterr().out)
    assert printed["isValid"] is False
    assert json.loads(out.read_text())["consistencyValidation"]["inconsistencies"][0]["pages"] == [
        "page1",
        "page2",
    ]


def test_aggregation_pages(cli, tmp_path: Path) -> None:
    detailed = [make_position("Plant Production", "TM"), make_position("Admin", "TM")]
    page = _write(tmp_path / "detail.json", detailed)
    direct = _write(tmp_path / "direct.json", detailed[:1])
    indirect = _write(tmp_path / "indirect.json", detailed[1:])
    assert cli.main(["--page", f"detail={page}", "--direct", direct, "--indirect", indirect]) == 0
    assert cli.main(["--page", f"detail={page}", "--direct", indirect, "--indirect", direct]) == 1


def test_bad_page_argument(cli) -> None:
    assert cli.main(["--page", "no-equals-sign"]) == 2
    assert cli.main([]) == 2


def test_verbose_prints_validation_log_summary(
    cli, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    page1 = _write(tmp_path / "p1.json", [make_position("Quality", "GL", classification="OH")])
    page2 = _write(tmp_path / "p2.json", [make_position("Quality", "GL", classification="indirect")])
    assert cli.main(["--page", f"page1={page1}", "--page", f"page2={page2}", "--verbose"]) == 1
    err = capsys.readouterr().err
    assert "Validation log: 0 errors," in err


def test_debug_setting_enables_summary(
    cli, tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("WORKFORCE_DEBUG", "true")
    page = _write(tmp_path / "p.json", [make_position("Quality", "GL")])
    assert cli.main(["--page", f"page={page}"]) == 0
    assert "Validation log:" in capsys.readouterr().err


def test_quiet_run_prints_no_summary(cli, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    page = _write(tmp_path / "p.json", [make_position("Quality", "GL")])
    assert cli.main(["--page", f"page={page}"]) == 0
    assert "Validation log:" not in capsys.readouterr().err

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from PyPDF2 import PdfReader

from mokuest import cli
from mokuest.api import EstimateOptions, estimate
from mokuest.models import CalculationResult, ProjectInputs


@pytest.fixture(autouse=True)
def fast_session(monkeypatch) -> None:
    monkeypatch.setenv("MOKUEST_CALC_LATENCY_MS", "0")
    monkeypatch.setenv("MOKUEST_RENDER_SETTLE_MS", "0")
    monkeypatch.setenv("MOKUEST_PDF_SCALE", "1")


def test_main_calculates_and_exports_pdf(tmp_path: Path, caplog) -> None:
    argv = [
        "--fire-prevention-area", "1",
        "--floors", "3",
        "--span", "10.5",
        "--depth", "15",
        "--debounce-ms", "10",
        "--pdf",
        "--file-name", "sample",
        "--output-dir", str(tmp_path),
    ]

    with caplog.at_level(logging.INFO):
        rc = cli.main(argv)

    assert rc == 0
    assert "¥12,345,310" in caplog.text
    pdf_path = tmp_path / "sample.pdf"
    assert pdf_path.exists()
    assert len(PdfReader(str(pdf_path)).pages) >= 1


def test_main_with_incomplete_inputs_keeps_amount_zero(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.INFO):
        rc = cli.main(["--floors", "2", "--debounce-ms", "10", "--output-dir", str(tmp_path)])

    assert rc == 0
    assert "Required inputs are missing" in caplog.text
    assert "¥0" in caplog.text
    assert not any(tmp_path.iterdir())


def test_main_rejects_unknown_fire_prevention_area() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--fire-prevention-area", "商業地域"])
    assert excinfo.value.code == 2


def test_run_returns_error_code_when_export_fails(monkeypatch, tmp_path: Path, caplog) -> None:
    def broken_capture(*args, **kwargs):
        raise RuntimeError("capture failed")

    monkeypatch.setattr("mokuest.pdf.capture_element", broken_capture)
    runtime_cfg = cli.load_runtime_config({"MOKUEST_OUTPUT_DIR": str(tmp_path), "MOKUEST_DEBOUNCE_MS": "10"})

    with caplog.at_level(logging.ERROR):
        rc = cli.run(ProjectInputs("防火地域", 3, 10.5, 15), runtime_cfg, export_pdf=True)

    assert rc == 1
    assert "PDF generation error: capture failed" in caplog.text
    assert "Estimate session failed" in caplog.text


def test_run_reports_session_errors_without_blaming_export(monkeypatch, tmp_path: Path, caplog) -> None:
    def broken_store():
        raise ValueError("store unavailable")

    monkeypatch.setattr(cli, "ProjectStore", broken_store)
    runtime_cfg = cli.load_runtime_config({"MOKUEST_OUTPUT_DIR": str(tmp_path)})

    with caplog.at_level(logging.ERROR):
        rc = cli.run(ProjectInputs("防火地域", 3, 10.5, 15), runtime_cfg)

    assert rc == 1
    assert "Estimate session failed" in caplog.text
    assert "store unavailable" in caplog.text
    assert "PDF generation error" not in caplog.text


def test_api_estimate_uses_supplied_calculator(tmp_path: Path) -> None:
    async def calculator(inputs: ProjectInputs) -> CalculationResult:
        return CalculationResult(success=True, amount=123456, calculated_at="2026-10-18T00:00:00.000Z")

    result = estimate(
        EstimateOptions(
            fire_prevention_area="防火地域",
            floors=3,
            span=10.5,
            depth=15,
            output_dir=tmp_path,
            debounce_ms=10,
        ),
        calculator=calculator,
    )

    assert result["amount"] == 123456
    assert result["state"].amount == 123456
    assert result["pdf"] is None

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional

from .estimate_page import DEFAULT_COMPANY_NAME
from .pdf import ORIENTATIONS

_BOOLEAN_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    base_dir: Path
    output_dir: Path
    debounce_ms: int = 500
    calc_latency_ms: int = 100
    pdf_scale: float = 2.0
    pdf_orientation: str = "portrait"
    render_settle_ms: int = 300
    company_name: str = DEFAULT_COMPANY_NAME
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _to_float(value: object | None) -> Optional[float]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _orientation(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text if text in ORIENTATIONS else None


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options."""

    base_dir = Path(__file__).resolve().parents[2]
    default_output_dir = (base_dir / "outputs").resolve()

    output_dir = _to_path(env.get("MOKUEST_OUTPUT_DIR")) or default_output_dir
    debounce_ms = _to_int(env.get("MOKUEST_DEBOUNCE_MS"))
    calc_latency_ms = _to_int(env.get("MOKUEST_CALC_LATENCY_MS"))
    pdf_scale = _to_float(env.get("MOKUEST_PDF_SCALE")) or 2.0
    pdf_orientation = _orientation(env.get("MOKUEST_PDF_ORIENTATION")) or "portrait"
    render_settle_ms = _to_int(env.get("MOKUEST_RENDER_SETTLE_MS"))
    company_name = (env.get("MOKUEST_COMPANY_NAME") or "").strip() or DEFAULT_COMPANY_NAME
    verbose = _flag(env.get("MOKUEST_VERBOSE"))

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "output_dir", None):
        output_dir = _to_path(cli_ns.output_dir) or output_dir
    if getattr(cli_ns, "debounce_ms", None) is not None:
        debounce_ms = max(0, int(cli_ns.debounce_ms))
    if getattr(cli_ns, "orientation", None):
        pdf_orientation = _orientation(cli_ns.orientation) or pdf_orientation
    if getattr(cli_ns, "scale", None) is not None:
        pdf_scale = float(cli_ns.scale)
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    return Config(
        base_dir=base_dir,
        output_dir=output_dir,
        debounce_ms=500 if debounce_ms is None else max(0, debounce_ms),
        calc_latency_ms=100 if calc_latency_ms is None else max(0, calc_latency_ms),
        pdf_scale=pdf_scale if pdf_scale > 0 else 2.0,
        pdf_orientation=pdf_orientation,
        render_settle_ms=300 if render_settle_ms is None else max(0, render_settle_ms),
        company_name=company_name,
        verbose=verbose,
    )


__all__ = ["Config", "load_config"]

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .calculation import Calculator
from .cli import run_session
from .config import load_config
from .models import ProjectInputs


@dataclass
class EstimateOptions:
    fire_prevention_area: str = ""
    floors: int = 1
    span: float = 0
    depth: float = 0
    export_pdf: bool = False
    file_name: str = "estimate"
    output_dir: Optional[Path] = None
    debounce_ms: Optional[int] = None


def estimate(options: EstimateOptions, calculator: Optional[Calculator] = None) -> Dict[str, object]:
    """Programmatic interface to run one estimate session.

    Returns a dict with keys: state, amount, pdf. ``pdf`` is ``None`` unless
    ``export_pdf`` was requested.
    """

    env = dict(os.environ)
    if options.output_dir:
        env["MOKUEST_OUTPUT_DIR"] = str(options.output_dir)
    if options.debounce_ms is not None:
        env["MOKUEST_DEBOUNCE_MS"] = str(options.debounce_ms)

    cfg = load_config(env, None)
    inputs = ProjectInputs(
        fire_prevention_area=options.fire_prevention_area,
        floors=options.floors,
        span=options.span,
        depth=options.depth,
    )
    state, pdf_path = asyncio.run(
        run_session(
            inputs,
            cfg,
            export_pdf=options.export_pdf,
            file_name=options.file_name,
            calculator=calculator,
        )
    )
    return {"state": state, "amount": state.amount, "pdf": pdf_path}

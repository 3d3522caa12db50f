import argparse
import asyncio
import logging
import os
from functools import partial
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .calculation import Calculator, calculate_amount
from .config import Config
from .config import load_config as load_runtime_config
from .estimate_page import ESTIMATE_CONTENT_ID, build_estimate_tree
from .models import ProjectInputs, ProjectState
from .pdf import ORIENTATIONS, generate_pdf
from .project_meta import FIRE_PREVENTION_CHOICES, normalize_fire_prevention_area
from .provider import AmountSynchronizer
from .reporting import make_summary_text
from .store import ProjectStore

BASE_DIR = Path(__file__).resolve().parents[2]

load_dotenv(BASE_DIR / ".env")

logger = logging.getLogger(__name__)


async def run_session(
    inputs: ProjectInputs,
    runtime_config: Config,
    *,
    export_pdf: bool = False,
    file_name: str = "estimate",
    calculator: Optional[Calculator] = None,
) -> tuple[ProjectState, Optional[Path]]:
    """Drive one estimate session: enter the inputs, wait for the amount, optionally export.

    Export failures propagate to the caller after the store has been
    returned to interactive mode.
    """

    store = ProjectStore()
    calc = calculator or partial(calculate_amount, latency_ms=runtime_config.calc_latency_ms)
    with AmountSynchronizer(store, calc, debounce_ms=runtime_config.debounce_ms) as synchronizer:
        store.set_user_input_data(**inputs.to_dict())
        await synchronizer.settle()

    state = store.get()
    pdf_path: Optional[Path] = None
    if export_pdf:
        pdf_path = await generate_pdf(
            store,
            partial(build_estimate_tree, company_name=runtime_config.company_name),
            ESTIMATE_CONTENT_ID,
            file_name,
            output_dir=runtime_config.output_dir,
            scale=runtime_config.pdf_scale,
            orientation=runtime_config.pdf_orientation,
            settle_ms=runtime_config.render_settle_ms,
        )
    return state, pdf_path


def run(
    inputs: ProjectInputs,
    runtime_config: Config,
    *,
    export_pdf: bool = False,
    file_name: str = "estimate",
) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    if not inputs.is_complete():
        logger.warning("Required inputs are missing; the amount will not be calculated.")

    try:
        state, pdf_path = asyncio.run(
            run_session(inputs, runtime_config, export_pdf=export_pdf, file_name=file_name)
        )
    except Exception:
        logger.exception("Estimate session failed")
        return 1

    logger.info(make_summary_text(state))
    if pdf_path is not None:
        logger.info("Outputs written:")
        logger.info(" - %s", pdf_path)
    return 0


def _fire_prevention_area(value: str) -> str:
    area = normalize_fire_prevention_area(value)
    if area is None:
        raise argparse.ArgumentTypeError(
            f"choose one of {', '.join(FIRE_PREVENTION_CHOICES)} (or its number 1-{len(FIRE_PREVENTION_CHOICES)})"
        )
    return area


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Calculate a provisional wooden-construction estimate")
    parser.add_argument("--fire-prevention-area", type=_fire_prevention_area, help="Fire prevention district category")
    parser.add_argument("--floors", type=int, default=1, help="Number of floors")
    parser.add_argument("--span", type=float, default=0.0, help="Short side (span) in meters")
    parser.add_argument("--depth", type=float, default=0.0, help="Long side (depth) in meters")
    parser.add_argument("--pdf", action="store_true", help="Export the estimate summary as a PDF")
    parser.add_argument("--file-name", default="estimate", help="PDF file name without extension")
    parser.add_argument("--orientation", choices=ORIENTATIONS, help="PDF page orientation")
    parser.add_argument("--scale", type=float, help="Capture resolution multiplier")
    parser.add_argument("--output-dir", help="Directory for generated outputs")
    parser.add_argument("--debounce-ms", type=int, help="Quiet period before the amount is recalculated")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    inputs = ProjectInputs(
        fire_prevention_area=args.fire_prevention_area or "",
        floors=args.floors,
        span=args.span,
        depth=args.depth,
    )
    try:
        return run(inputs, runtime_cfg, export_pdf=args.pdf, file_name=args.file_name)
    except Exception:  # pragma: no cover - defensive
        logger.exception("Fatal error during estimate generation")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

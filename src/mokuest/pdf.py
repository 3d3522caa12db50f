"""PDF export of the estimate content.

The export switches the store into PDF generation mode so the screen-only
parts of the tree disappear, captures the requested element as a PNG image
and lays that image out over as many fixed-size pages as it needs. The mode
is switched back whatever happens during the capture.
"""

from __future__ import annotations

import asyncio
import io
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import matplotlib

matplotlib.use("Agg")  # Ensure headless operation on CI/servers.
import matplotlib.pyplot as plt
from matplotlib import font_manager

from reportlab.lib.pagesizes import A4, landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .models import ProjectState
from .render_gate import Field, Heading, Leaf, Node, Text, TreeFactory, find_element, render
from .store import ProjectStore

logger = logging.getLogger(__name__)

ORIENTATIONS = ("portrait", "landscape")
FAILURE_MESSAGE = "PDFの生成に失敗しました。"

# A4 width in inches; the capture is laid out at the page width.
_CAPTURE_WIDTH_IN = 8.27
_MARGIN_IN = 0.6
_CJK_FONTS = ("Noto Sans CJK JP", "IPAexGothic", "IPAGothic", "Hiragino Sans", "Yu Gothic", "Meiryo")


class ElementNotFoundError(LookupError):
    """Raised when the element to capture is not part of the tree."""


class ExportInProgressError(RuntimeError):
    """Raised when an export is requested while another one is running."""


def _font_family() -> List[str]:
    installed = {entry.name for entry in font_manager.fontManager.ttflist}
    return [name for name in _CJK_FONTS if name in installed] + ["DejaVu Sans"]


def _line_height(leaf: Leaf) -> float:
    if isinstance(leaf, Heading):
        return {1: 0.6, 2: 0.5}.get(leaf.level, 0.42)
    if isinstance(leaf, Text) and leaf.emphasis:
        return 0.55
    return 0.36


def _font_size(leaf: Leaf) -> float:
    if isinstance(leaf, Heading):
        return {1: 18, 2: 15}.get(leaf.level, 12)
    if isinstance(leaf, Text) and leaf.emphasis:
        return 22
    return 10.5


def capture_element(tree: Node, element_id: str, state: ProjectState, scale: float = 2) -> bytes:
    """Rasterize the element ``element_id`` of ``tree`` as rendered for ``state``."""

    element = find_element(tree, element_id)
    if element is None:
        raise ElementNotFoundError(f'Element with id "{element_id}" not found')

    leaves = render(element, state)
    height = 2 * _MARGIN_IN + sum(_line_height(leaf) for leaf in leaves)
    width = _CAPTURE_WIDTH_IN

    with plt.rc_context({"font.family": _font_family()}):
        fig = plt.figure(figsize=(width, height), dpi=100 * scale, facecolor="#ffffff")
        try:
            y = _MARGIN_IN
            for leaf in leaves:
                top = 1 - y / height
                size = _font_size(leaf)
                if isinstance(leaf, Field):
                    weight = "bold" if leaf.highlight else "normal"
                    color = "#1d4ed8" if leaf.highlight else "#111827"
                    fig.text(_MARGIN_IN / width, top, leaf.label, fontsize=size, va="top", color="#4b5563")
                    fig.text(1 - _MARGIN_IN / width, top, leaf.value, fontsize=size, va="top", ha="right", weight=weight, color=color)
                else:
                    bold = isinstance(leaf, Heading) or leaf.emphasis
                    center = isinstance(leaf, Heading) and leaf.level == 1
                    fig.text(
                        0.5 if center else _MARGIN_IN / width,
                        top,
                        leaf.text,
                        fontsize=size,
                        va="top",
                        ha="center" if center else "left",
                        weight="bold" if bold else "normal",
                        color="#2563eb" if isinstance(leaf, Text) and leaf.emphasis else "#111827",
                    )
                y += _line_height(leaf)

            buffer = io.BytesIO()
            fig.savefig(buffer, format="png", dpi=100 * scale, facecolor="#ffffff")
        finally:
            plt.close(fig)
    return buffer.getvalue()


def page_offsets(image_height: float, page_height: float) -> List[float]:
    """Vertical offsets of a tall image on consecutive pages.

    The first page shows the top of the image (offset 0); each following
    page shifts the image up by one page height until nothing is left.
    """

    offsets = [0.0]
    height_left = image_height - page_height
    while height_left > 0:
        offsets.append(height_left - image_height)
        height_left -= page_height
    return offsets


def _page_size(orientation: str):
    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unsupported orientation: {orientation!r}")
    return portrait(A4) if orientation == "portrait" else landscape(A4)


def assemble_pdf(png_bytes: bytes, path: Path, orientation: str = "portrait") -> int:
    """Write ``png_bytes`` scaled to the page width, split across pages. Returns the page count."""

    page_width, page_height = _page_size(orientation)
    image = ImageReader(io.BytesIO(png_bytes))
    img_width, img_height = image.getSize()
    draw_width = page_width
    draw_height = page_width * img_height / img_width

    path.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(path), pagesize=(page_width, page_height))
    offsets = page_offsets(draw_height, page_height)
    for offset in offsets:
        y = page_height - draw_height - offset
        c.drawImage(image, 0, y, width=draw_width, height=draw_height, mask="auto")
        c.showPage()
    c.save()
    return len(offsets)


def _stderr_alert(message: str) -> None:
    print(message, file=sys.stderr)


async def generate_pdf(
    store: ProjectStore,
    tree_factory: TreeFactory,
    element_id: str,
    file_name: str,
    *,
    output_dir: Path,
    scale: float = 2,
    orientation: str = "portrait",
    settle_ms: float = 300,
    alert: Callable[[str], None] = _stderr_alert,
) -> Path:
    """Export ``element_id`` to ``output_dir/<file_name>.pdf`` and return the path.

    On failure the user is alerted and the error is re-raised. The store is
    always returned to interactive mode.
    """

    try:
        store.set_generating_pdf(True)
        if settle_ms > 0:
            await asyncio.sleep(settle_ms / 1000.0)

        state = store.get()
        png_bytes = capture_element(tree_factory(state), element_id, state, scale=scale)
        target = Path(output_dir) / f"{file_name}.pdf"
        pages = assemble_pdf(png_bytes, target, orientation)
        logger.info('Saved PDF "%s" (%d page%s)', target, pages, "" if pages == 1 else "s")
        return target
    except Exception as exc:
        logger.error("PDF generation error: %s", exc)
        alert(FAILURE_MESSAGE)
        raise
    finally:
        store.set_generating_pdf(False)


class PdfExporter:
    """Download action for the estimate page.

    Holds the busy state shown on the download button and refuses a second
    export while one is running. Failures are kept in ``last_error`` so the
    page can show them; they are not raised from :meth:`download`.
    """

    def __init__(
        self,
        store: ProjectStore,
        tree_factory: TreeFactory,
        element_id: str,
        *,
        output_dir: Path,
        file_name: str = "document",
        orientation: str = "portrait",
        scale: float = 2,
        settle_ms: float = 300,
        alert: Callable[[str], None] = _stderr_alert,
    ) -> None:
        self.store = store
        self.tree_factory = tree_factory
        self.element_id = element_id
        self.output_dir = Path(output_dir)
        self.file_name = file_name
        self.orientation = orientation
        self.scale = scale
        self.settle_ms = settle_ms
        self.alert = alert
        self.is_generating = False
        self.last_error: Optional[BaseException] = None

    @property
    def disabled(self) -> bool:
        return self.is_generating or self.store.get().is_generating_pdf

    @property
    def label(self) -> str:
        return "PDF生成中..." if self.is_generating else "PDFダウンロード"

    async def download(self) -> Optional[Path]:
        if self.disabled:
            raise ExportInProgressError("A PDF export is already running")
        self.is_generating = True
        self.last_error = None
        try:
            return await generate_pdf(
                self.store,
                self.tree_factory,
                self.element_id,
                self.file_name,
                output_dir=self.output_dir,
                scale=self.scale,
                orientation=self.orientation,
                settle_ms=self.settle_ms,
                alert=self.alert,
            )
        except Exception as exc:
            logger.error("PDF download failed: %s", exc)
            self.last_error = exc
            return None
        finally:
            self.is_generating = False


__all__ = [
    "ElementNotFoundError",
    "ExportInProgressError",
    "FAILURE_MESSAGE",
    "ORIENTATIONS",
    "PdfExporter",
    "assemble_pdf",
    "capture_element",
    "generate_pdf",
    "page_offsets",
]

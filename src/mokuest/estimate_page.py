"""Estimate summary content shared by the screen view and the PDF export."""
from __future__ import annotations

from datetime import date
from typing import Optional

from .models import ProjectState
from .project_meta import (
    UNSET_LABEL,
    format_amount,
    format_building_area,
    format_floors,
    format_length,
)
from .render_gate import Box, Field, Heading, HideOnPDF, Node, ShowOnPDF, Text

ESTIMATE_CONTENT_ID = "estimate-content"
DEFAULT_COMPANY_NAME = "株式会社コレモク"


def _issue_date(issued_on: Optional[date]) -> str:
    day = issued_on or date.today()
    return f"{day.year}/{day.month}/{day.day}"


def build_estimate_tree(
    state: ProjectState,
    *,
    company_name: str = DEFAULT_COMPANY_NAME,
    issued_on: Optional[date] = None,
) -> Node:
    """Return the estimate page tree for ``state``.

    Only the ``estimate-content`` box is captured for the PDF; the header and
    the usage notes around it never reach the document.
    """

    details = [
        Heading("プロジェクト詳細", level=3),
        Field("防火地域等", state.fire_prevention_area or UNSET_LABEL),
        Field("階数", format_floors(state.floors)),
        Field("短手方向（スパン）", format_length(state.span)),
        Field("長手方向（奥行き）", format_length(state.depth)),
    ]
    area = format_building_area(state.span, state.depth)
    if area is not None:
        details.append(Field("建築面積", area, highlight=True))

    content = Box(
        element_id=ESTIMATE_CONTENT_ID,
        children=(
            ShowOnPDF((
                Heading("概算見積書", level=1),
                Text(f"発行日: {_issue_date(issued_on)}"),
            )),
            HideOnPDF((Heading("見積書", level=2),)),
            Box((
                Text("概算金額"),
                Text(format_amount(state.amount), emphasis=True),
            )),
            Box(tuple(details)),
            ShowOnPDF((
                Text("※ この見積書は概算です。詳細はお問い合わせください。"),
                Text(company_name),
            )),
        ),
    )

    return Box((
        HideOnPDF((
            Heading("概算見積もり（PDF機能付き）", level=1),
            Text("入力後、PDFボタンで見積書をダウンロードできます"),
        )),
        content,
        HideOnPDF((
            Heading("PDF機能について", level=3),
            Text("・「PDFダウンロード」ボタンで見積書をPDF保存できます"),
        )),
    ))


__all__ = ["DEFAULT_COMPANY_NAME", "ESTIMATE_CONTENT_ID", "build_estimate_tree"]

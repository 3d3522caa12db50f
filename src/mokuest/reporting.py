import pandas as pd

from .models import ProjectState
from .project_meta import (
    UNSET_LABEL,
    format_amount,
    format_building_area,
    format_floors,
    format_length,
)


def make_summary_text(state: ProjectState) -> str:
    rows = [
        ("防火地域等", state.fire_prevention_area or UNSET_LABEL),
        ("階数", format_floors(state.floors)),
        ("短手方向（スパン）", format_length(state.span)),
        ("長手方向（奥行き）", format_length(state.depth)),
    ]
    area = format_building_area(state.span, state.depth)
    if area is not None:
        rows.append(("建築面積", area))
    details = pd.DataFrame(rows, columns=["ITEM", "VALUE"])
    return (
        f"Estimated amount: {format_amount(state.amount)}\n"
        f"Project details:\n{details.to_string(index=False, header=False)}\n"
        "The amount is a provisional figure; contact us for a detailed quotation.\n"
    )

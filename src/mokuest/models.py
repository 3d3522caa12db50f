from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

INPUT_FIELDS: Tuple[str, ...] = ("fire_prevention_area", "floors", "span", "depth")


class RenderMode(Enum):
    """Which presentation of the estimate content is being produced."""

    INTERACTIVE = "interactive"
    EXPORT = "export"


@dataclass(frozen=True)
class ProjectInputs:
    """The four building parameters entered on the estimate form."""

    fire_prevention_area: str = ""
    floors: int = 1
    span: float = 0
    depth: float = 0

    def is_complete(self) -> bool:
        return bool(self.fire_prevention_area) and self.floors > 0 and self.span > 0 and self.depth > 0

    def building_area(self) -> Optional[float]:
        if self.span > 0 and self.depth > 0:
            return self.span * self.depth
        return None

    def to_dict(self) -> Dict[str, object]:
        return {name: getattr(self, name) for name in INPUT_FIELDS}


@dataclass(frozen=True)
class ProjectState:
    """Full snapshot held by :class:`mokuest.store.ProjectStore`."""

    amount: int = 0
    fire_prevention_area: str = ""
    floors: int = 1
    span: float = 0
    depth: float = 0
    is_generating_pdf: bool = False

    @property
    def inputs(self) -> ProjectInputs:
        return ProjectInputs(
            fire_prevention_area=self.fire_prevention_area,
            floors=self.floors,
            span=self.span,
            depth=self.depth,
        )

    @property
    def mode(self) -> RenderMode:
        return RenderMode.EXPORT if self.is_generating_pdf else RenderMode.INTERACTIVE


@dataclass(frozen=True)
class CalculationResult:
    """Outcome reported by the amount calculation."""

    success: bool
    amount: int
    calculated_at: str

"""Presentation tree with screen-only and PDF-only sections.

The same tree is used for the interactive page and for the PDF capture.
:class:`HideOnPDF` and :class:`ShowOnPDF` decide per render which of their
children appear, based only on the store's PDF generation flag.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from .models import ProjectState
from .store import ProjectStore


@dataclass(frozen=True)
class Heading:
    text: str
    level: int = 1


@dataclass(frozen=True)
class Text:
    text: str
    emphasis: bool = False


@dataclass(frozen=True)
class Field:
    """A label/value row."""

    label: str
    value: str
    highlight: bool = False


@dataclass(frozen=True)
class Box:
    children: Sequence["Node"] = field(default_factory=tuple)
    element_id: Optional[str] = None


@dataclass(frozen=True)
class HideOnPDF:
    """Children render on screen and are dropped while a PDF is generated."""

    children: Sequence["Node"] = field(default_factory=tuple)

    def visible(self, state: ProjectState) -> bool:
        return not state.is_generating_pdf


@dataclass(frozen=True)
class ShowOnPDF:
    """Children render only while a PDF is generated."""

    children: Sequence["Node"] = field(default_factory=tuple)

    def visible(self, state: ProjectState) -> bool:
        return state.is_generating_pdf


Leaf = Union[Heading, Text, Field]
Node = Union[Heading, Text, Field, Box, HideOnPDF, ShowOnPDF]
TreeFactory = Callable[[ProjectState], Node]


def render(node: Node, state: ProjectState) -> List[Leaf]:
    """Flatten ``node`` into the leaves visible for ``state``."""

    if isinstance(node, (HideOnPDF, ShowOnPDF)):
        if not node.visible(state):
            return []
        children = node.children
    elif isinstance(node, Box):
        children = node.children
    else:
        return [node]
    leaves: List[Leaf] = []
    for child in children:
        leaves.extend(render(child, state))
    return leaves


def find_element(node: Node, element_id: str) -> Optional[Box]:
    if isinstance(node, Box) and node.element_id == element_id:
        return node
    for child in getattr(node, "children", ()):
        found = find_element(child, element_id)
        if found is not None:
            return found
    return None


class StoreView:
    """Re-render a tree every time the store changes."""

    def __init__(self, store: ProjectStore, factory: TreeFactory) -> None:
        self.store = store
        self.factory = factory
        self.render_count = 0
        self.rendered: List[Leaf] = []
        self._refresh(store.get())
        self._unsubscribe = store.subscribe(self._refresh)

    def _refresh(self, state: ProjectState) -> None:
        self.tree = self.factory(state)
        self.rendered = render(self.tree, state)
        self.render_count += 1

    def close(self) -> None:
        self._unsubscribe()


__all__ = [
    "Box",
    "Field",
    "Heading",
    "HideOnPDF",
    "Leaf",
    "Node",
    "ShowOnPDF",
    "StoreView",
    "Text",
    "TreeFactory",
    "find_element",
    "render",
]

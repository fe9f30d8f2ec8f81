"""Data models for the tree todo application.

A task list is kept as a flat, pre-order sequence of ``TaskNode`` values in
which nesting is expressed only by ``level``: the children of a node are the
contiguous run of following nodes with a strictly greater level.
"""
from __future__ import annotations
from dataclasses import dataclass


@dataclass
class TaskNode:
    """A single task in the outline.

    Fields:
        title: Single-line title (empty while a new node awaits input).
        done: Completion flag.
        level: Zero-based nesting depth.
        collapsed: View flag hiding the node's descendants (not persisted).
    """
    title: str = ""
    done: bool = False
    level: int = 0
    collapsed: bool = False

    def key(self) -> tuple[str, bool, int]:
        """The persisted part of the node."""
        return self.title, self.done, self.level

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"TaskNode(title={self.title!r}, done={self.done}, level={self.level})"


@dataclass(frozen=True)
class VisibleItem:
    """One row of the visible projection.

    ``source_index`` points into ``Outline.items``; ``node`` is the snapshot
    taken when the projection was computed.
    """
    source_index: int
    node: TaskNode

"""Outline logic: the flattened task tree, its visible projection and edits.

``items`` is a pre-order encoding of a forest: every node is followed by its
descendants, which are exactly the contiguous run of following nodes with a
greater ``level``. ``trash`` holds deleted nodes in deletion order.

All edit operations take a *real* index into ``items`` (map a cursor through
``visible`` first), re-derive the projection, and write the store through to
``Storage`` when one is attached. Collapse toggling is the only mutation that
is not written, since the file format has no field for it.
"""
import logging
from typing import Iterable, List, Optional

from models import TaskNode, VisibleItem
from storage import Storage

log = logging.getLogger('treedo.outline')


def project(items: Iterable[TaskNode]) -> List[VisibleItem]:
    """Return the rows left visible by the nodes' collapse flags."""
    visible: List[VisibleItem] = []
    skip_level: Optional[int] = None
    for i, node in enumerate(items):
        if skip_level is not None:
            if node.level > skip_level:
                continue
            skip_level = None
        visible.append(VisibleItem(i, node))
        if node.collapsed:
            skip_level = node.level
    return visible


def clamp(cursor: int, length: int) -> int:
    """Clamp a cursor into [0, length-1], or 0 for an empty sequence."""
    if length <= 0:
        return 0
    return max(0, min(cursor, length - 1))


class Outline:
    def __init__(self, items: Optional[List[TaskNode]] = None,
                 trash: Optional[List[TaskNode]] = None,
                 storage: Optional[Storage] = None):
        self.items: List[TaskNode] = list(items or [])
        self.trash: List[TaskNode] = list(trash or [])
        self.storage = storage
        self.save_ok: bool = True
        self.visible: List[VisibleItem] = []
        self.refresh()

    @classmethod
    def from_storage(cls, storage: Storage) -> 'Outline':
        items, trash = storage.load_tasks()
        log.debug('loaded %d items and %d trash entries from %s',
                  len(items), len(trash), storage.path)
        return cls(items, trash, storage)

    # -------------------- projection --------------------
    def refresh(self) -> List[VisibleItem]:
        self.visible = project(self.items)
        return self.visible

    def real_index(self, cursor: int) -> Optional[int]:
        """Map a visible-row cursor to an index into ``items``."""
        if not self.visible:
            return None
        return self.visible[clamp(cursor, len(self.visible))].source_index

    def visible_position(self, real_index: int) -> Optional[int]:
        for pos, row in enumerate(self.visible):
            if row.source_index == real_index:
                return pos
        return None

    # -------------------- structure queries --------------------
    def subtree_size(self, index: int) -> int:
        """Number of nodes in the block rooted at ``index`` (node included)."""
        level = self.items[index].level
        end = index + 1
        while end < len(self.items) and self.items[end].level > level:
            end += 1
        return end - index

    def has_children(self, index: int) -> bool:
        nxt = index + 1
        return nxt < len(self.items) and self.items[nxt].level > self.items[index].level

    # -------------------- persistence --------------------
    def _persist(self) -> None:
        if self.storage is None:
            return
        self.save_ok = self.storage.save_tasks(self.items, self.trash)

    def _changed(self) -> None:
        self.refresh()
        self._persist()

    # -------------------- edits --------------------
    def insert_root_sibling(self) -> int:
        """Append an empty top-level node at the very end; return its index.

        Not written until the title is confirmed.
        """
        self.items.append(TaskNode(title='', level=0))
        self.refresh()
        return len(self.items) - 1

    def insert_child(self, index: int) -> int:
        """Expand ``index`` and insert an empty first child right after it."""
        parent = self.items[index]
        parent.collapsed = False
        self.items.insert(index + 1, TaskNode(title='', level=parent.level + 1))
        self.refresh()
        return index + 1

    def remove(self, index: int) -> TaskNode:
        """Drop a single node without trashing it (new-node rollback)."""
        node = self.items.pop(index)
        self._changed()
        return node

    def set_title(self, index: int, title: str) -> None:
        self.items[index].title = title
        self._changed()

    def toggle_done(self, index: int) -> None:
        node = self.items[index]
        node.done = not node.done
        self._changed()

    def toggle_collapse(self, index: int) -> bool:
        """Flip the collapse flag of a node that has children.

        Leaves are left untouched; returns whether anything changed.
        """
        if not self.has_children(index):
            return False
        node = self.items[index]
        node.collapsed = not node.collapsed
        self.refresh()
        return True

    def toggle_indent(self, index: int) -> None:
        """Switch a node between level 0 and level 1.

        Descendant levels are left as they are, so indenting a node that has
        deeper children can leave those children misplaced until they are
        edited too.
        """
        node = self.items[index]
        node.level = 1 if node.level == 0 else 0
        self._changed()

    def delete_subtree(self, index: int) -> List[TaskNode]:
        """Move the node and its whole block of descendants to the trash."""
        count = self.subtree_size(index)
        block = self.items[index:index + count]
        del self.items[index:index + count]
        self.trash.extend(block)
        log.debug('trashed %d node(s) starting at %d', count, index)
        self._changed()
        return block

    def restore(self, trash_index: int) -> TaskNode:
        """Move one trash entry (alone) to the end of the items."""
        node = self.trash.pop(trash_index)
        self.items.append(node)
        self._changed()
        return node

    def purge(self, trash_index: int) -> TaskNode:
        """Permanently discard one trash entry."""
        node = self.trash.pop(trash_index)
        self._changed()
        return node

    def __str__(self) -> str:
        return f'Items: {len(self.items)}, Visible: {len(self.visible)}, Trash: {len(self.trash)}'

"""Persistence helpers (load/save) for the task file.

The file is plain text, one task per line::

    - [ ] Buy milk
      - [x] 2%
    - [D] Something deleted

Two spaces of indentation per level. The status character is ``x`` for done,
``D`` for a trashed entry and a space otherwise. Trash lines are written after
all active lines. Collapse state is not part of the format.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from models import TaskNode

DEFAULT_TASKS_FILE = 'todo.md'
INDENT = '  '
LINE_PREFIX = '- ['
DONE_MARK = 'x'
TRASH_MARK = 'D'
# undecodable bytes survive a load/save cycle unchanged
FILE_ERRORS = 'surrogateescape'

log = logging.getLogger('treedo.storage')

Loaded = Tuple[List[TaskNode], List[TaskNode]]


def parse(lines: Iterable[str]) -> Loaded:
    """Split task file lines into (active, trash) node lists.

    Lines that do not start with ``- [`` once stripped are skipped. Active
    levels are clamped so that no node is nested more than one level below
    the node before it; trash levels are kept as written.
    """
    active: List[TaskNode] = []
    trash: List[TaskNode] = []
    for line in lines:
        line = line.rstrip('\r\n')
        stripped = line.strip()
        if not stripped.startswith(LINE_PREFIX):
            continue
        head, sep, tail = stripped.partition(']')
        if not sep:
            continue
        status = head[len(LINE_PREFIX):]
        level = (len(line) - len(line.lstrip(' '))) // 2
        node = TaskNode(
            title=tail.strip(),
            done=status in (DONE_MARK, DONE_MARK.upper()),
            level=level,
        )
        if status == TRASH_MARK:
            trash.append(node)
        else:
            active.append(node)
    _clamp_levels(active)
    return active, trash


def _clamp_levels(nodes: List[TaskNode]) -> None:
    ceiling = 0
    for node in nodes:
        if node.level > ceiling:
            log.debug('clamping level %d -> %d for %r', node.level, ceiling, node.title)
            node.level = ceiling
        ceiling = node.level + 1


def format_line(node: TaskNode, trashed: bool = False) -> str:
    if trashed:
        status = TRASH_MARK
    else:
        status = DONE_MARK if node.done else ' '
    return f"{INDENT * node.level}- [{status}] {node.title}\n"


def serialize(items: Iterable[TaskNode], trash: Iterable[TaskNode] = ()) -> str:
    """Render active items followed by trash entries in the task file format."""
    out = [format_line(n) for n in items]
    out.extend(format_line(n, trashed=True) for n in trash)
    return ''.join(out)


class Storage:
    """Reads and write-through saves one task file."""

    def __init__(self, path: Union[str, Path] = DEFAULT_TASKS_FILE):
        self.path = Path(path)
        self.last_error: Union[OSError, None] = None

    def load_tasks(self) -> Loaded:
        """Load (active, trash) from disk.

        Missing file -> two empty lists.
        """
        if not self.path.exists():
            log.info('%s does not exist yet, starting empty', self.path)
            return [], []
        with open(self.path, 'r', encoding='utf-8', errors=FILE_ERRORS) as f:
            return parse(f)

    def save_tasks(self, items: Iterable[TaskNode], trash: Iterable[TaskNode]) -> bool:
        """Truncate and rewrite the whole file.

        Write errors are logged and swallowed; the in-memory state stays
        authoritative. Returns False when the write failed.
        """
        data = serialize(items, trash)
        try:
            with open(self.path, 'w', encoding='utf-8', errors=FILE_ERRORS) as f:
                f.write(data)
        except OSError as exc:
            log.warning('could not save %s: %s', self.path, exc)
            self.last_error = exc
            return False
        self.last_error = None
        return True

"""Screen composition: header, tree rows, bin rows, theme rows and footer.

``render`` is a pure function of the app state and the terminal size (apart
from remembering the scroll offset in ``app.viewport_y``) and returns the
lines to print. Colors come from the app's active theme via ``theme.color``.
"""
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from controller import App, Mode
from models import TaskNode
from theme import BOLD, STRIKE, Theme, bg, color, fg

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
MIN_WIDTH = 10
CHROME_LINES = 5
CURSOR_MARK = '➤ '
BLOCK_CURSOR = '█'
SCROLL_UP = '↑ ... ↑'
SCROLL_DOWN = '↓ ... ↓'

MODE_TITLES = {
    Mode.MAIN: 'TODO',
    Mode.INPUT: 'TODO',
    Mode.TRASH: 'BIN',
    Mode.THEMES: 'THEMES',
}
HELP = {
    Mode.MAIN: 'New(n) • Subtask(m) • Edit(e) • Fold(v) • Del(d) • Bin(Shift+B) • Theme(t) • Quit(q)',
    Mode.TRASH: 'Restore(Enter) • Purge(x) • Back(Esc)',
    Mode.THEMES: 'Select(Enter) • Back(Esc)',
    Mode.INPUT: 'Enter to Confirm • Esc to Cancel',
}


def visible_len(s: str) -> int:
    return len(ANSI_RE.sub('', s))


def pad(s: str, width: int) -> str:
    gap = width - visible_len(s)
    return s + ' ' * gap if gap > 0 else s


def truncate(s: str, width: int) -> str:
    """Clip to ``width`` visible columns, keeping escape sequences intact."""
    if visible_len(s) <= width:
        return s
    out: List[str] = []
    used = 0
    pos = 0
    for m in ANSI_RE.finditer(s):
        take = s[pos:m.start()][:width - used]
        out.append(take)
        used += len(take)
        if used >= width:
            break
        out.append(m.group())
        pos = m.end()
    else:
        out.append(s[pos:][:width - used])
    if ANSI_RE.search(s):
        out.append('\033[0m')
    return ''.join(out)


def displayable(s: str) -> str:
    """Swap characters the terminal cannot encode (undecodable file bytes) for '?'."""
    return s.encode('utf-8', 'replace').decode('utf-8')


def center(s: str, width: int) -> str:
    gap = width - visible_len(s)
    if gap <= 0:
        return s
    return ' ' * (gap // 2) + s


def wrap_text(text: str, width: int) -> List[str]:
    """Greedy word wrap; words longer than ``width`` are split hard."""
    width = max(1, width)
    lines: List[str] = []
    current = ''
    for word in text.split(' '):
        while len(word) > width:
            if current:
                lines.append(current)
                current = ''
            lines.append(word[:width])
            word = word[width:]
        candidate = word if not current else current + ' ' + word
        if len(candidate) <= width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def shorten_path(path: str, available: int) -> str:
    if available > 3 and len(path) > available:
        return '...' + path[len(path) - available + 3:]
    return path


# -------------------- tree guides --------------------
def _has_sibling_below(levels: Sequence[int], i: int, level: int) -> bool:
    """True when a later row sits at ``level`` before the tree climbs above it."""
    for future in levels[i + 1:]:
        if future < level:
            return False
        if future == level:
            return True
    return False


def tree_guides(levels: Sequence[int], i: int) -> Tuple[str, str]:
    """Return (ancestor prefix, connector) for row ``i``."""
    level = levels[i]
    if level == 0:
        return '', ' '
    prefix = ' ' + ''.join(
        ' │ ' if _has_sibling_below(levels, i, depth) else '   '
        for depth in range(1, level)
    )
    connector = ' ├─' if _has_sibling_below(levels, i, level) else ' └─'
    return prefix, connector


def _continuation(connector: str) -> str:
    if '├─' in connector:
        return ' │ '
    if '└─' in connector:
        return '   '
    return ' '


# -------------------- rows --------------------
def _tree_rows(nodes: Sequence[TaskNode], cursor: int, width: int, t: Theme,
               mark_for, title_style_for, cursor_color: str,
               editing: Optional[str] = None) -> Tuple[List[str], int, int]:
    """Build wrapped, colored rows for a list of nodes.

    Returns the lines plus the [start, end) line range of the cursor row.
    """
    levels = [n.level for n in nodes]
    lines: List[str] = []
    cur_start = cur_end = 0
    for i, node in enumerate(nodes):
        is_cursor = i == cursor
        prefix, connector = tree_guides(levels, i)
        mark, mark_style = mark_for(node)
        cursor_str = CURSOR_MARK if is_cursor else '  '
        prefix_width = len(cursor_str) + len(prefix) + len(connector) + len(mark) + 1
        text_width = max(1, width - prefix_width)

        if is_cursor and editing is not None:
            content = editing
            text_style = (fg(t.base), bg(t.highlight))
        else:
            content = node.title
            text_style = title_style_for(node)

        if is_cursor:
            cur_start = len(lines)
        below_is_child = i + 1 < len(nodes) and levels[i + 1] > node.level and not node.collapsed
        for line_idx, raw in enumerate(wrap_text(content, text_width)):
            row = color(cursor_str if line_idx == 0 else '  ', fg(cursor_color))
            row += color(prefix, fg(t.comment))
            if line_idx == 0:
                row += color(connector, fg(t.comment))
                row += color(mark, *mark_style)
            else:
                row += color(_continuation(connector), fg(t.comment))
                row += color(' │ ' if below_is_child else '   ', fg(t.comment))
            row += ' ' + color(raw.rstrip(' '), *text_style)
            lines.append(row)
        if is_cursor:
            cur_end = len(lines)
    return lines, cur_start, cur_end


def main_rows(app: App, width: int) -> Tuple[List[str], int, int]:
    t = app.theme
    nodes = [row.node for row in app.outline.visible]
    if not nodes:
        return [color('  (No tasks, press n to add one)', fg(t.comment))], 0, 0

    def mark_for(node: TaskNode):
        if node.collapsed:
            return '[+]', (fg(t.accent),)
        if node.done:
            return '[✔]', (fg(t.special),)
        return '[ ]', (fg(t.text),)

    def title_style_for(node: TaskNode):
        if node.done:
            return fg(t.comment), STRIKE
        return (fg(t.text),)

    editing = None
    if app.mode is Mode.INPUT and app.input is not None:
        buf, pos = app.input.buffer, app.input.pos
        editing = buf[:pos] + BLOCK_CURSOR + buf[pos:]
    return _tree_rows(nodes, app.cursor_main, width, t, mark_for, title_style_for,
                      t.highlight, editing)


def trash_rows(app: App, width: int) -> Tuple[List[str], int, int]:
    t = app.theme
    if not app.outline.trash:
        return [color('  (Bin is empty)', fg(t.comment))], 0, 0
    return _tree_rows(
        app.outline.trash, app.cursor_trash, width, t,
        mark_for=lambda node: ('[D]', (fg(t.error),)),
        title_style_for=lambda node: (fg(t.comment), STRIKE),
        cursor_color=t.error,
    )


def theme_rows(app: App) -> Tuple[List[str], int, int]:
    t = app.theme
    lines: List[str] = []
    for i, candidate in enumerate(app.themes):
        selected = i == app.cursor_theme
        cursor = color('-> ' if selected else '   ', fg(t.highlight))
        name = color(candidate.name, fg(t.highlight), BOLD) if selected else color(candidate.name, fg(t.text))
        preview = ' '.join(color('■', fg(c)) for c in (candidate.base, candidate.highlight, candidate.special))
        lines.append(f'{cursor}{name}  {preview}')
    cur = app.cursor_theme
    return lines, cur, cur + 1


# -------------------- viewport --------------------
def scroll(app: App, total: int, cur_start: int, cur_end: int, height: int) -> Tuple[int, int]:
    """Adjust ``app.viewport_y`` so the cursor lines are on screen; return [start, end).

    When content is clipped the first and last rows carry scroll markers, so
    the cursor is kept off those rows unless it is at the very top or bottom.
    """
    if total <= height:
        y = 0
    else:
        y = app.viewport_y
        if cur_start <= y:
            y = max(0, cur_start - 1)
        if y + height <= cur_end < total:
            y = cur_end - height + 1
        elif cur_end > y + height:
            y = cur_end - height
        y = min(max(0, y), total - height)
    app.viewport_y = y
    return y, min(total, y + height)


def boxed(lines: List[str], start: int, end: int, width: int, height: int, edge: str) -> List[str]:
    inner = width - 2
    body = lines[start:end]
    body += [''] * (height - len(body))
    marker_style = (fg(edge), BOLD)
    if start > 0 and body:
        body[0] = center(color(SCROLL_UP, *marker_style), inner)
    if end < len(lines) and body:
        body[-1] = center(color(SCROLL_DOWN, *marker_style), inner)
    side = color('│', fg(edge))
    out = [color('╭' + '─' * inner + '╮', fg(edge))]
    out.extend(side + pad(truncate(row, inner), inner) + side for row in body)
    out.append(color('╰' + '─' * inner + '╯', fg(edge)))
    return out


# -------------------- screen --------------------
def header(app: App, path: str, width: int) -> str:
    t = app.theme
    prefix = f'// {MODE_TITLES[app.mode]} '
    text = prefix + shorten_path(path, width - len(prefix) - 2)
    return center(truncate(color(f' {text} ', fg(t.base), bg(t.highlight), BOLD), width), width)


def footer(app: App, width: int) -> str:
    t = app.theme
    # notices first so clipping drops help text before them
    parts = []
    if not app.outline.save_ok:
        parts.append(color('changes not saved to disk', fg(t.error), BOLD))
    if app.notice:
        parts.append(color(app.notice, fg(t.error)))
    parts.append(color(HELP[app.mode], fg(t.comment)))
    return center(truncate('  '.join(parts), width), width)


def render(app: App, path: str, width: int, height: int) -> List[str]:
    """Compose the full screen for the current state."""
    if width < MIN_WIDTH:
        return ['Window too narrow']
    try:
        shown = str(Path(path).resolve())
    except OSError:
        shown = path
    body_height = max(1, height - CHROME_LINES)
    inner = width - 2
    t = app.theme
    edge = t.highlight
    if app.mode is Mode.TRASH:
        lines, cs, ce = trash_rows(app, inner)
        edge = t.error
    elif app.mode is Mode.THEMES:
        lines, cs, ce = theme_rows(app)
    else:
        lines, cs, ce = main_rows(app, inner)
    start, end = scroll(app, len(lines), cs, ce, body_height)
    screen = [header(app, shown, width)]
    screen.extend(boxed(lines, start, end, width, body_height, edge))
    screen.append(footer(app, width))
    return [displayable(line) for line in screen]

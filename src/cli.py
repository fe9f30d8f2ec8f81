"""Terminal loop: draw the screen, read one key, hand it to the app.

Keys are read raw with ``click.getchar`` and normalised to the names used by
the controller's dispatch tables ("up", "enter", "esc", "tab", "space",
"ctrl+c", or the character itself).
"""
import logging
import shutil
from typing import Callable, Dict, List

import click

from controller import App
from view import render

log = logging.getLogger('treedo.cli')

# --- terminal control helpers ---
# We aggressively clear: ESC[3J (scrollback), ESC[H (home), ESC[2J (screen), ESC[H (home))
# Order (3J first) improves reliability in some terminals.
def _clear_screen() -> None:
    print("\033[3J\033[H\033[2J\033[H", end="", flush=True)


def _enter_alt_screen() -> None:
    # Switch to alternate screen buffer, hide the cursor
    print("\033[?1049h\033[?25l", end="", flush=True)


def _leave_alt_screen() -> None:
    # Show the cursor, return to normal screen buffer
    print("\033[?25h\033[?1049l", end="", flush=True)


KEY_NAMES: Dict[str, str] = {
    '\r': 'enter', '\n': 'enter',
    ' ': 'space',
    '\t': 'tab',
    '\x1b': 'esc',
    '\x7f': 'backspace', '\x08': 'backspace',
    '\x03': 'ctrl+c',
    '\x1b[A': 'up', '\x1bOA': 'up',
    '\x1b[B': 'down', '\x1bOB': 'down',
    '\x1b[C': 'right', '\x1bOC': 'right',
    '\x1b[D': 'left', '\x1bOD': 'left',
    '\x1b[H': 'home', '\x1bOH': 'home', '\x1b[1~': 'home',
    '\x1b[F': 'end', '\x1bOF': 'end', '\x1b[4~': 'end',
    '\x1b[3~': 'delete',
    # Windows console sequences
    '\xe0H': 'up', '\x00H': 'up',
    '\xe0P': 'down', '\x00P': 'down',
    '\xe0M': 'right', '\x00M': 'right',
    '\xe0K': 'left', '\x00K': 'left',
    '\xe0G': 'home', '\xe0O': 'end', '\xe0S': 'delete',
}


def normalize_keys(raw: str) -> List[str]:
    """Translate one raw read into key names.

    A known sequence maps to its name; an unknown escape sequence is dropped;
    anything else (typically pasted text) becomes one key per character.
    """
    if raw in KEY_NAMES:
        return [KEY_NAMES[raw]]
    if raw.startswith('\x1b'):
        log.debug('ignoring unknown escape sequence %r', raw)
        return []
    return [KEY_NAMES.get(ch, ch) for ch in raw]


def read_keys(getchar: Callable[[], str] = click.getchar) -> List[str]:
    try:
        raw = getchar()
    except KeyboardInterrupt:
        return ['ctrl+c']
    return normalize_keys(raw)


class CLI:
    def __init__(self, app: App, path: str, alt_screen: bool = True):
        self.app = app
        self.path = path
        self.alt_screen = alt_screen

    def redraw(self) -> None:
        size = shutil.get_terminal_size((80, 24))
        lines = render(self.app, self.path, size.columns, size.lines)
        _clear_screen()
        click.echo('\n'.join(lines), nl=False)

    def run(self) -> None:
        """Main loop; the screen is cleared and redrawn after every key.

        Uses the terminal's alternate screen (if enabled) so the session does
        not remain in scrollback history.
        """
        if self.alt_screen:
            _enter_alt_screen()
        try:
            while self.app.running:
                self.redraw()
                for key in read_keys():
                    if not self.app.handle_key(key):
                        break
        except EOFError:
            log.debug('input closed, leaving')
        finally:
            if self.alt_screen:
                _leave_alt_screen()
            else:
                _clear_screen()

"""Application state machine: which view is active and what each key does.

States are MAIN (the task tree), TRASH (the bin), THEMES (theme picker) and
INPUT (editing a title). Each state owns one dispatch table mapping key names
(as produced by ``cli.read_key``) to handlers, so the whole keymap can be
driven without a terminal.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import config
from outline import Outline, clamp
from theme import Theme, find_theme

log = logging.getLogger('treedo.controller')


class Mode(Enum):
    MAIN = 'main'
    TRASH = 'trash'
    THEMES = 'themes'
    INPUT = 'input'


@dataclass
class TextInput:
    """Title being typed for ``target`` (a real index into the items)."""
    target: int
    original: str
    is_new: bool
    buffer: str = ''
    pos: int = 0

    def insert(self, text: str) -> None:
        self.buffer = self.buffer[:self.pos] + text + self.buffer[self.pos:]
        self.pos += len(text)

    def backspace(self) -> None:
        if self.pos > 0:
            self.buffer = self.buffer[:self.pos - 1] + self.buffer[self.pos:]
            self.pos -= 1

    def delete(self) -> None:
        self.buffer = self.buffer[:self.pos] + self.buffer[self.pos + 1:]

    def left(self) -> None:
        self.pos = max(0, self.pos - 1)

    def right(self) -> None:
        self.pos = min(len(self.buffer), self.pos + 1)

    def home(self) -> None:
        self.pos = 0

    def end(self) -> None:
        self.pos = len(self.buffer)


QUIT_KEYS = ('q', 'ctrl+c')


class App:
    def __init__(self, outline: Outline, themes: List[Theme], theme_name: Optional[str] = None,
                 save_theme: Callable[[str], bool] = config.save_selected_theme):
        self.outline = outline
        self.themes: List[Theme] = themes
        self.theme_index: int = find_theme(themes, theme_name)
        self._save_theme = save_theme
        self.mode: Mode = Mode.MAIN
        self.running: bool = True
        self.cursor_main: int = 0
        self.cursor_trash: int = 0
        self.cursor_theme: int = self.theme_index
        self.viewport_y: int = 0
        self.input: Optional[TextInput] = None
        self.notice: Optional[str] = None
        self._tables: Dict[Mode, Dict[str, Callable[[], None]]] = {
            Mode.MAIN: {
                'up': self._main_up, 'k': self._main_up,
                'down': self._main_down, 'j': self._main_down,
                'space': self._toggle_done,
                'v': self._toggle_collapse,
                'n': self._new_root,
                'm': self._new_child,
                'e': self._edit_title,
                'd': self._delete,
                'tab': self._toggle_indent,
                't': self._open_themes,
                'B': self._open_trash,
            },
            Mode.TRASH: {
                'up': self._trash_up, 'k': self._trash_up,
                'down': self._trash_down, 'j': self._trash_down,
                'enter': self._restore,
                'x': self._purge,
                'esc': self._back, 'B': self._back,
            },
            Mode.THEMES: {
                'up': self._theme_up, 'k': self._theme_up,
                'down': self._theme_down, 'j': self._theme_down,
                'enter': self._apply_theme,
                'esc': self._back,
            },
            Mode.INPUT: {
                'enter': self._confirm_input,
                'esc': self._cancel_input,
                'backspace': lambda: self.input.backspace(),
                'delete': lambda: self.input.delete(),
                'left': lambda: self.input.left(),
                'right': lambda: self.input.right(),
                'home': lambda: self.input.home(),
                'end': lambda: self.input.end(),
                'space': lambda: self.input.insert(' '),
            },
        }

    @property
    def theme(self) -> Theme:
        return self.themes[self.theme_index]

    def bindings(self, mode: Mode) -> Dict[str, Callable[[], None]]:
        return self._tables[mode]

    # -------------------- dispatch --------------------
    def handle_key(self, key: str) -> bool:
        """Process one key; returns False once the app should exit."""
        if self.mode is Mode.INPUT:
            handler = self._tables[Mode.INPUT].get(key)
            if handler is not None:
                handler()
            elif len(key) == 1 and key.isprintable():
                self.input.insert(key)
            return self.running
        if key in QUIT_KEYS:
            if self.mode is not Mode.MAIN:
                self._back()
            else:
                self.running = False
            return self.running
        handler = self._tables[self.mode].get(key)
        if handler is not None:
            handler()
        return self.running

    def _current(self) -> Optional[int]:
        return self.outline.real_index(self.cursor_main)

    def _clamp_main(self) -> None:
        self.cursor_main = clamp(self.cursor_main, len(self.outline.visible))

    def _clamp_trash(self) -> None:
        self.cursor_trash = clamp(self.cursor_trash, len(self.outline.trash))

    def _back(self) -> None:
        self.mode = Mode.MAIN
        self.viewport_y = 0

    # -------------------- main view --------------------
    def _main_up(self) -> None:
        if self.cursor_main > 0:
            self.cursor_main -= 1

    def _main_down(self) -> None:
        if self.cursor_main < len(self.outline.visible) - 1:
            self.cursor_main += 1

    def _toggle_done(self) -> None:
        idx = self._current()
        if idx is not None:
            self.outline.toggle_done(idx)

    def _toggle_collapse(self) -> None:
        idx = self._current()
        if idx is not None and self.outline.toggle_collapse(idx):
            self._clamp_main()

    def _new_root(self) -> None:
        idx = self.outline.insert_root_sibling()
        self._start_input(idx, is_new=True)

    def _new_child(self) -> None:
        idx = self._current()
        if idx is None:
            return
        child = self.outline.insert_child(idx)
        self._start_input(child, is_new=True)

    def _edit_title(self) -> None:
        idx = self._current()
        if idx is not None:
            self._start_input(idx, is_new=False)

    def _delete(self) -> None:
        idx = self._current()
        if idx is None:
            return
        self.outline.delete_subtree(idx)
        self._clamp_main()

    def _toggle_indent(self) -> None:
        idx = self._current()
        if idx is None:
            return
        self.outline.toggle_indent(idx)
        self._clamp_main()

    def _open_themes(self) -> None:
        self.mode = Mode.THEMES
        self.cursor_theme = self.theme_index

    def _open_trash(self) -> None:
        self.mode = Mode.TRASH
        self.cursor_trash = 0
        self.viewport_y = 0

    # -------------------- trash view --------------------
    def _trash_up(self) -> None:
        if self.cursor_trash > 0:
            self.cursor_trash -= 1

    def _trash_down(self) -> None:
        if self.cursor_trash < len(self.outline.trash) - 1:
            self.cursor_trash += 1

    def _restore(self) -> None:
        if not self.outline.trash:
            return
        self.outline.restore(self._trash_index())
        self._clamp_trash()
        self._clamp_main()

    def _purge(self) -> None:
        if not self.outline.trash:
            return
        self.outline.purge(self._trash_index())
        self._clamp_trash()

    def _trash_index(self) -> int:
        return clamp(self.cursor_trash, len(self.outline.trash))

    # -------------------- theme view --------------------
    def _theme_up(self) -> None:
        if self.cursor_theme > 0:
            self.cursor_theme -= 1

    def _theme_down(self) -> None:
        if self.cursor_theme < len(self.themes) - 1:
            self.cursor_theme += 1

    def _apply_theme(self) -> None:
        self.cursor_theme = clamp(self.cursor_theme, len(self.themes))
        self.theme_index = self.cursor_theme
        if self._save_theme(self.theme.name):
            self.notice = None
        else:
            self.notice = 'theme choice not saved'
        log.debug('theme set to %s', self.theme.name)
        self._back()

    # -------------------- text input --------------------
    def _start_input(self, target: int, is_new: bool) -> None:
        title = self.outline.items[target].title
        self.input = TextInput(target=target, original=title, is_new=is_new,
                               buffer=title, pos=len(title))
        self.mode = Mode.INPUT
        pos = self.outline.visible_position(target)
        if pos is not None:
            self.cursor_main = pos

    def _finish_input(self) -> None:
        self.input = None
        self.mode = Mode.MAIN

    def _confirm_input(self) -> None:
        inp = self.input
        if inp.is_new and not inp.buffer:
            self._cancel_input()
            return
        self.outline.set_title(inp.target, inp.buffer)
        self._finish_input()
        self._clamp_main()

    def _cancel_input(self) -> None:
        inp = self.input
        if inp.is_new:
            self.outline.remove(inp.target)
            if self.cursor_main > 0:
                self.cursor_main -= 1
            self._clamp_main()
        self._finish_input()

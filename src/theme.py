"""Color & theme helpers.

Decisions:
- A theme assigns hex colors to seven roles: base, highlight, text, comment,
  special, error, accent.
- Truecolor preferred; falls back to the 256-color cube if unsupported.
- Disables automatically when not a TTY unless FORCE_COLOR=1.
- Honors NO_COLOR for complete disable.
- Themes come from ./themes.json, then the user config dir, then the
  built-in set; merged by name, first one seen wins.
"""
from __future__ import annotations
import json
import logging
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Iterable, List, Optional

import config

log = logging.getLogger('treedo.theme')

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

RESET = '0'
BOLD = '1'
STRIKE = '9'


def _code(part: str) -> str:
    """Generate ANSI escape code for a given style part."""
    return f"\033[{part}m" if _ENABLE else ''


def _valid_hex(value: object) -> bool:
    if not isinstance(value, str):
        return False
    h = value.lstrip('#')
    return len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h)


def _hex_to_rgb(hex_code: str) -> tuple[int, int, int]:
    """Convert a hex color code to an RGB tuple."""
    h = hex_code.lstrip('#')
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _cube_index(r: int, g: int, b: int) -> int:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    return 16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)


def _from_hex(hex_code: str, layer: int = 38) -> str:
    """SGR parameters for a hex color; layer 38 is foreground, 48 background."""
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"{layer};2;{r};{g};{b}"
    return f"{layer};5;{_cube_index(r, g, b)}"


def fg(hex_code: str) -> str:
    return _from_hex(hex_code, 38)


def bg(hex_code: str) -> str:
    return _from_hex(hex_code, 48)


def color(text: str, *styles: str) -> str:
    """Wrap text in the given SGR parameters (e.g. ``fg('#fabd2f'), BOLD``)."""
    if not _ENABLE or not styles or not text:
        return text
    return _code(';'.join(styles)) + text + _code(RESET)


@dataclass(frozen=True)
class Theme:
    name: str
    base: str
    highlight: str
    text: str
    comment: str
    special: str
    error: str
    accent: str

    @classmethod
    def from_dict(cls, raw: object) -> Optional['Theme']:
        """Build a theme from a JSON object; None when a field is missing or bad."""
        if not isinstance(raw, dict):
            return None
        name = raw.get('name')
        if not isinstance(name, str) or not name.strip():
            return None
        colors = {}
        for f in fields(cls):
            if f.name == 'name':
                continue
            value = raw.get(f.name)
            if not _valid_hex(value):
                return None
            colors[f.name] = '#' + value.lstrip('#')
        return cls(name=name.strip(), **colors)


DEFAULT_THEME = Theme(
    name='Gruvbox (Built-in)',
    base='#282828',
    highlight='#fabd2f',
    text='#ebdbb2',
    comment='#928374',
    special='#b8bb26',
    error='#fb4934',
    accent='#83a598',
)

BUILTIN_THEMES: List[Theme] = [
    DEFAULT_THEME,
    Theme('Nord', '#2e3440', '#88c0d0', '#eceff4', '#616e88', '#a3be8c', '#bf616a', '#b48ead'),
    Theme('Dracula', '#282a36', '#bd93f9', '#f8f8f2', '#6272a4', '#50fa7b', '#ff5555', '#8be9fd'),
    Theme('Solarized Dark', '#002b36', '#b58900', '#93a1a1', '#586e75', '#859900', '#dc322f', '#268bd2'),
    Theme('Tokyo Night', '#1a1b26', '#7aa2f7', '#c0caf5', '#565f89', '#9ece6a', '#f7768e', '#bb9af7'),
    Theme('Catppuccin Mocha', '#1e1e2e', '#f9e2af', '#cdd6f4', '#6c7086', '#a6e3a1', '#f38ba8', '#89b4fa'),
]


def parse_themes(text: str) -> List[Theme]:
    """Parse a JSON array of theme objects, dropping malformed entries.

    Raises ValueError when the document itself is not a JSON array.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError('themes file must contain a JSON array')
    result: List[Theme] = []
    for raw in data:
        t = Theme.from_dict(raw)
        if t is None:
            log.debug('skipping malformed theme entry %r', raw)
            continue
        result.append(t)
    return result


def _read_theme_file(path: Path) -> List[Theme]:
    try:
        return parse_themes(path.read_text(encoding='utf-8'))
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as exc:
        log.debug('ignoring theme file %s: %s', path, exc)
        return []


def load_themes(paths: Optional[Iterable[Path]] = None) -> List[Theme]:
    """Merge theme files and the built-in set, first occurrence of a name wins."""
    if paths is None:
        paths = config.candidate_paths(config.THEMES_FILE)
    sources: List[List[Theme]] = [_read_theme_file(p) for p in paths]
    sources.append(BUILTIN_THEMES)
    merged: List[Theme] = []
    seen = set()
    for source in sources:
        for t in source:
            if t.name in seen:
                continue
            seen.add(t.name)
            merged.append(t)
    return merged or [DEFAULT_THEME]


def find_theme(themes: List[Theme], name: Optional[str]) -> int:
    """Index of the named theme, or 0 when it is unknown."""
    for i, t in enumerate(themes):
        if t.name == name:
            return i
    return 0


__all__ = [
    'color', 'fg', 'bg', 'RESET', 'BOLD', 'STRIKE',
    'Theme', 'DEFAULT_THEME', 'BUILTIN_THEMES', 'parse_themes', 'load_themes', 'find_theme',
]

"""Runtime settings, config file locations and the theme preference file.

Lookup order for ``themes.json`` and ``config.json`` is the current working
directory first, then the per-user config dir (``click.get_app_dir``, or
``TREEDO_CONFIG_DIR`` when set).
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click

APP_NAME = 'treedo'
THEMES_FILE = 'themes.json'
PREFS_FILE = 'config.json'

log = logging.getLogger('treedo.config')


def _truthy_env(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def user_config_dir() -> Path:
    override = os.getenv('TREEDO_CONFIG_DIR')
    if override:
        return Path(override)
    return Path(click.get_app_dir(APP_NAME))


def candidate_paths(filename: str) -> List[Path]:
    return [Path.cwd() / filename, user_config_dir() / filename]


@dataclass
class Settings:
    """Environment-driven knobs.

    TREEDO_ALT_SCREEN: use the alternate screen buffer (default on).
    TREEDO_LOG_FILE: append log records to this file (default: no logging).
    TREEDO_LOG_LEVEL: level name for the log file (default WARNING).
    """
    alt_screen: bool = True
    log_file: Optional[str] = None
    log_level: str = 'WARNING'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            alt_screen=_truthy_env(os.getenv('TREEDO_ALT_SCREEN'), True),
            log_file=os.getenv('TREEDO_LOG_FILE') or None,
            log_level=(os.getenv('TREEDO_LOG_LEVEL') or 'WARNING').upper(),
        )


def setup_logging(settings: Settings) -> None:
    """Route the ``treedo`` loggers to a file, or nowhere.

    The terminal belongs to the UI, so nothing is ever logged to stderr.
    """
    logger = logging.getLogger(APP_NAME)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    if not settings.log_file:
        logger.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(settings.log_file, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level, logging.WARNING))


# -------------------- preferences --------------------
def load_selected_theme() -> Optional[str]:
    """Theme name stored in the first preference file that exists."""
    for path in candidate_paths(PREFS_FILE):
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as exc:
            log.debug('ignoring preference file %s: %s', path, exc)
            continue
        name = data.get('selected_theme') if isinstance(data, dict) else None
        if isinstance(name, str):
            return name
    return None


def save_selected_theme(name: str) -> bool:
    """Write the selection next to an existing local config.json, else to the user dir."""
    local, user = candidate_paths(PREFS_FILE)
    target = local if local.exists() else user
    payload = json.dumps({'selected_theme': name}, indent=2)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding='utf-8')
    except OSError as exc:
        log.warning('could not save preferences to %s: %s', target, exc)
        return False
    return True

"""Main entry point for treedo.

Usage: ``treedo [FILE]`` where FILE defaults to ``todo.md``.
"""
import logging
import sys

import click

import config
from cli import CLI
from controller import App
from outline import Outline
from storage import DEFAULT_TASKS_FILE, Storage
from theme import load_themes

log = logging.getLogger('treedo.main')


def build_app(path: str) -> App:
    storage = Storage(path)
    outline = Outline.from_storage(storage)
    return App(outline, load_themes(), config.load_selected_theme())


@click.command()
@click.argument('file', required=False, default=DEFAULT_TASKS_FILE,
                type=click.Path(dir_okay=False))
def main(file: str) -> None:
    """Hierarchical todo list in the terminal."""
    settings = config.Settings.from_env()
    config.setup_logging(settings)
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise click.ClickException('treedo needs an interactive terminal')
    try:
        app = build_app(file)
    except OSError as exc:
        raise click.ClickException(f'could not read {file}: {exc}') from exc
    try:
        CLI(app, file, alt_screen=settings.alt_screen).run()
    except OSError as exc:
        log.error('terminal failure: %s', exc)
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    main()

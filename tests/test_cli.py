from click.testing import CliRunner

import cli
import main
from cli import CLI, normalize_keys, read_keys
from controller import App
from outline import Outline
from storage import Storage
from theme import BUILTIN_THEMES


def test_normalize_named_keys():
    assert normalize_keys('\x1b[A') == ['up']
    assert normalize_keys('\x1bOB') == ['down']
    assert normalize_keys('\r') == ['enter']
    assert normalize_keys('\x1b') == ['esc']
    assert normalize_keys('\t') == ['tab']
    assert normalize_keys(' ') == ['space']
    assert normalize_keys('\x7f') == ['backspace']
    assert normalize_keys('\x1b[3~') == ['delete']
    assert normalize_keys('B') == ['B']


def test_normalize_pasted_text_and_unknown_escapes():
    assert normalize_keys('a b') == ['a', 'space', 'b']
    assert normalize_keys('\x1b[24~') == []


def test_read_keys_maps_interrupt_to_ctrl_c():
    def interrupted():
        raise KeyboardInterrupt
    assert read_keys(interrupted) == ['ctrl+c']
    assert read_keys(lambda: 'j') == ['j']


def test_run_loop_processes_keys_until_quit(tmp_path, monkeypatch, capsys):
    path = tmp_path / 'todo.md'
    outline = Outline(storage=Storage(path))
    app = App(outline, list(BUILTIN_THEMES), save_theme=lambda name: True)
    script = [['n'], ['g', 'o'], ['enter'], ['space'], ['q'], ['never', 'reached']]
    monkeypatch.setattr(cli, 'read_keys', lambda: script.pop(0))
    CLI(app, str(path), alt_screen=False).run()
    assert path.read_text() == '- [x] go\n'
    assert not app.running
    assert script == [['never', 'reached']]
    assert '// TODO' in capsys.readouterr().out


def test_run_loop_stops_on_eof(monkeypatch):
    app = App(Outline(), list(BUILTIN_THEMES), save_theme=lambda name: True)

    def closed():
        raise EOFError
    monkeypatch.setattr(cli, 'read_keys', closed)
    CLI(app, 'todo.md', alt_screen=False).run()


def test_build_app_loads_file_and_preference(isolated_env):
    (isolated_env / 'tasks.md').write_text('- [ ] a\n  - [x] b\n- [D] c\n')
    (isolated_env / 'config.json').write_text('{"selected_theme": "Dracula"}')
    app = main.build_app(str(isolated_env / 'tasks.md'))
    assert [n.key() for n in app.outline.items] == [('a', False, 0), ('b', True, 1)]
    assert [n.title for n in app.outline.trash] == ['c']
    assert app.theme.name == 'Dracula'


def test_main_requires_a_terminal():
    result = CliRunner().invoke(main.main, ['todo.md'])
    assert result.exit_code == 1
    assert 'interactive terminal' in result.output


def test_main_rejects_extra_arguments():
    result = CliRunner().invoke(main.main, ['a.md', 'b.md'])
    assert result.exit_code != 0


def test_build_app_accepts_latin1_task_file(isolated_env):
    path = isolated_env / 'tasks.md'
    path.write_bytes(b'- [ ] caf\xe9\n')
    app = main.build_app(str(path))
    assert len(app.outline.items) == 1
    assert app.outline.items[0].title.startswith('caf')

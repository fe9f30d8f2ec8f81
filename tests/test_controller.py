import pytest
from conftest import nodes, titles

from controller import App, Mode, TextInput
from outline import Outline
from storage import Storage
from theme import BUILTIN_THEMES


@pytest.fixture
def saved():
    return []


@pytest.fixture
def make_app(saved):
    def factory(items=(), trash=(), storage=None, theme_name=None):
        outline = Outline(list(items), list(trash), storage)

        def save_theme(name):
            saved.append(name)
            return True
        return App(outline, list(BUILTIN_THEMES), theme_name, save_theme=save_theme)
    return factory


def press(app, *keys):
    for key in keys:
        app.handle_key(key)


def test_cursor_moves_within_bounds(make_app):
    app = make_app(nodes(('a', 0), ('b', 0)))
    press(app, 'up')
    assert app.cursor_main == 0
    press(app, 'j', 'down', 'down')
    assert app.cursor_main == 1
    press(app, 'k')
    assert app.cursor_main == 0


def test_space_toggles_done_of_cursor_row(make_app):
    app = make_app(nodes(('a', 0), ('b', 0)))
    press(app, 'j', 'space')
    assert [n.done for n in app.outline.items] == [False, True]


def test_keys_on_empty_list_do_nothing(make_app):
    app = make_app()
    press(app, 'space', 'v', 'm', 'e', 'd', 'tab', 'up', 'down')
    assert app.outline.items == []
    assert app.mode is Mode.MAIN


def test_fold_only_with_children(make_app):
    app = make_app(nodes(('a', 0), ('b', 1), ('c', 0)))
    press(app, 'v')
    assert [r.node.title for r in app.outline.visible] == ['a', 'c']
    press(app, 'j', 'v')
    assert app.outline.items[2].collapsed is False


def test_new_root_item_typed_and_confirmed(make_app):
    app = make_app(nodes(('a', 0), ('b', 1)))
    press(app, 'n')
    assert app.mode is Mode.INPUT
    assert app.cursor_main == 2
    press(app, 'H', 'i', 'space', '!', 'enter')
    assert app.mode is Mode.MAIN
    assert app.outline.items[-1].key() == ('Hi !', False, 0)


def test_new_item_cancel_removes_it(make_app):
    app = make_app(nodes(('a', 0), ('b', 0)))
    press(app, 'j', 'n', 'x', 'esc')
    assert titles(app.outline.items) == ['a', 'b']
    assert app.cursor_main == 1
    assert app.mode is Mode.MAIN


def test_new_item_confirm_empty_acts_as_cancel(make_app):
    app = make_app(nodes(('a', 0)))
    press(app, 'n', 'enter')
    assert titles(app.outline.items) == ['a']
    assert app.mode is Mode.MAIN


def test_new_child_goes_under_cursor_and_expands(make_app):
    app = make_app(nodes(('a', 0), ('b', 1), ('c', 0)))
    press(app, 'v', 'm')
    assert app.outline.items[0].collapsed is False
    assert app.cursor_main == 1
    press(app, 'k', 'i', 'd', 's', 'enter')
    assert [n.key() for n in app.outline.items] == [
        ('a', False, 0), ('kids', False, 1), ('b', False, 1), ('c', False, 0)]


def test_new_child_cancel_returns_cursor_to_parent(make_app):
    app = make_app(nodes(('a', 0), ('b', 0)))
    press(app, 'j', 'm', 'esc')
    assert titles(app.outline.items) == ['a', 'b']
    assert app.cursor_main == 1


def test_edit_prefills_and_confirms(make_app):
    app = make_app(nodes(('abc', 0)))
    press(app, 'e')
    assert app.input.buffer == 'abc'
    press(app, 'backspace', 'backspace', 'X', 'enter')
    assert app.outline.items[0].title == 'aX'


def test_edit_cancel_keeps_title(make_app):
    app = make_app(nodes(('abc', 0)))
    press(app, 'e', 'backspace', 'esc')
    assert titles(app.outline.items) == ['abc']


def test_edit_to_empty_is_allowed(make_app):
    app = make_app(nodes(('ab', 0)))
    press(app, 'e', 'backspace', 'backspace', 'enter')
    assert titles(app.outline.items) == ['']


def test_input_mode_suppresses_bindings(make_app):
    app = make_app(nodes(('a', 0)))
    press(app, 'e', 'q', 'd', 'B', 'ctrl+c', 'tab', 'up')
    assert app.running
    assert app.mode is Mode.INPUT
    assert app.input.buffer == 'aqdB'
    press(app, 'enter')
    assert titles(app.outline.items) == ['aqdB']
    assert app.outline.trash == []


def test_text_input_cursor_editing():
    inp = TextInput(target=0, original='', is_new=True)
    inp.insert('hello')
    inp.home()
    inp.insert('>')
    inp.end()
    inp.left()
    inp.delete()
    inp.right()
    inp.insert('!')
    assert inp.buffer == '>hell!'
    inp.home()
    inp.backspace()
    assert inp.buffer == '>hell!'


def test_delete_moves_block_to_trash_and_clamps(make_app):
    app = make_app(nodes(('a', 0), ('b', 0), ('c', 1)))
    press(app, 'j', 'j', 'k', 'd')
    assert titles(app.outline.items) == ['a']
    assert titles(app.outline.trash) == ['b', 'c']
    assert app.cursor_main == 0


def test_tab_toggles_indent(make_app):
    app = make_app(nodes(('a', 0), ('b', 0)))
    press(app, 'j', 'tab')
    assert app.outline.items[1].level == 1
    press(app, 'tab')
    assert app.outline.items[1].level == 0


def test_trash_view_restore_and_purge(make_app):
    app = make_app(nodes(('a', 0)), trash=nodes(('x', 0), ('y', 1), ('z', 0)))
    press(app, 'B')
    assert app.mode is Mode.TRASH
    assert app.cursor_trash == 0
    press(app, 'j', 'enter')
    assert titles(app.outline.items) == ['a', 'y']
    assert titles(app.outline.trash) == ['x', 'z']
    press(app, 'j', 'x')
    assert titles(app.outline.trash) == ['x']
    assert app.cursor_trash == 0
    press(app, 'x', 'x', 'enter')
    assert app.outline.trash == []
    press(app, 'esc')
    assert app.mode is Mode.MAIN


def test_quit_keys_leave_sub_views_first(make_app):
    app = make_app()
    press(app, 'B', 'q')
    assert app.mode is Mode.MAIN and app.running
    press(app, 't', 'ctrl+c')
    assert app.mode is Mode.MAIN and app.running
    assert app.handle_key('q') is False
    assert not app.running


def test_shift_b_leaves_trash(make_app):
    app = make_app()
    press(app, 'B', 'B')
    assert app.mode is Mode.MAIN


def test_theme_selection_applies_and_saves(make_app, saved):
    app = make_app(theme_name='Nord')
    assert app.theme.name == 'Nord'
    press(app, 't')
    assert app.cursor_theme == app.theme_index
    press(app, 'j', 'enter')
    assert app.theme.name == BUILTIN_THEMES[2].name
    assert saved == [BUILTIN_THEMES[2].name]
    assert app.mode is Mode.MAIN


def test_theme_escape_discards(make_app, saved):
    app = make_app()
    press(app, 't', 'j', 'j', 'esc')
    assert app.theme_index == 0
    assert saved == []


def test_theme_cursor_bounds(make_app):
    app = make_app()
    press(app, 't', 'up')
    assert app.cursor_theme == 0
    press(app, *['down'] * 50)
    assert app.cursor_theme == len(BUILTIN_THEMES) - 1


def test_unknown_theme_name_falls_back_to_first(make_app):
    assert make_app(theme_name='nope').theme_index == 0


def test_unknown_keys_ignored(make_app):
    app = make_app(nodes(('a', 0)))
    press(app, 'z', 'F5', 'enter')
    assert app.mode is Mode.MAIN
    assert titles(app.outline.items) == ['a']


def test_every_state_has_a_dispatch_table(make_app):
    app = make_app()
    for mode in Mode:
        assert app.bindings(mode)


def test_session_writes_through(make_app, tmp_path):
    path = tmp_path / 'todo.md'
    app = make_app(nodes(('a', 0)), storage=Storage(path))
    press(app, 'm', 'b', 'enter', 'space')
    assert path.read_text() == '- [ ] a\n  - [x] b\n'
    press(app, 'k', 'd')
    assert path.read_text() == '- [D] a\n  - [D] b\n'

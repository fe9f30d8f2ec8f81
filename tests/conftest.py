import pytest

import theme
from models import TaskNode
from outline import Outline


def nodes(*spec):
    """Build nodes from (title, level) or (title, level, done) tuples."""
    out = []
    for entry in spec:
        title, level = entry[0], entry[1]
        done = entry[2] if len(entry) > 2 else False
        out.append(TaskNode(title=title, level=level, done=done))
    return out


def titles(seq):
    return [n.title for n in seq]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in an empty cwd with a private config dir and no colors."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('TREEDO_CONFIG_DIR', str(tmp_path / 'userconf'))
    monkeypatch.setattr(theme, '_ENABLE', False)
    return tmp_path


@pytest.fixture
def sample_outline():
    return Outline(nodes(('A', 0), ('B', 1), ('C', 1), ('D', 0)))

import json
import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def _isolated_xdg(tmp_path, monkeypatch):
    """Keep config, data and log files out of the real home directory."""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'xdg-config'))
    monkeypatch.setenv('XDG_DATA_HOME', str(tmp_path / 'xdg-data'))


@pytest.fixture
def write_store(tmp_path):
    """Write *entries* as a connections file and return its path as a string."""

    def _write(entries, name='connections.json'):
        path = tmp_path / name
        path.write_text(json.dumps(entries, indent=2), encoding='utf-8')
        return str(path)

    return _write

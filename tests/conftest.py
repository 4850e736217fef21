"""
Shared fixtures: fixture modules written to a temporary directory.
"""
import importlib.util
import os
import sys
import textwrap

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def write_module(tmp_path):
    """Write dedented source to ``<tmp>/<name>.py`` and return the path."""
    def _write(source, name="fixture_mod"):
        path = tmp_path / f"{name}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def load_module(write_module, monkeypatch):
    """
    Write a fixture module and import it under its file name.

    The module is registered in ``sys.modules`` for the duration of the test,
    so exported code that names it can be evaluated.
    """
    def _load(source, name="fixture_mod"):
        path = write_module(source, name)
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        monkeypatch.setitem(sys.modules, name, module)
        spec.loader.exec_module(module)
        return module
    return _load

"""
Shared fixtures: throwaway source trees and importing generated code
"""

import importlib
import sys
import textwrap

import pytest


@pytest.fixture
def write_tree(tmp_path):
    """Write {relative path: source} under tmp_path and return tmp_path"""
    def write(files):
        for relative, source in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return tmp_path
    return write


@pytest.fixture
def import_source(tmp_path, monkeypatch):
    """Write generated source next to the tree and import it"""
    monkeypatch.syspath_prepend(str(tmp_path))

    def load(module_name, source):
        (tmp_path / f"{module_name}.py").write_text(source, encoding="utf-8")
        importlib.invalidate_caches()
        return importlib.import_module(module_name)

    yield load

    root = str(tmp_path)
    for name, module in list(sys.modules.items()):
        if (getattr(module, "__file__", None) or "").startswith(root):
            del sys.modules[name]

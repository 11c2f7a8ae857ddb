from importlib import import_module
from pkgutil import iter_modules

import pytest

import matchedpairs


def test_namespace_alias():
    with pytest.raises(ImportError):
        from matchedpairs import mp  # noqa: F401


def test_submodules():
    """Test that every submodule imports on its own."""
    for _, modname, _ in iter_modules(
        matchedpairs.__path__, f"{matchedpairs.__name__}."
    ):
        if modname.endswith("__main__"):
            continue
        module = import_module(modname)
        assert module.__name__ == modname

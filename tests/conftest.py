"""Shared fixtures for style files and import-system isolation."""

import sys
from pathlib import Path
from typing import Callable, Generator

import pytest

from cssmodules.lib.interceptor import attached_interceptors, proxy_registry
from cssmodules.lib.loader import extension_handlers


@pytest.fixture
def write_css(tmp_path: Path) -> Callable[[str, str], str]:
    """Writes a style file under tmp_path and returns its absolute path."""

    def write(name: str, content: str) -> str:
        path: Path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    return write


@pytest.fixture
def import_sandbox(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Puts tmp_path on sys.path and restores the loader state afterwards."""
    saved_handlers = dict(extension_handlers)
    saved_meta_path = list(sys.meta_path)
    monkeypatch.syspath_prepend(str(tmp_path))

    yield tmp_path

    extension_handlers.clear()
    extension_handlers.update(saved_handlers)
    sys.meta_path[:] = saved_meta_path
    proxy_registry.clear()
    attached_interceptors.clear()
    for name, module in list(sys.modules.items()):
        if str(getattr(module, "__file__", None) or "").startswith(str(tmp_path)):
            del sys.modules[name]

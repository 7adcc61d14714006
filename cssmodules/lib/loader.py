"""
loader.py

Adapter between the hook and Python's import system.

Python has no registry of load handlers per file extension, so this module
provides one and plugs it into `importlib`:
- `extension_handlers` maps a suffix such as ".css" to a handler called as
  `handler(module, filename)` with a fresh module object
- `StyleModuleFinder` (appended to `sys.meta_path`) finds `name<suffix>`
  files for every registered suffix, after the regular finders had their turn
- `require(path)` loads a style file by path, cached in `sys.modules` under
  its absolute path

Usage:
    handler_register(".css", handler)
    import styles.button            # styles/button.css
    module = require("/abs/path/to/button.css")
"""

import importlib.abc
import importlib.util
import os
import sys
from importlib.machinery import ModuleSpec
from types import ModuleType
from typing import Callable, Optional, Self, Sequence

from cssmodules.lib.errors import StyleFileNotFound
from cssmodules.lib.log import LOG

ExtensionHandler = Callable[[ModuleType, str], None]

extension_handlers: dict[str, ExtensionHandler] = {}


def extension_match(filename: str) -> Optional[str]:
    """Longest registered suffix `filename` ends with."""
    matches: list[str] = [ext for ext in extension_handlers if filename.endswith(ext)]
    return max(matches, key=len) if matches else None


class StyleModuleLoader(importlib.abc.Loader):
    """Loader dispatching to the handler registered for the file's suffix."""

    def __init__(self: Self, fullname: str, path: str) -> None:
        self.fullname: str = fullname
        self.path: str = path

    def create_module(self: Self, spec: ModuleSpec) -> Optional[ModuleType]:
        return None

    def exec_module(self: Self, module: ModuleType) -> None:
        extension: Optional[str] = extension_match(self.path)
        if extension is None:
            raise ImportError(
                f"No handler registered for {self.path}", name=self.fullname
            )
        extension_handlers[extension](module, self.path)


class StyleModuleFinder(importlib.abc.MetaPathFinder):
    """Meta path finder for files with a registered extension."""

    def find_spec(
        self: Self,
        fullname: str,
        path: Optional[Sequence[str]] = None,
        target: Optional[ModuleType] = None,
    ) -> Optional[ModuleSpec]:
        name: str = fullname.rpartition(".")[2]
        for directory in path if path is not None else sys.path:
            for extension in sorted(extension_handlers, key=len, reverse=True):
                candidate: str = os.path.join(directory or os.getcwd(), name + extension)
                if os.path.isfile(candidate):
                    return module_spec(fullname, os.path.abspath(candidate))
        return None


finder: StyleModuleFinder = StyleModuleFinder()


def module_spec(fullname: str, filename: str) -> Optional[ModuleSpec]:
    return importlib.util.spec_from_file_location(
        fullname, filename, loader=StyleModuleLoader(fullname, filename)
    )


def handler_register(extension: str, handler: ExtensionHandler) -> None:
    """Register a handler and make sure the finder is installed."""
    extension_handlers[extension] = handler
    if finder not in sys.meta_path:
        sys.meta_path.append(finder)


def handler_unregister(extension: str, previous: Optional[ExtensionHandler]) -> None:
    """Restore the handler that was registered before, or none at all."""
    if previous is None:
        extension_handlers.pop(extension, None)
    else:
        extension_handlers[extension] = previous
    if not extension_handlers and finder in sys.meta_path:
        sys.meta_path.remove(finder)


def module_compile(module: ModuleType, source: str, filename: str) -> None:
    """Execute synthesized source text as the body of `module`."""
    exec(compile(source, filename, "exec"), module.__dict__)


def require(path: str) -> ModuleType:
    """Load a style file by path through the registered handlers.

    Args:
        path: Path of the style file (made absolute against the cwd)

    Returns:
        ModuleType: The module, cached in sys.modules under the absolute path

    Raises:
        StyleFileNotFound: If the file does not exist
        ImportError: If no handler is registered for its extension
    """
    filename: str = os.path.abspath(path)
    if filename in sys.modules:
        return sys.modules[filename]
    if not os.path.isfile(filename):
        raise StyleFileNotFound(f"Style file not found: {filename}")

    spec: Optional[ModuleSpec] = module_spec(filename, filename)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot build a module spec for {filename}", name=filename)
    module: ModuleType = importlib.util.module_from_spec(spec)
    sys.modules[filename] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(filename, None)
        raise
    return module


def module_evict(filename: str) -> None:
    """Forget every loaded module backed by `filename`."""
    for name, module in list(sys.modules.items()):
        if name == filename or getattr(module, "__file__", None) == filename:
            LOG(f"{filename} → evict {name}")
            del sys.modules[name]


def detach_hook(extension: str) -> None:
    """Drop whatever handler is registered for `extension`."""
    handler_unregister(extension, None)


def drop_cache(path: str) -> None:
    """Forget a loaded style module so the next import loads it afresh."""
    module_evict(os.path.abspath(path))

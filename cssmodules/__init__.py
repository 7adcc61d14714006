"""
Import hook loading CSS Modules as Python modules of scoped class names.
"""

from cssmodules.hook import __version__, setup_hook
from cssmodules.lib.errors import (
    CircularDependencyError,
    ConfigurationError,
    CssModulesError,
    MissingDelegateHandler,
    StyleFileNotFound,
    TransformationError,
)
from cssmodules.lib.loader import detach_hook, drop_cache, require

hook = setup_hook

__all__ = [
    "__version__",
    "setup_hook",
    "hook",
    "require",
    "detach_hook",
    "drop_cache",
    "CssModulesError",
    "ConfigurationError",
    "MissingDelegateHandler",
    "StyleFileNotFound",
    "TransformationError",
    "CircularDependencyError",
]

"""
Module interceptor: the boundary between the import system and the hook.

For every configured extension the interceptor replaces the registered load
handler. A loaded style file becomes a tiny module whose attribute reads are
forwarded to a `LazyTokenProxy`, looked up by the file's absolute path, so
importing never transforms anything by itself:

    import styles.button as button
    button.title        # first read: the file is transformed now
    button.title = "x"  # local override, the cache is untouched

Files matching the `ignore` option keep the handler that was registered
before the hook.
"""

import fnmatch
import re
from types import ModuleType
from typing import Any, Callable, Final, Optional, Self

from cssmodules.lib.errors import MissingDelegateHandler
from cssmodules.lib.fetch import FetchEngine
from cssmodules.lib.loader import (
    ExtensionHandler,
    extension_handlers,
    handler_register,
    handler_unregister,
    module_compile,
)
from cssmodules.lib.log import LOG
from cssmodules.lib.proxy import LazyTokenProxy

ExceptionChecker = Callable[[str], bool]

# Proxies of loaded style files, keyed by f"{absolute path}.proxy"
proxy_registry: dict[str, LazyTokenProxy] = {}

# Interceptors currently attached, in attach order
attached_interceptors: list["ModuleInterceptor"] = []

MODULE_BODY: Final[str] = '''\
from cssmodules.lib.interceptor import proxy_lookup as __proxy_lookup__

__cssfile__ = {filename!r}


def __getattr__(name):
    # import machinery and tooling probe dunders, those never fetch
    if name.startswith("__") and name.endswith("__"):
        raise AttributeError(name)
    return __proxy_lookup__(__cssfile__).get(name)


def __dir__():
    return sorted(__proxy_lookup__(__cssfile__).keys())
'''


def proxy_lookup(filename: str) -> LazyTokenProxy:
    return proxy_registry[f"{filename}.proxy"]


def exceptionChecker_build(ignore: Any) -> ExceptionChecker:
    """Build the predicate for files the hook must leave alone.

    Args:
        ignore: Glob string, compiled regular expression, predicate or None

    Returns:
        ExceptionChecker: `(filename) -> bool`
    """
    if isinstance(ignore, re.Pattern):
        return lambda filename: bool(ignore.search(filename))
    if isinstance(ignore, str):
        return lambda filename: fnmatch.fnmatchcase(filename, ignore)
    if ignore is None:
        return lambda filename: False
    return ignore


class ModuleInterceptor:
    """Load handler for style files, installed per extension.

    Attributes:
        engine: Fetch engine backing every proxy this interceptor creates
        extensions: Suffixes the interceptor is registered for
        is_exception: Predicate for files passed to the previous handler
    """

    def __init__(
        self: Self,
        engine: FetchEngine,
        extensions: list[str],
        is_exception: Optional[ExceptionChecker] = None,
    ) -> None:
        self.engine: FetchEngine = engine
        self.extensions: list[str] = list(extensions)
        self.is_exception: ExceptionChecker = is_exception or exceptionChecker_build(None)
        self.previous: dict[str, Optional[ExtensionHandler]] = {}
        self.handlers: dict[str, ExtensionHandler] = {}
        self.attached: bool = False

    def attach(self: Self) -> None:
        for extension in self.extensions:
            self.previous[extension] = extension_handlers.get(extension)
            self.handlers[extension] = self.handler_for(extension)
            handler_register(extension, self.handlers[extension])
        attached_interceptors.append(self)
        self.attached = True

    def detach(self: Self) -> None:
        """Remove this interceptor from the handler chain of every extension.

        Only the registered handler is replaced. When an interceptor attached
        later delegates to this one, it is relinked to this one's previous
        handler instead.
        """
        for extension in self.extensions:
            handler: Optional[ExtensionHandler] = self.handlers.pop(extension, None)
            previous: Optional[ExtensionHandler] = self.previous.pop(extension, None)
            if extension_handlers.get(extension) is handler:
                handler_unregister(extension, previous)
                continue
            for other in attached_interceptors:
                if other.previous.get(extension) is handler:
                    other.previous[extension] = previous
        if self in attached_interceptors:
            attached_interceptors.remove(self)
        self.attached = False

    def handler_for(self: Self, extension: str) -> ExtensionHandler:
        def cssModulesHook(module: ModuleType, filename: str) -> None:
            self.handle(extension, module, filename)

        return cssModulesHook

    def can_handle(self: Self, filename: str) -> bool:
        return not self.is_exception(filename)

    def handle(self: Self, extension: str, module: ModuleType, filename: str) -> None:
        """Pass an ignored file through, or install a lazy token module.

        Raises:
            MissingDelegateHandler: If an ignored file has no previous handler
        """
        if not self.can_handle(filename):
            previous: Optional[ExtensionHandler] = self.previous.get(extension)
            if previous is None:
                raise MissingDelegateHandler(extension, filename)
            LOG(f"{filename} → pass through")
            previous(module, filename)
            return
        self.load(module, filename)

    def load(self: Self, module: ModuleType, filename: str) -> LazyTokenProxy:
        """Compile the forwarding module body for a style file.

        Args:
            module: Fresh module object provided by the import system
            filename: Path of the style file being imported

        Returns:
            LazyTokenProxy: The proxy registered for the file
        """
        full_filename: str = self.engine.resolver.resolve(filename, filename)
        LOG(f"{filename} → import")

        proxy: LazyTokenProxy = LazyTokenProxy(full_filename, self.engine)
        proxy_registry[f"{full_filename}.proxy"] = proxy

        module_compile(module, MODULE_BODY.format(filename=full_filename), filename)
        return proxy

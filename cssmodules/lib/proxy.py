"""
Lazy token proxy handed to importing modules.

Importing a style file must not transform it: the work happens the first
time a token is actually read. A proxy represents one style file and:
- fetches on first read, never at construction
- lets consumers assign tokens, which shadow the fetched values without
  touching the shared cache
- in live mode keeps a snapshot of the first result, so that repeated reads
  through the same proxy do not re-transform the file every time
- answers None for names the style file does not define
"""

from typing import Any, Iterator, Optional, Self

from cssmodules.lib.fetch import FetchEngine
from cssmodules.lib.log import LOG
from cssmodules.models.dataModel import ProxyState, TokenMapping


class LazyTokenProxy:
    """Deferred token mapping for a single style file.

    Attributes:
        filename: Absolute path of the style file
        engine: Fetch engine used on first access
        state: Resolution state of the backing mapping
    """

    def __init__(self: Self, filename: str, engine: FetchEngine) -> None:
        self.filename: str = filename
        self.engine: FetchEngine = engine
        self.state: ProxyState = ProxyState.UNRESOLVED
        self._overrides: dict[str, Any] = {}
        self._snapshot: Optional[TokenMapping] = None

    def get(self: Self, key: str, default: Any = None) -> Any:
        """Read a token, fetching the file if nothing is available yet.

        Args:
            key: Class name as written in the style file
            default: Returned when the file does not define `key`

        Returns:
            The assigned override, else the generated name, else `default`
        """
        if key in self._overrides:
            return self._overrides[key]
        return self.tokens().get(key, default)

    def set(self: Self, key: str, value: Any) -> None:
        self._overrides[key] = value

    def tokens(self: Self) -> TokenMapping:
        """The backing mapping: live snapshot, first fetch, or cached mapping."""
        if self._snapshot is not None:
            return self._snapshot
        cached: Optional[TokenMapping] = self.engine.cache.get(self.filename)
        if cached is None:
            return self.resolve()
        self.state = ProxyState.RESOLVED
        return cached

    def resolve(self: Self) -> TokenMapping:
        self.state = ProxyState.RESOLVING
        try:
            tokens: TokenMapping = self.engine.fetch(self.filename, self.filename)
        except Exception:
            self.state = ProxyState.UNRESOLVED
            raise
        self.state = ProxyState.RESOLVED

        # Live mode never caches, every read would re-transform the file
        if self.engine.live:
            self._snapshot = tokens
        return tokens

    def inspect(self: Self) -> TokenMapping:
        """Mapping used to render the proxy, fetching at most once.

        Assigned overrides are layered over the fetched tokens.
        """
        LOG(f"{self.filename} → inspect")
        return {**self.tokens(), **self._overrides}

    def keys(self: Self) -> list[str]:
        return list(self.inspect())

    def __getitem__(self: Self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self: Self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self: Self, key: object) -> bool:
        return key in self._overrides or key in self.tokens()

    def __iter__(self: Self) -> Iterator[str]:
        return iter(self.keys())

    def __repr__(self: Self) -> str:
        return f"{type(self).__name__}({self.inspect()!r})"

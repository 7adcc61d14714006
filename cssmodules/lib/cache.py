"""
Per-file token cache.

Maps an absolute style file path to the token mapping produced for it. The
commit policy depends on the mode the hook runs in:
- normal: entries live until the process ends (or `clear()`), and repeated
  lookups return the identical mapping object
- live: a committed entry is dropped right away so the next request for the
  same path is a miss and re-transforms the file
"""

from typing import Optional, Self

from cssmodules.models.dataModel import TokenMapping


class TokenCache:
    """Mapping of absolute path to token mapping with a mode-dependent policy."""

    def __init__(self: Self, live: bool = False) -> None:
        self._live: bool = live
        self._entries: dict[str, TokenMapping] = {}

    @property
    def live(self: Self) -> bool:
        return self._live

    def get(self: Self, path: str) -> Optional[TokenMapping]:
        return self._entries.get(path)

    def put(self: Self, path: str, mapping: TokenMapping) -> None:
        self._entries[path] = mapping

    def invalidate(self: Self, path: str) -> None:
        self._entries.pop(path, None)

    def commit(self: Self, path: str, mapping: TokenMapping) -> None:
        """Record a freshly fetched mapping according to the cache policy."""
        if self._live:
            self.invalidate(path)
        else:
            self.put(path, mapping)

    def clear(self: Self) -> None:
        self._entries.clear()

    def __contains__(self: Self, path: object) -> bool:
        return path in self._entries

    def __len__(self: Self) -> int:
        return len(self._entries)

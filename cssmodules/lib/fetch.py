"""
Fetch engine: produces the token mapping of a style file.

Given a specifier and the file referencing it, the engine resolves the
absolute path, serves the mapping from the token cache when it can, and
otherwise reads, pre-processes and transforms the file. The pipeline calls
back into `fetch` for every file the sheet imports from, so one top-level
fetch resolves and caches the whole dependency graph before it returns.

Features:
- Cache-first lookup with a mode-dependent commit policy
- In-flight tracking that turns dependency cycles into an error
- camelCase augmentation and user hooks on the produced mapping
- Pipeline warnings forwarded to the log
"""

import threading
from pathlib import Path
from typing import Any, Callable, Optional, Self

from cssmodules.lib.cache import TokenCache
from cssmodules.lib.casing import camelCase_augment
from cssmodules.lib.errors import CircularDependencyError, TransformationError
from cssmodules.lib.log import LOG, WARN
from cssmodules.lib.pipeline.base import Runner
from cssmodules.lib.resolver import FilenameResolver
from cssmodules.models.dataModel import PipelineResult, TokenMapping


def identity(text: str, filename: str) -> str:
    return text


class FetchEngine:
    """Resolution, caching and transformation of style files.

    Attributes:
        runner: Pipeline used to transform a file
        cache: Token cache shared by every fetch of this engine
        resolver: Specifier to absolute path resolution
        preprocess_css: `(text, path) -> text` applied to the raw source
        process_css: `(css, path)` called with the transformed css
        process_tokens: `(tokens, path, result) -> tokens` final rewrite
        camel_case: Whether camelCased keys are added to every mapping
        processor_opts: Options handed to every pipeline run
        evict: Called with the path after each fetch in live mode
    """

    def __init__(
        self: Self,
        runner: Runner,
        cache: TokenCache,
        resolver: Optional[FilenameResolver] = None,
        preprocess_css: Optional[Callable[[str, str], str]] = None,
        process_css: Optional[Callable[[str, str], Any]] = None,
        process_tokens: Optional[
            Callable[[TokenMapping, str, PipelineResult], TokenMapping]
        ] = None,
        camel_case: bool = False,
        evict: Optional[Callable[[str], None]] = None,
        processor_opts: Optional[dict[str, Any]] = None,
    ) -> None:
        self.runner: Runner = runner
        self.cache: TokenCache = cache
        self.resolver: FilenameResolver = resolver or FilenameResolver()
        self.preprocess_css: Callable[[str, str], str] = preprocess_css or identity
        self.process_css: Optional[Callable[[str, str], Any]] = process_css
        self.process_tokens = process_tokens
        self.camel_case: bool = camel_case
        self.evict: Optional[Callable[[str], None]] = evict
        self.processor_opts: dict[str, Any] = dict(processor_opts or {})
        self._in_flight: list[str] = []
        self._lock: threading.RLock = threading.RLock()

    @property
    def live(self: Self) -> bool:
        return self.cache.live

    def fetch(self: Self, specifier: str, from_file: str) -> TokenMapping:
        """Return the token mapping of the file `specifier` refers to.

        Args:
            specifier: Path or package specifier of the wanted file
            from_file: Absolute path of the referencing file (the wanted
                file itself for top-level fetches)

        Returns:
            TokenMapping: The (cached, in normal mode) mapping for the file

        Raises:
            StyleFileNotFound: If the specifier does not resolve to a file
            TransformationError: If the pipeline fails on this file or any
                file it imports, including dependency cycles
        """
        with self._lock:
            filename: str = self.resolver.resolve(specifier, from_file)

            tokens: Optional[TokenMapping] = self.cache.get(filename)
            if tokens is not None:
                LOG(f"{filename} → cache")
                LOG(f"{filename}: {tokens}")
                return tokens

            if filename in self._in_flight:
                raise CircularDependencyError([*self._in_flight, filename])

            self._in_flight.append(filename)
            try:
                tokens = self.transform(filename)
            finally:
                self._in_flight.remove(filename)

            self.cache.commit(filename, tokens)
            if self.live and self.evict:
                self.evict(filename)

            LOG(f"{filename}: {tokens}")
            return tokens

    def transform(self: Self, filename: str) -> TokenMapping:
        """Read a file and run it through the pipeline and the token hooks."""
        LOG(f"{filename} → fs")

        try:
            text: str = Path(filename).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise TransformationError(f"{filename}: not valid UTF-8 ({e.reason})") from e

        source: str = self.preprocess_css(text, filename)
        result: PipelineResult = self.runner.process(
            source, from_path=filename, fetch=self.fetch, options=self.processor_opts
        )

        for warning in result.warnings:
            WARN(warning)

        tokens: TokenMapping = result.tokens
        if self.camel_case:
            tokens = camelCase_augment(tokens)

        if self.process_css:
            self.process_css(result.css, filename)

        if self.process_tokens:
            tokens = self.process_tokens(tokens, filename, result)

        return tokens

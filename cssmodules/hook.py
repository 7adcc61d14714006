"""
CSS Modules import hook.

This module wires the hook together: options are validated, the pipeline is
assembled, and a module interceptor is attached for every configured file
extension. Afterwards style files can be imported like Python modules, and
each one exposes its local class names mapped to generated, scoped names.

Features:
- Lazy transformation: nothing is read before a token is first accessed
- Cross-file `composes`/`@value` imports, resolved through a shared cache
- Live-reload mode that re-transforms on every fresh import
- Pluggable pipeline stages and token/css post-processing hooks

Usage:
    from cssmodules import setup_hook

    setup_hook(generateScopedName="[name]__[local]___[hash:base64:5]")

    import components.button as styles      # components/button.css
    styles.title                            # "button__title___1bDdQ"

Note:
    The live-reload default follows CSSMODULES_ENV=development.
"""

import os
from typing import Any, Final

from pydantic import ValidationError

from cssmodules.config.settings import devMode_resolve
from cssmodules.lib.cache import TokenCache
from cssmodules.lib.errors import ConfigurationError
from cssmodules.lib.fetch import FetchEngine
from cssmodules.lib.interceptor import ModuleInterceptor, exceptionChecker_build
from cssmodules.lib.loader import module_evict
from cssmodules.lib.log import LOG
from cssmodules.lib.pipeline import (
    ExtractImports,
    LocalByDefault,
    Runner,
    Scope,
    Values,
    default_scoped_name,
    generic_names,
)
from cssmodules.lib.pipeline.base import Stage
from cssmodules.lib.pipeline.names import ScopedNameGenerator
from cssmodules.lib.resolver import FilenameResolver
from cssmodules.models.dataModel import HookOptions

__version__: Final[str] = "0.1.0"


def options_validate(options: dict[str, Any]) -> HookOptions:
    """Validate setup options.

    Args:
        options: Keyword arguments given to setup_hook

    Returns:
        HookOptions: The validated options

    Raises:
        ConfigurationError: For unknown options or options of the wrong type
    """
    try:
        return HookOptions(**options)
    except ValidationError as e:
        problems: list[str] = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError("Invalid hook options: " + "; ".join(problems)) from e


def scopedName_build(options: HookOptions) -> ScopedNameGenerator:
    context: str = os.fspath(options.root_dir)
    if options.generate_scoped_name is None:
        return default_scoped_name(context)
    if isinstance(options.generate_scoped_name, str):
        return generic_names(
            options.generate_scoped_name, context=context, hash_prefix=options.hash_prefix
        )
    return options.generate_scoped_name


def stages_build(options: HookOptions) -> list[Stage]:
    """Default stage list, unless `use` replaces it entirely."""
    if options.use is not None:
        return list(options.use)
    return [
        *options.prepend,
        Values(),
        LocalByDefault(options.mode),
        ExtractImports(options.create_imported_name),
        Scope(scopedName_build(options)),
        *options.append,
    ]


def setup_hook(**kwargs: Any) -> ModuleInterceptor:
    """Attach the CSS Modules hook to the import system.

    Args:
        **kwargs: Options as described by HookOptions, by field name or by
            camelCase alias (devMode, extensions, ignore, preprocessCss,
            processCss, processTokens, camelCase, generateScopedName,
            hashPrefix, rootDir, append, prepend, use, mode,
            createImportedName)

    Returns:
        ModuleInterceptor: The attached interceptor; `.engine.fetch(path,
        path)` gives direct access to token mappings and `.detach()`
        restores the previous handlers

    Raises:
        ConfigurationError: If the options are invalid
    """
    LOG(f"setup: {kwargs}")
    options: HookOptions = options_validate(kwargs)
    live: bool = devMode_resolve(options.dev_mode)

    engine: FetchEngine = FetchEngine(
        runner=Runner(stages_build(options)),
        cache=TokenCache(live=live),
        resolver=FilenameResolver(),
        preprocess_css=options.preprocess_css,
        process_css=options.process_css,
        process_tokens=options.process_tokens,
        camel_case=options.camel_case,
        evict=module_evict if live else None,
        processor_opts=options.processor_opts,
    )

    interceptor: ModuleInterceptor = ModuleInterceptor(
        engine,
        extensions=list(options.extensions),
        is_exception=exceptionChecker_build(options.ignore),
    )
    interceptor.attach()
    LOG(f"attached for {', '.join(interceptor.extensions)} (live: {live})")
    return interceptor

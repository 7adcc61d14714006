"""
dataModel.py

This module defines the data models used throughout the CSS Modules hook.
The models leverage Pydantic for validation and type safety.

Features:
- Setup options with validation and camelCase aliases.
- The result of a pipeline run.
- The lifecycle states of a lazy token proxy.

Usage:
Import these models to validate and structure data passed between the hook,
the fetch engine and the pipeline.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    field_validator,
)

TokenMapping = dict[str, Any]

Stage = Callable[..., Any]


class ProxyState(Enum):
    """
    Enum for the resolution state of a lazy token proxy.
    """

    UNRESOLVED = 1
    RESOLVING = 2
    RESOLVED = 3


class PipelineResult(BaseModel):
    """Result of running the transformation pipeline over one file.

    Attributes:
        css: The transformed style sheet text
        tokens: Mapping of local class names to generated names
        warnings: Non-fatal diagnostics produced along the way
    """

    css: str
    tokens: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class HookOptions(BaseModel):
    """
    Options accepted by `setup_hook`.

    Every option can be given by its field name or by its camelCase alias
    (e.g. `camel_case` or `camelCase`). Unknown options are rejected.

    Attributes:
        dev_mode (Optional[bool]): Force the live-reload cache policy.
        extensions (list[str]): File suffixes to intercept.
        ignore: Glob string, compiled regular expression or predicate for
            files that keep their previous handler.
        preprocess_css: `(text, path) -> text` applied before the pipeline.
        process_css: `(css, path)` side-effect hook for the final css.
        process_tokens: `(tokens, path, result) -> tokens` replacing the mapping.
        camel_case (bool): Add camelCased duplicates of every key.
        generate_scoped_name: Name template or `(local, path) -> str`.
        hash_prefix (str): Seed mixed into name hashes.
        root_dir (Path): Base directory for relative names.
        append, prepend, use: Pipeline stage overrides.
        mode: Scoping mode for the local-by-default stage.
        create_imported_name: `(name, path) -> str` for composes aliases.
        processor_opts (dict): Options handed to every pipeline run, readable
            by the stages as `sheet.options`.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        extra="forbid",
    )

    dev_mode: Optional[StrictBool] = Field(default=None, alias="devMode")
    extensions: Union[StrictStr, list[StrictStr]] = Field(default=[".css"])
    ignore: Any = None
    preprocess_css: Optional[Callable[..., Any]] = Field(
        default=None, alias="preprocessCss"
    )
    process_css: Optional[Callable[..., Any]] = Field(
        default=None, alias="processCss"
    )
    process_tokens: Optional[Callable[..., Any]] = Field(
        default=None, alias="processTokens"
    )
    camel_case: StrictBool = Field(default=False, alias="camelCase")
    generate_scoped_name: Union[StrictStr, Callable[..., Any], None] = Field(
        default=None, alias="generateScopedName"
    )
    hash_prefix: StrictStr = Field(default="", alias="hashPrefix")
    root_dir: Path = Field(default_factory=Path.cwd, alias="rootDir")
    append: list[Stage] = Field(default_factory=list)
    prepend: list[Stage] = Field(default_factory=list)
    use: Optional[list[Stage]] = None
    mode: Optional[Literal["local", "global", "pure"]] = None
    create_imported_name: Optional[Callable[..., Any]] = Field(
        default=None, alias="createImportedName"
    )
    processor_opts: dict[str, Any] = Field(
        default_factory=dict, alias="processorOpts"
    )

    @field_validator("extensions")
    @classmethod
    def extensions_toList(cls, value: Union[str, list[str]]) -> list[str]:
        extensions: list[str] = [value] if isinstance(value, str) else list(value)
        if not extensions:
            raise ValueError("should specify at least one extension")
        for extension in extensions:
            if not extension.startswith("."):
                raise ValueError(f"extension '{extension}' should start with '.'")
        return extensions

    @field_validator("ignore")
    @classmethod
    def ignore_check(cls, value: Any) -> Any:
        if value is None or isinstance(value, (str, re.Pattern)) or callable(value):
            return value
        raise ValueError(
            "should specify a glob string, regular expression or function "
            "for the ignore option"
        )

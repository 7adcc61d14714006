r"""
Base pipeline implementation for CSS Modules transformation.

Provides a generic runner that parses a style sheet once and hands the tree
to a sequence of stages. Each stage rewrites the tree in place; the last
stage always resolves `:import` blocks through the `fetch` callback and
collects the `:export` block into the token mapping.

The runner handles:
- Parsing and printing the style sheet
- Stage strategy pattern for the individual transformations
- Collection of non-fatal warnings
- Recursive fetching of the files a sheet imports from

Example:
    runner = Runner([Values(), LocalByDefault(), ExtractImports(), Scope()])
    result = runner.process(source, from_path="/abs/a.css", fetch=engine.fetch)
    result.tokens   # {"title": "_a__title"}
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Iterable,
    Optional,
    Protocol,
    Self,
    runtime_checkable,
)

from cssmodules.lib.errors import TransformationError
from cssmodules.lib.log import LOG
from cssmodules.lib.pipeline.syntax import Node, parse, stringify
from cssmodules.models.dataModel import PipelineResult, TokenMapping

Fetch = Callable[[str, str], TokenMapping]


@dataclass
class Stylesheet:
    """A style sheet travelling through the pipeline.

    Attributes:
        nodes: Parsed top-level nodes, rewritten in place by the stages
        path: Absolute path of the file being transformed
        fetch: Callback returning the token mapping of another file
        tokens: Exported tokens, filled in by the last stage
        warnings: Non-fatal diagnostics
        options: Free-form options given to `Runner.process`
    """

    nodes: list[Node]
    path: str
    fetch: Optional[Fetch] = None
    tokens: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    def warn(self: Self, text: str) -> None:
        self.warnings.append(f"{self.path}: {text}")


@runtime_checkable
class Stage(Protocol):
    """Protocol defining the interface of a pipeline stage.

    A stage receives the whole sheet and rewrites its nodes in place. It
    raises TransformationError for input it cannot handle and reports
    anything recoverable through `sheet.warn`.
    """

    def __call__(self: Self, sheet: Stylesheet) -> None: ...


class Runner:
    """Pipeline runner using the stage strategy.

    Attributes:
        stages: Stages run in order before the final import/export parser
    """

    def __init__(self: Self, stages: Iterable[Stage]) -> None:
        from cssmodules.lib.pipeline.stages import Parser

        self.stages: list[Stage] = list(stages)
        self.parser: Stage = Parser()

    def process(
        self: Self,
        source: str,
        from_path: str,
        fetch: Optional[Fetch] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> PipelineResult:
        """Transform one style sheet.

        Args:
            source: Style sheet text (already pre-processed)
            from_path: Absolute path of the file
            fetch: Callback used to get the tokens of imported files
            options: Made available to the stages as `sheet.options`

        Returns:
            PipelineResult with the css, the tokens and the warnings

        Raises:
            TransformationError: If the sheet cannot be parsed or a stage fails
        """
        sheet: Stylesheet = Stylesheet(
            nodes=parse(source, from_path),
            path=from_path,
            fetch=fetch,
            options=dict(options or {}),
        )
        for stage in [*self.stages, self.parser]:
            if not callable(stage):
                raise TransformationError(f"Pipeline stage {stage!r} is not callable")
            stage(sheet)

        LOG(f"{from_path}: {len(sheet.tokens)} tokens, {len(sheet.warnings)} warnings")
        return PipelineResult(
            css=stringify(sheet.nodes), tokens=sheet.tokens, warnings=sheet.warnings
        )

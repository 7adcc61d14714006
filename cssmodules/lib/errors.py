"""
Exception hierarchy for the CSS Modules hook.

All fatal conditions halt the module load that triggered them; nothing here
is retried automatically.
"""


class CssModulesError(Exception):
    """Base class for every error raised by the hook."""


class ConfigurationError(CssModulesError, ValueError):
    """Invalid or missing setup options, raised before any file is processed."""


class MissingDelegateHandler(ConfigurationError):
    """An ignored file has no previously registered handler to fall back to."""

    def __init__(self, extension: str, filename: str) -> None:
        self.extension: str = extension
        self.filename: str = filename
        super().__init__(
            f"No previous handler is registered for '{extension}' files, "
            f"cannot pass through {filename}"
        )


class StyleFileNotFound(CssModulesError, FileNotFoundError):
    """A specifier could not be resolved to an existing file."""


class TransformationError(CssModulesError):
    """The pipeline could not parse or transform a style file."""


class CircularDependencyError(TransformationError):
    """A file was requested again while it was still being transformed."""

    def __init__(self, chain: list[str]) -> None:
        self.chain: list[str] = chain
        super().__init__("Circular style dependency: " + " -> ".join(chain))

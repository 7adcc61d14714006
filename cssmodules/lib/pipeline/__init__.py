"""
Pipeline package for CSS Modules transformation.

Provides a modular system turning style sheets into scoped css plus a token
mapping, using configurable stages.
"""

from .base import Runner, Stage, Stylesheet
from .names import default_scoped_name, generic_names
from .stages import ExtractImports, LocalByDefault, Parser, Scope, Values

__all__ = [
    "Runner",
    "Stage",
    "Stylesheet",
    "Values",
    "LocalByDefault",
    "ExtractImports",
    "Scope",
    "Parser",
    "generic_names",
    "default_scoped_name",
]

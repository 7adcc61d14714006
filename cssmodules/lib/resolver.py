"""
Filename resolution for style file specifiers.

Turns the specifier found in an `:import`, a `composes ... from` or a
`@value ... from` clause into an absolute file path:
- Relative paths: resolved against the directory of the referencing file
- Package paths: `package/sub/file.css` resolved through Python's own
  module lookup for `package`
"""

import importlib.util
import os
from typing import Final, Self

from cssmodules.lib.errors import StyleFileNotFound
from cssmodules.lib.log import LOG

# First characters that mark a specifier as a filesystem path
PATH_MARKERS: Final[str] = '\\/?%*:|"<>.'


class FilenameResolver:
    """Resolver from import specifiers to absolute style file paths."""

    def resolve(self: Self, specifier: str, referencing_file: str) -> str:
        """Resolve a specifier relative to the file that references it.

        Args:
            specifier: Path or package specifier as written in the style sheet
            referencing_file: Absolute path of the file containing the reference

        Returns:
            Absolute, normalized path of an existing file

        Raises:
            StyleFileNotFound: If nothing exists at the resolved location
        """
        if not specifier:
            raise StyleFileNotFound("Empty style file specifier")

        if os.path.isabs(specifier):
            path: str = os.path.normpath(specifier)
        elif self.is_package(specifier):
            path = self.package_resolve(specifier)
        else:
            path = os.path.normpath(
                os.path.join(os.path.dirname(referencing_file), specifier)
            )

        if not os.path.isfile(path):
            msg: str = f"Style file not found: {specifier} (from {referencing_file})"
            LOG(msg)
            raise StyleFileNotFound(msg)
        return path

    @staticmethod
    def is_package(specifier: str) -> bool:
        """Whether a specifier names a file inside an importable package."""
        return specifier[0] not in PATH_MARKERS

    def package_resolve(self: Self, specifier: str) -> str:
        """Locate `package/rest/of/path` inside the package's directory.

        Args:
            specifier: Package-style specifier

        Returns:
            Absolute path joined from the package directory and the remainder

        Raises:
            StyleFileNotFound: If the package cannot be imported from sys.path
        """
        package, _, remainder = specifier.replace("\\", "/").partition("/")
        try:
            spec = importlib.util.find_spec(package)
        except (ImportError, ValueError):
            spec = None

        if spec is None:
            raise StyleFileNotFound(f"Cannot find package '{package}' for {specifier}")

        if spec.submodule_search_locations:
            base: str = list(spec.submodule_search_locations)[0]
        elif spec.origin:
            base = os.path.dirname(spec.origin)
        else:
            raise StyleFileNotFound(f"Package '{package}' has no location on disk")

        return os.path.normpath(os.path.join(base, *remainder.split("/")))

"""Tests for style file specifier resolution."""

import os
import pytest
from cssmodules.lib.errors import StyleFileNotFound
from cssmodules.lib.resolver import FilenameResolver


@pytest.fixture
def resolver():
    return FilenameResolver()


def test_relative_to_referencing_file(resolver, write_css):
    target = write_css("styles/colors.css", ".red {}")
    referencing = write_css("styles/components/button.css", ".button {}")

    assert resolver.resolve("../colors.css", referencing) == target
    assert resolver.resolve("./button.css", referencing) == referencing


def test_absolute_path(resolver, write_css):
    target = write_css("a.css", ".a {}")
    assert resolver.resolve(target, "/somewhere/else.css") == target


def test_self_reference(resolver, write_css):
    target = write_css("a.css", ".a {}")
    assert resolver.resolve(target, target) == target


def test_missing_file(resolver, write_css):
    referencing = write_css("a.css", ".a {}")
    with pytest.raises(StyleFileNotFound) as exc_info:
        resolver.resolve("./missing.css", referencing)
    assert isinstance(exc_info.value, FileNotFoundError)
    assert "missing.css" in str(exc_info.value)


def test_package_specifier(resolver, tmp_path, monkeypatch):
    package = tmp_path / "cssmodules_fixture_theme"
    (package / "palette").mkdir(parents=True)
    (package / "__init__.py").write_text("")
    (package / "palette" / "colors.css").write_text(".red { color: red }")
    monkeypatch.syspath_prepend(str(tmp_path))

    resolved = resolver.resolve("cssmodules_fixture_theme/palette/colors.css", "/x/y.css")
    assert resolved == os.path.join(str(package), "palette", "colors.css")


def test_unknown_package(resolver):
    with pytest.raises(StyleFileNotFound, match="cssmodules_no_such_package"):
        resolver.resolve("cssmodules_no_such_package/a.css", "/x/y.css")


@pytest.mark.parametrize(
    "specifier,expected",
    [
        ("pkg/a.css", True),
        ("pkg", True),
        ("./a.css", False),
        ("../a.css", False),
        ("/abs/a.css", False),
        ("\\win\\a.css", False),
    ],
)
def test_is_package(specifier, expected):
    assert FilenameResolver.is_package(specifier) is expected

"""Tests for hook setup and option handling."""

import re
from unittest.mock import Mock

import pytest

import cssmodules
from cssmodules import ConfigurationError, require, setup_hook
from cssmodules.config.settings import appsettings
from cssmodules.hook import options_validate, stages_build
from cssmodules.lib.loader import extension_handlers, module_evict
from cssmodules.lib.pipeline.syntax import Declaration, Rule


def test_public_api():
    assert cssmodules.hook is setup_hook
    assert re.fullmatch(r"\d+\.\d+\.\d+", cssmodules.__version__)


@pytest.mark.parametrize(
    "options",
    [
        {"camelCase": "yes"},
        {"devMode": "true"},
        {"extensions": 5},
        {"extensions": []},
        {"extensions": "css"},
        {"ignore": 5},
        {"generateScopedName": 5},
        {"mode": "scoped"},
        {"processCss": "not callable"},
        {"processorOpts": ["theme"]},
        {"bogus": True},
    ],
)
def test_invalid_options(import_sandbox, options):
    before = dict(extension_handlers)
    with pytest.raises(ConfigurationError, match="Invalid hook options"):
        setup_hook(**options)
    assert extension_handlers == before


def test_options_by_name_or_alias(tmp_path):
    by_alias = options_validate({"camelCase": True, "hashPrefix": "x", "rootDir": tmp_path})
    by_name = options_validate({"camel_case": True, "hash_prefix": "x", "root_dir": str(tmp_path)})

    assert by_alias == by_name
    assert by_alias.extensions == [".css"]
    assert options_validate({"extensions": ".scss"}).extensions == [".scss"]


def test_use_replaces_default_stages():
    stage = Mock()
    options = options_validate({"use": [stage], "append": [print]})
    assert stages_build(options) == [stage]


def test_prepend_and_append_surround_defaults():
    first, last = Mock(), Mock()
    stages = stages_build(options_validate({"prepend": [first], "append": [last]}))

    assert stages[0] is first and stages[-1] is last
    assert [type(stage).__name__ for stage in stages[1:-1]] == [
        "Values",
        "LocalByDefault",
        "ExtractImports",
        "Scope",
    ]


def test_end_to_end(import_sandbox, write_css):
    write_css("theme/colors.css", "@value brand: #0af; .base { padding: 0 }")
    path = write_css(
        "components/button.css",
        '@value brand from "../theme/colors.css";\n'
        '.main-button { composes: base from "../theme/colors.css"; color: brand }',
    )
    seen_css = []

    setup_hook(
        devMode=False,
        rootDir=import_sandbox,
        generateScopedName="[name]__[local]",
        camelCase=True,
        processCss=lambda css, filename: seen_css.append((filename, css)),
    )
    module = require(path)

    assert module.mainButton == "button__main-button colors__base"
    assert getattr(module, "main-button") == module.mainButton
    assert module.brand == "#0af"
    assert module.undefined is None
    assert any(
        filename == path and "color: #0af" in css for filename, css in seen_css
    )


def test_default_scoped_names(import_sandbox, write_css):
    path = write_css("pages/home.css", ".hero {}")
    setup_hook(devMode=False, rootDir=import_sandbox)

    assert require(path).hero == "_pages_home__hero"


def test_process_tokens_and_extensions(import_sandbox, write_css):
    path = write_css("a.module.scss", ".title {}")
    setup_hook(
        devMode=False,
        rootDir=import_sandbox,
        extensions=[".module.scss"],
        generateScopedName=lambda local, filename: f"custom-{local}",
        processTokens=lambda tokens, filename, result: {**tokens, "file": filename},
    )
    module = require(path)

    assert module.title == "custom-title"
    assert module.file == path


def test_user_stage_in_pipeline(import_sandbox, write_css):
    def extra_export(sheet):
        sheet.nodes.append(Rule(":export", [Declaration("theme", "dark")]))

    path = write_css("a.css", ".title {}")
    setup_hook(devMode=False, rootDir=import_sandbox, append=[extra_export])

    assert require(path).theme == "dark"


def test_processor_opts_reach_stages(import_sandbox, write_css):
    def theme_export(sheet):
        sheet.nodes.append(Rule(":export", [Declaration("theme", sheet.options["theme"])]))

    path = write_css("a.css", ".title {}")
    setup_hook(
        devMode=False,
        rootDir=import_sandbox,
        append=[theme_export],
        processorOpts={"theme": "light"},
    )

    assert require(path).theme == "light"


def test_pure_mode_error_on_access(import_sandbox, write_css):
    path = write_css("a.css", "div { color: red }")
    setup_hook(devMode=False, rootDir=import_sandbox, mode="pure")

    module = require(path)
    with pytest.raises(cssmodules.TransformationError, match="is not pure"):
        module.anything


def test_dev_mode_from_environment(import_sandbox, monkeypatch):
    monkeypatch.setattr(appsettings, "env", "development")
    interceptor = setup_hook(rootDir=import_sandbox)

    assert interceptor.engine.live is True
    assert interceptor.engine.evict is module_evict


def test_explicit_dev_mode_wins(import_sandbox, monkeypatch):
    monkeypatch.setattr(appsettings, "env", "development")
    interceptor = setup_hook(devMode=False, rootDir=import_sandbox)

    assert interceptor.engine.live is False
    assert interceptor.engine.evict is None

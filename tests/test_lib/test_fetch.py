"""Tests for the fetch engine."""

import os
import re
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import pytest

from cssmodules.lib.cache import TokenCache
from cssmodules.lib.errors import (
    CircularDependencyError,
    StyleFileNotFound,
    TransformationError,
)
from cssmodules.lib.fetch import FetchEngine
from cssmodules.lib.pipeline import (
    ExtractImports,
    LocalByDefault,
    Runner,
    Scope,
    Values,
    generic_names,
)
from cssmodules.models.dataModel import PipelineResult


def basename_scoped(local: str, path: str) -> str:
    return f"{os.path.splitext(os.path.basename(path))[0]}__{local}"


def engine_build(live: bool = False, scoped=basename_scoped, **kwargs) -> FetchEngine:
    runner = Runner([Values(), LocalByDefault(), ExtractImports(), Scope(scoped)])
    return FetchEngine(runner, TokenCache(live=live), **kwargs)


def test_scoped_name_template(tmp_path, write_css):
    path = write_css("a.css", ".title { color: red }")
    scoped = generic_names("[local]_[hash:base64:5]", context=str(tmp_path))

    tokens = engine_build(scoped=scoped).fetch(path, path)
    again = engine_build(scoped=scoped).fetch(path, path)

    assert list(tokens) == ["title"]
    assert tokens["title"] == again["title"]
    assert re.fullmatch(r"title_[0-9A-Za-z_-]{5}", tokens["title"])


def test_normal_mode_returns_cached_mapping(write_css):
    path = write_css("a.css", ".title { color: red }")
    engine = engine_build()

    with patch.object(engine, "transform", wraps=engine.transform) as transform:
        first = engine.fetch(path, path)
        second = engine.fetch(path, path)

    assert first is second
    assert first == {"title": "a__title"}
    assert transform.call_count == 1


def test_live_mode_transforms_every_time(write_css):
    path = write_css("a.css", ".title { color: red }")
    evict = Mock()
    engine = engine_build(live=True, evict=evict)

    with patch.object(engine, "transform", wraps=engine.transform) as transform:
        first = engine.fetch(path, path)
        second = engine.fetch(path, path)

    assert first == second == {"title": "a__title"}
    assert transform.call_count == 2
    assert len(engine.cache) == 0
    assert evict.call_count == 2
    evict.assert_called_with(path)


def test_live_mode_picks_up_changes(write_css):
    path = write_css("a.css", ".title {}")
    engine = engine_build(live=True)
    assert engine.fetch(path, path) == {"title": "a__title"}

    write_css("a.css", ".title {} .subtitle {}")
    assert engine.fetch(path, path) == {"title": "a__title", "subtitle": "a__subtitle"}


def test_dependency_fetched_once(write_css):
    a = write_css("a.css", ".title { color: red }")
    b = write_css("b.css", '.heading { composes: title from "./a.css"; color: blue }')
    engine = engine_build()

    with patch.object(engine, "transform", wraps=engine.transform) as transform:
        tokens = engine.fetch(b, b)
        engine.fetch(b, b)
        engine.fetch(a, a)

    assert tokens == {"heading": "b__heading a__title"}
    assert [call.args[0] for call in transform.call_args_list] == [b, a]
    assert engine.cache.get(a) == {"title": "a__title"}


def test_relative_specifier_from_other_file(write_css):
    a = write_css("styles/a.css", ".title {}")
    b = write_css("styles/nested/b.css", ".b {}")
    engine = engine_build()

    assert engine.fetch("../a.css", b) == {"title": "a__title"}
    assert engine.cache.get(a) is not None


def test_circular_dependency(write_css):
    a = write_css("a.css", '.a { composes: b from "./b.css" }')
    b = write_css("b.css", '.b { composes: a from "./a.css" }')
    engine = engine_build()

    with pytest.raises(CircularDependencyError) as exc_info:
        engine.fetch(a, a)

    assert exc_info.value.chain == [a, b, a]
    assert isinstance(exc_info.value, TransformationError)
    assert len(engine.cache) == 0


def test_failed_transform_is_not_cached(write_css):
    path = write_css("a.css", ".title { color: red")
    engine = engine_build()

    with pytest.raises(TransformationError):
        engine.fetch(path, path)
    assert path not in engine.cache

    write_css("a.css", ".title { color: red }")
    assert engine.fetch(path, path) == {"title": "a__title"}


def test_missing_dependency(write_css):
    path = write_css("a.css", '.a { composes: b from "./missing.css" }')
    with pytest.raises(StyleFileNotFound):
        engine_build().fetch(path, path)


def test_camel_case(write_css):
    path = write_css("a.css", ".main-title {}")
    tokens = engine_build(camel_case=True).fetch(path, path)

    assert tokens == {"main-title": "a__main-title", "mainTitle": "a__main-title"}


def test_preprocess_and_process_css(write_css):
    path = write_css("a.css", ".title { color: $brand }")
    preprocess_css = Mock(side_effect=lambda text, filename: text.replace("$brand", "red"))
    process_css = Mock()

    engine_build(preprocess_css=preprocess_css, process_css=process_css).fetch(path, path)

    preprocess_css.assert_called_once_with(".title { color: $brand }", path)
    process_css.assert_called_once()
    css, filename = process_css.call_args.args
    assert filename == path
    assert css == ".a__title {\n  color: red;\n}"


def test_process_tokens(write_css):
    path = write_css("a.css", ".title {}")
    process_tokens = Mock(
        side_effect=lambda tokens, filename, result: {
            key: value.upper() for key, value in tokens.items()
        }
    )

    tokens = engine_build(process_tokens=process_tokens).fetch(path, path)

    assert tokens == {"title": "A__TITLE"}
    _, filename, result = process_tokens.call_args.args
    assert filename == path
    assert isinstance(result, PipelineResult)


def test_warnings_are_logged(write_css):
    write_css("a.css", ".a {}")
    b = write_css("b.css", '@value missing from "./a.css"; .b { color: missing }')

    with patch("cssmodules.lib.fetch.WARN") as warn:
        engine_build().fetch(b, b)

    warn.assert_called_once()
    assert '"missing" is not exported by ./a.css' in warn.call_args.args[0]


def test_concurrent_fetches_share_one_transform(write_css):
    path = write_css("a.css", ".title {}")
    engine = engine_build()

    with patch.object(engine, "transform", wraps=engine.transform) as transform:
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: engine.fetch(path, path), range(16)))

    assert transform.call_count == 1
    assert all(result is results[0] for result in results)


def test_invalid_utf8(tmp_path):
    path = tmp_path / "latin.css"
    path.write_bytes(b".caf\xe9 { color: red }")
    engine = engine_build()

    with pytest.raises(TransformationError, match="not valid UTF-8") as exc_info:
        engine.fetch(str(path), str(path))
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
    assert str(path) not in engine.cache

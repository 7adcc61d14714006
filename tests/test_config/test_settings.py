# tests/test_config/test_settings.py
import os
import pytest
from cssmodules.config.settings import App, appsettings, devMode_resolve


def setup_function():
    for k in list(os.environ):
        if k.upper().startswith("CSSMODULES_"):
            del os.environ[k]


def teardown_function():
    for k in list(os.environ):
        if k.upper().startswith("CSSMODULES_"):
            del os.environ[k]


def test_app_default_settings():
    app = App()
    assert app.beQuiet is True
    assert app.noComplain is False
    assert app.env == "production"


def test_app_env_override():
    os.environ["CSSMODULES_BEQUIET"] = "false"
    os.environ["CSSMODULES_NOCOMPLAIN"] = "true"
    os.environ["CSSMODULES_ENV"] = "development"
    app = App()
    assert app.beQuiet is False
    assert app.noComplain is True
    assert app.env == "development"


def test_app_env_case_insensitive():
    os.environ["cssmodules_noComplain"] = "1"
    app = App()
    assert app.noComplain is True


def test_devMode_explicit_wins(monkeypatch):
    monkeypatch.setattr(appsettings, "env", "development")
    assert devMode_resolve(False) is False
    monkeypatch.setattr(appsettings, "env", "production")
    assert devMode_resolve(True) is True


@pytest.mark.parametrize(
    "env,expected",
    [("development", True), ("DEVELOPMENT", True), ("production", False), ("test", False)],
)
def test_devMode_from_environment(monkeypatch, env, expected):
    monkeypatch.setattr(appsettings, "env", env)
    assert devMode_resolve() is expected

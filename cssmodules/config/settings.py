"""
settings.py

This module provides process-wide configuration for the CSS Modules hook.

Features:
- Centralized settings using Pydantic settings, overridable from the
  environment with the CSSMODULES_ prefix
- Default for the live-reload (dev) mode when setup does not decide it

Usage:
Import appsettings for configuration values, devMode_resolve() to settle the
cache policy for a hook.
"""

from typing import Final
from pydantic_settings import BaseSettings, SettingsConfigDict


class App(BaseSettings):
    """
    Application settings model.

    Settings can be overridden through environment variables with the
    CSSMODULES_ prefix.

    Attributes:
        beQuiet: Suppress the fetch/tokens tracing output
        noComplain: Suppress warnings reported by the pipeline
        env: Deployment environment; "development" turns live-reload on
            for hooks that do not set devMode explicitly
    """

    beQuiet: bool = True
    noComplain: bool = False
    env: str = "production"

    model_config = SettingsConfigDict(
        env_prefix="CSSMODULES_",
        case_sensitive=False,
        extra="allow",
    )


def devMode_resolve(explicit: bool | None = None) -> bool:
    """
    Decide whether a hook runs in live-reload mode.

    An explicit devMode option always wins; otherwise the environment flag
    decides.

    Args:
        explicit: The devMode option given at setup, if any

    Returns:
        bool: True when every access must re-transform
    """
    if explicit is not None:
        return explicit
    return appsettings.env.lower() == "development"


appsettings: Final[App] = App()

"""
Centralized logging for the CSS Modules import hook using Loguru.

This module provides two function-based channels that dynamically respect
the flags in the application settings:

- `LOG` for tracing setup, fetches and produced tokens (debug level).
- `WARN` for diagnostics reported by the transformation pipeline.

Usage:
    from cssmodules.lib.log import LOG, WARN
    LOG(f"{filename} → cache")
    WARN("a.css: unknown name in :import")

Environment:
- Set `CSSMODULES_BEQUIET=false` to see the tracing output.
- Set `CSSMODULES_NOCOMPLAIN=true` to silence pipeline warnings.
"""

from loguru import logger
from typing import Any
import sys

# Create a distinct logger instance for the hook
app_logger = logger.bind(app="CSSMODULES")

logger_format = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<yellow>{name: >28}</yellow>::"
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

app_logger.remove()  # Remove any default handlers
app_logger.add(sys.stderr, format=logger_format)


def LOG(*args: Any, **kwargs: Any) -> None:
    """
    Hook tracing function.

    Logs at debug level unless `beQuiet` is set in `appsettings`.

    :param args: Positional arguments for the log message.
    :param kwargs: Keyword arguments for additional log metadata.
    """
    try:
        from cssmodules.config.settings import appsettings

        if not appsettings.beQuiet:
            app_logger.opt(depth=1).debug(*args, **kwargs)
    except Exception as e:
        print(f"Logging error: {e}")


def WARN(*args: Any, **kwargs: Any) -> None:
    """
    Non-fatal diagnostics channel.

    Used for the warnings a pipeline run produces. Suppressed when
    `noComplain` is set in `appsettings`.

    :param args: Positional arguments for the log message.
    :param kwargs: Keyword arguments for additional log metadata.
    """
    try:
        from cssmodules.config.settings import appsettings

        if not appsettings.noComplain:
            app_logger.opt(depth=1).warning(*args, **kwargs)
    except Exception as e:
        print(f"Logging error: {e}")

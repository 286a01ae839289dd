"""Decorators for command functions."""

import asyncio
import functools
import time
from collections.abc import Callable

import typer
from pydantic import ValidationError

from bpd_dashboard.repositories import StoreError
from bpd_dashboard.utils.logger import get_logger
from bpd_dashboard.utils.ui.formatters import format_error


class AppError(Exception):
    """User-facing error; the message is printed and the command exits."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def describe_error(error: Exception) -> str:
    """Turn an exception escaping a command into a one-line message."""
    if isinstance(error, AppError):
        return str(error)
    if isinstance(error, ValidationError):
        problems = []
        for item in error.errors():
            field = ".".join(str(part) for part in item["loc"]) or error.title
            problems.append(f"{field}: {item['msg']}")
        return "Invalid input (" + "; ".join(problems) + ")"
    if isinstance(error, StoreError):
        where = f" on {error.table}" if error.table else ""
        status = f" (HTTP {error.status_code})" if error.status_code else ""
        return f"Store request failed{where}{status}: {error}"
    return f"An unexpected error occurred: {error}"


def command_wrapper(func: Callable):
    """Run a command (awaiting it if it is a coroutine) and map errors to exit codes.

    Timing and failures go to the application log; the user sees a single
    error line from describe_error().
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        started = time.monotonic()
        logger.info("bpd %s", func.__name__)
        try:
            if asyncio.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            expected = isinstance(e, (AppError, ValidationError, StoreError))
            logger.error(
                "bpd %s failed after %.3fs: %s",
                func.__name__,
                time.monotonic() - started,
                e,
                exc_info=not expected,
            )
            format_error(describe_error(e))
            raise typer.Exit(code=getattr(e, "exit_code", 1)) from e

        logger.info("bpd %s done in %.3fs", func.__name__, time.monotonic() - started)
        return result

    return wrapper

"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from geode_release.core.result import Ok, Result
from geode_release.output.errors import print_publish_error, publish_error_exit_code

if TYPE_CHECKING:
    from geode_release.output.console import ConsoleProtocol
    from geode_release.services.publish.errors import PublishError


T = TypeVar("T")


def unwrap_or_exit(result: Result[T, PublishError], console: ConsoleProtocol) -> T:
    """Return the Ok value, or print the error and exit with its code.

    This is the single place where pipeline failures become process exits.
    """
    if isinstance(result, Ok):
        return result.value
    print_publish_error(result.error, console)
    exit_with_code(publish_error_exit_code(result.error))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)

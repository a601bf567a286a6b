"""Result type for explicit error handling.

Every step of the publish pipeline returns a Result instead of raising, so the
CLI has a single place that turns failures into messages and exit codes.

Usage:
    def parse_port(raw: str) -> Result[int, str]:
        if not raw.isdigit():
            return Err(f"not a port: {raw}")
        return Ok(int(raw))

    match parse_port("8080"):
        case Ok(port):
            print(port)
        case Err(error):
            print(f"error: {error}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying an error."""

    error: E


Result: TypeAlias = Union[Ok[T], Err[E]]

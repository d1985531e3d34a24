"""Success / failure outcome values returned by the public API.

``parse``, ``compile_pipeline`` and ``transpile`` never raise for malformed
input; they return either ``Ok(value)`` or ``Err(error)``::

    result = lql.transpile("Users |> select(*)", "sqlite")
    match result:
        case Ok(value=compiled):
            cursor.execute(compiled.sql)
        case Err(error=err):
            print(err.to_error_response())
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from lql.errors import LqlError

T = TypeVar("T")
E = TypeVar("E", bound=LqlError)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful outcome carrying ``value``."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err() on Ok({self.value!r})")


@dataclass(frozen=True)
class Err(Generic[E]):
    """A failed outcome carrying a structured ``error``."""

    error: E

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        """Re-raise the carried error."""
        raise self.error

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]

"""Request-scoped context and typed correlation keys.

A ``RequestContext`` is an immutable mapping of request-scoped values (request
id, user id, ...). Values are read through ``ContextKey`` accessors, which
only hand back values of the key's declared type, so a present value of the
wrong type reads the same as a missing one.

The ambient context for the current thread or task lives in a
``ContextVar`` and is layered with ``request_scope``:

    with request_scope(request_id="r-42", user_id="u-7"):
        log.with_context().info("handled")
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ContextKey(Generic[T]):
    """Typed accessor for one context value."""

    __slots__ = ("name", "value_type")

    def __init__(self, name: str, value_type: type[T]) -> None:
        self.name = name
        self.value_type = value_type

    def get(self, ctx: Any) -> T | None:
        """Return the value under this key, or None if absent or of another type."""
        if not isinstance(ctx, Mapping):
            return None
        value = ctx.get(self.name)
        if isinstance(value, self.value_type):
            return value
        return None

    def __repr__(self) -> str:
        return f"ContextKey({self.name!r}, {self.value_type.__name__})"


class RequestContext(Mapping[str, Any]):
    """Immutable mapping of request-scoped values."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        merged = dict(values or {})
        merged.update(kwargs)
        self._values = MappingProxyType(merged)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RequestContext({dict(self._values)!r})"

    def with_value(self, key: str | ContextKey[Any], value: Any) -> RequestContext:
        """Return a new context with one more value."""
        name = key.name if isinstance(key, ContextKey) else key
        return RequestContext(self._values, **{name: value})

    def with_values(self, **values: Any) -> RequestContext:
        return RequestContext(self._values, **values)


EMPTY_CONTEXT = RequestContext()

_current_context: ContextVar[RequestContext] = ContextVar(
    "rhino_logger_request_context", default=EMPTY_CONTEXT
)


def current_context() -> RequestContext:
    """Return the ambient request context."""
    return _current_context.get()


@contextmanager
def request_scope(**values: Any) -> Iterator[RequestContext]:
    """Layer ``values`` onto the ambient context for the duration of the block."""
    ctx = current_context().with_values(**values)
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def extract_fields(ctx: Any, keys: Iterable[ContextKey[Any]]) -> dict[str, Any]:
    """Read ``keys`` from ``ctx`` (ambient context when None).

    Missing and wrong-typed values are skipped.
    """
    source = current_context() if ctx is None else ctx
    fields: dict[str, Any] = {}
    for key in keys:
        value = key.get(source)
        if value is not None:
            fields[key.name] = value
    return fields

"""References to coroutine functions and ready-made results for faking them."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Coroutine

from fakecall.funcref import FuncRef, SignatureMismatchError

_UNCHECKED: Any = object()
_NO_ANNOTATION: Any = object()


def _type_label(result_type: Any) -> str:
    if result_type is None:
        return "None"
    if isinstance(result_type, str):
        return result_type
    if isinstance(result_type, type):
        return result_type.__name__
    return str(result_type)


def _result_signature(result_type: Any) -> str:
    return f"fn() -> {_type_label(result_type)}"


def _return_annotation(function: Callable[..., Any]) -> Any:
    """Return the function's return annotation, or a marker when it has none."""
    target: Any = getattr(function, "__func__", function)
    annotations = getattr(target, "__annotations__", None)
    if not isinstance(annotations, dict) or "return" not in annotations:
        return _NO_ANNOTATION
    return annotations["return"]


def _owner_label(owner: Any) -> str:
    return (
        getattr(owner, "__qualname__", None)
        or getattr(owner, "__name__", None)
        or type(owner).__name__
    )


class AsyncFuncRef:
    """A coroutine function found as attribute ``name`` of ``owner``.

    ``result_type`` is the type the coroutine resolves to; ``None`` means it
    resolves to nothing. Left out, no check is made and the reference matches
    any result.
    """

    def __init__(self, owner: Any, name: str, result_type: Any = _UNCHECKED) -> None:
        target = getattr(owner, name)
        label = f"{_owner_label(owner)}.{name}"
        if not callable(target):
            raise TypeError(f"{label} is not callable")
        checked = result_type is not _UNCHECKED
        if checked:
            if not inspect.iscoroutinefunction(target):
                raise TypeError(f"{label} is not a coroutine function")
            declared = _result_signature(result_type)
            annotation = _return_annotation(target)
            if annotation is not _NO_ANNOTATION:
                actual = _result_signature(annotation)
                if not FuncRef(owner, name, actual).matches(declared):
                    raise SignatureMismatchError(
                        f"{label} resolves to {_type_label(annotation)}, "
                        f"declared as {_type_label(result_type)}"
                    )
            self._ref = FuncRef(owner, name, declared)
            self.result_type = result_type
        else:
            self._ref = FuncRef(owner, name, None)
            self.result_type = None

    @property
    def owner(self) -> Any:
        """The object holding the coroutine function."""
        return self._ref.owner

    @property
    def name(self) -> str:
        """The attribute name of the coroutine function."""
        return self._ref.name

    @property
    def signature(self) -> str | None:
        """The result signature, or ``None`` for an unchecked reference."""
        return self._ref.signature

    def resolve(self) -> Callable[..., Any]:
        """Return the function the reference currently points at."""
        return self._ref.resolve()

    def matches(self, other: Any) -> bool:
        """Tell whether ``other`` yields a result this reference accepts."""
        theirs = getattr(other, "signature", other)
        return self._ref.matches(theirs)

    def __repr__(self) -> str:
        return f"AsyncFuncRef(name={self.name!r}, signature={self.signature!r})"


class AsyncReturn:
    """A stand-in for a coroutine function that resolves to a fixed value.

    Every call, whatever its arguments, gives a fresh coroutine resolving to
    ``value``. With ``result_type`` given the value is checked against it.
    """

    def __init__(self, value: Any, result_type: Any = _UNCHECKED) -> None:
        if result_type is _UNCHECKED:
            self.signature: str | None = None
            self.result_type = None
        else:
            if result_type is None:
                if value is not None:
                    raise SignatureMismatchError(
                        f"value {value!r} given for a coroutine that resolves to nothing"
                    )
            elif isinstance(result_type, type) and not isinstance(value, result_type):
                raise SignatureMismatchError(
                    f"value {value!r} is not of type {result_type.__name__}"
                )
            self.signature = FuncRef(None, "result", _result_signature(result_type)).signature
            self.result_type = result_type
        self.value = value

    async def _resolve(self) -> Any:
        return self.value

    def __call__(self, *args: Any, **kwargs: Any) -> Coroutine[Any, Any, Any]:
        return self._resolve()

    def __repr__(self) -> str:
        return f"AsyncReturn(value={self.value!r}, signature={self.signature!r})"


def async_func(owner: Any, name: str, result_type: Any) -> AsyncFuncRef:
    """Refer to coroutine function ``owner.name`` resolving to ``result_type``."""
    return AsyncFuncRef(owner, name, result_type)


def async_func_unchecked(owner: Any, name: str) -> AsyncFuncRef:
    """Refer to ``owner.name`` without checking what it resolves to."""
    return AsyncFuncRef(owner, name)


def async_return(value: Any, result_type: Any) -> AsyncReturn:
    """Build a stand-in resolving to ``value``, checked against ``result_type``."""
    return AsyncReturn(value, result_type)


def async_return_unchecked(value: Any) -> AsyncReturn:
    """Build a stand-in resolving to ``value`` without any type check."""
    return AsyncReturn(value)
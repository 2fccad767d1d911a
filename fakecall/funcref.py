"""References to functions by owner and attribute name, with signature checks.

Signatures are written as ``fn(T1, T2) -> R``. A ``_`` stands for any type;
a missing ``-> R`` part means the function returns nothing.
"""

from __future__ import annotations

import inspect
import types
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Callable

WILDCARD = "_"

_MISSING: Any = object()


class SignatureMismatchError(TypeError):
    """Raised when a function does not have the signature it was declared with."""


_Parsed = tuple[tuple[str, ...], "str | None"]


def _normalize_type(text: str) -> str:
    compact = "".join(text.split())
    compact = compact.replace("typing.", "")
    return compact.replace(",", ", ")


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth < 0:
                raise ValueError(f"unbalanced brackets in {text!r}")
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise ValueError(f"unbalanced brackets in {text!r}")
    parts.append("".join(current))
    return parts


def _parse(signature: str) -> _Parsed:
    text = signature.strip()
    if text.startswith("fn"):
        text = text[2:].lstrip()
    if not text.startswith("("):
        raise ValueError(f"malformed signature {signature!r}")
    depth = 0
    close = -1
    for position, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                close = position
                break
    if close < 0:
        raise ValueError(f"malformed signature {signature!r}")
    inner = text[1:close].strip()
    params: tuple[str, ...] = ()
    if inner:
        pieces = _split_top_level(inner)
        if any(not piece.strip() for piece in pieces):
            raise ValueError(f"empty parameter type in {signature!r}")
        params = tuple(_normalize_type(piece) for piece in pieces)
    rest = text[close + 1:].strip()
    returns: str | None = None
    if rest:
        if not rest.startswith("->"):
            raise ValueError(f"malformed signature {signature!r}")
        ret = rest[2:].strip()
        if not ret:
            raise ValueError(f"missing return type in {signature!r}")
        returns = None if ret in ("None", "()") else _normalize_type(ret)
    return params, returns


def _format(parsed: _Parsed) -> str:
    params, returns = parsed
    text = f"fn({', '.join(params)})"
    return text if returns is None else f"{text} -> {returns}"


def _compatible(left: _Parsed, right: _Parsed) -> bool:
    left_params, left_ret = left
    right_params, right_ret = right
    if len(left_params) != len(right_params):
        return False
    for a, b in zip(left_params, right_params):
        if WILDCARD not in (a, b) and a != b:
            return False
    if WILDCARD in (left_ret, right_ret):
        return True
    return left_ret == right_ret


def _annotation_name(annotation: Any) -> str:
    if annotation is _MISSING:
        return WILDCARD
    if isinstance(annotation, str):
        return _normalize_type(annotation)
    if isinstance(annotation, type):
        return annotation.__name__
    return _normalize_type(str(annotation))


def _plain_function(function: Callable[..., Any]) -> tuple[types.FunctionType, bool]:
    """Find the Python function behind a callable, and whether its first argument is bound."""
    target: Any = function
    bound = False
    while True:
        wrapped = getattr(target, "__wrapped__", None)
        if wrapped is None or not callable(wrapped):
            break
        target = wrapped
    if isinstance(target, types.MethodType):
        target = target.__func__
        bound = True
    elif not isinstance(target, types.FunctionType) and not isinstance(target, type):
        call = getattr(type(target), "__call__", None)
        if isinstance(call, types.FunctionType):
            target = call
            bound = True
    if not isinstance(target, types.FunctionType):
        raise TypeError(f"no signature found for {function!r}")
    return target, bound


def signature_of(function: Callable[..., Any]) -> str:
    """Return the ``fn(...) -> R`` signature of a callable from its annotations."""
    target, bound = _plain_function(function)
    code = target.__code__
    annotations = getattr(target, "__annotations__", None) or {}
    names = code.co_varnames
    positional = list(names[:code.co_argcount])
    if bound and positional:
        positional = positional[1:]
    keyword_only = names[code.co_argcount:code.co_argcount + code.co_kwonlyargcount]
    index = code.co_argcount + code.co_kwonlyargcount

    params = [_annotation_name(annotations.get(name, _MISSING)) for name in positional]
    if code.co_flags & inspect.CO_VARARGS:
        params.append("*" + _annotation_name(annotations.get(names[index], _MISSING)))
        index += 1
    params.extend(_annotation_name(annotations.get(name, _MISSING)) for name in keyword_only)
    if code.co_flags & inspect.CO_VARKEYWORDS:
        params.append("**" + _annotation_name(annotations.get(names[index], _MISSING)))

    ret = annotations.get("return", _MISSING)
    returns = None if ret is None or ret == "None" else _annotation_name(ret)
    return _format((tuple(params), returns))


def _check(function: Callable[..., Any], declared: str, what: str) -> None:
    try:
        actual = signature_of(function)
    except (TypeError, ValueError):
        # Callables without a readable signature are taken as declared.
        return
    if not _compatible(_parse(actual), _parse(declared)):
        raise SignatureMismatchError(
            f"{what} has signature {actual}, declared as {_format(_parse(declared))}"
        )


@dataclass(frozen=True)
class FuncRef:
    """A function found as attribute ``name`` of ``owner``.

    ``signature`` is ``None`` for references made without a signature check.
    """

    owner: Any
    name: str
    signature: str | None = None

    def __post_init__(self) -> None:
        if self.signature is not None:
            object.__setattr__(self, "signature", _format(_parse(self.signature)))

    def resolve(self) -> Callable[..., Any]:
        """Return the function the reference currently points at."""
        return getattr(self.owner, self.name)

    def matches(self, other: FuncRef | str | None) -> bool:
        """Tell whether this reference and ``other`` have compatible signatures."""
        theirs = other.signature if isinstance(other, FuncRef) else other
        if self.signature is None or theirs is None:
            return True
        return _compatible(_parse(self.signature), _parse(theirs))


def _owner_label(owner: Any) -> str:
    return getattr(owner, "__qualname__", None) or getattr(owner, "__name__", None) or type(owner).__name__


def func(owner: Any, name: str, signature: str) -> FuncRef:
    """Refer to ``owner.name``, checking it against the declared signature."""
    target = getattr(owner, name)
    if not callable(target):
        raise TypeError(f"{_owner_label(owner)}.{name} is not callable")
    _check(target, signature, f"{_owner_label(owner)}.{name}")
    return FuncRef(owner, name, signature)


def func_unchecked(owner: Any, name: str) -> FuncRef:
    """Refer to ``owner.name`` without any signature check."""
    target = getattr(owner, name)
    if not callable(target):
        raise TypeError(f"{_owner_label(owner)}.{name} is not callable")
    return FuncRef(owner, name, None)


def _detached(function: Callable[..., Any]) -> tuple[SimpleNamespace, str]:
    if not callable(function):
        raise TypeError(f"{function!r} is not callable")
    name = getattr(function, "__name__", None) or "closure"
    return SimpleNamespace(**{name: function}), name


def closure(function: Callable[..., Any], signature: str) -> FuncRef:
    """Wrap a standalone callable, checking it against the declared signature."""
    holder, name = _detached(function)
    _check(function, signature, name)
    return FuncRef(holder, name, signature)


def closure_unchecked(function: Callable[..., Any]) -> FuncRef:
    """Wrap a standalone callable without any signature check."""
    holder, name = _detached(function)
    return FuncRef(holder, name, None)
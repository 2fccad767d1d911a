"""Replace functions at run time and put them back afterwards."""

from __future__ import annotations

import functools
import inspect
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable

from fakecall.asyncfake import AsyncFuncRef, AsyncReturn
from fakecall.fake import Fake
from fakecall.funcref import FuncRef, SignatureMismatchError


@dataclass(frozen=True)
class _Patch:
    owner: Any
    name: str
    had_own: bool
    raw: Any


def _own_attribute(owner: Any, name: str) -> tuple[bool, Any]:
    """Tell whether ``owner`` holds ``name`` itself, and give its raw value."""
    namespace = getattr(owner, "__dict__", None)
    if isinstance(namespace, Mapping):
        if name in namespace:
            return True, namespace[name]
        return False, None
    return True, getattr(owner, name)


def _bind_like_original(owner: Any, name: str, wrapper: Callable[..., Any]) -> Any:
    """Wrap ``wrapper`` so it binds on ``owner`` the way the original did."""
    if isinstance(owner, type):
        raw = inspect.getattr_static(owner, name)
        if isinstance(raw, staticmethod):
            return staticmethod(wrapper)
        if isinstance(raw, classmethod):
            return classmethod(wrapper)
    return wrapper


def _copy_identity(wrapper: Callable[..., Any], original: Any) -> None:
    for attribute in ("__module__", "__name__", "__qualname__", "__doc__"):
        try:
            setattr(wrapper, attribute, getattr(original, attribute))
        except (AttributeError, TypeError):
            pass


def _returns_bool(signature: str) -> bool:
    head, arrow, tail = signature.rpartition("->")
    if not arrow:
        return False
    return tail.strip() in ("bool", "_")


class InjectorPP:
    """Holds replaced functions and restores them when done.

    Use it as a context manager, or call :meth:`restore` yourself. On restore,
    every fake installed with a ``times`` count is checked.
    """

    def __init__(self) -> None:
        self._patches: list[_Patch] = []
        self._fakes: list[Fake] = []
        self._lock = threading.Lock()

    def when_called(self, target: FuncRef) -> WhenCalled:
        """Start faking a function referred to with a declared signature."""
        if not isinstance(target, FuncRef):
            raise TypeError("when_called expects a FuncRef")
        if target.signature is None:
            raise TypeError("target has no signature; use when_called_unchecked")
        return WhenCalled(self, target, checked=True)

    def when_called_unchecked(self, target: FuncRef) -> WhenCalled:
        """Start faking a function without any signature check."""
        if not isinstance(target, FuncRef):
            raise TypeError("when_called_unchecked expects a FuncRef")
        return WhenCalled(self, target, checked=False)

    def when_called_async(self, target: AsyncFuncRef) -> WhenCalledAsync:
        """Start faking a coroutine function with a declared result type."""
        if not isinstance(target, AsyncFuncRef):
            raise TypeError("when_called_async expects an AsyncFuncRef")
        if target.signature is None:
            raise TypeError("target has no result type; use when_called_async_unchecked")
        return WhenCalledAsync(self, target, checked=True)

    def when_called_async_unchecked(self, target: AsyncFuncRef) -> WhenCalledAsync:
        """Start faking a coroutine function without any result check."""
        if not isinstance(target, AsyncFuncRef):
            raise TypeError("when_called_async_unchecked expects an AsyncFuncRef")
        return WhenCalledAsync(self, target, checked=False)

    def _install(self, owner: Any, name: str, wrapper: Callable[..., Any]) -> None:
        original = getattr(owner, name)
        _copy_identity(wrapper, original)
        had_own, raw = _own_attribute(owner, name)
        replacement = _bind_like_original(owner, name, wrapper)
        with self._lock:
            setattr(owner, name, replacement)
            self._patches.append(_Patch(owner, name, had_own, raw))

    def _track(self, fake: Fake) -> None:
        with self._lock:
            self._fakes.append(fake)

    def restore(self) -> None:
        """Put every replaced function back, then check the call counts."""
        with self._lock:
            patches, self._patches = self._patches, []
            fakes, self._fakes = self._fakes, []
        for patch in reversed(patches):
            if patch.had_own:
                setattr(patch.owner, patch.name, patch.raw)
            else:
                try:
                    delattr(patch.owner, patch.name)
                except AttributeError:
                    pass
        for fake in fakes:
            fake.verify()

    def __enter__(self) -> InjectorPP:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None:
            self.restore()
        else:
            # An error already on its way out takes precedence over a count mismatch.
            with self._lock:
                self._fakes = []
            self.restore()
        return False

    def __repr__(self) -> str:
        return f"InjectorPP(patches={len(self._patches)})"


class WhenCalled:
    """Chooses what a targeted function does once it is replaced."""

    def __init__(self, injector: InjectorPP, target: FuncRef, checked: bool) -> None:
        self._injector = injector
        self._target = target
        self._checked = checked

    def _check_signature(self, theirs: str | None, what: str) -> None:
        if self._checked and theirs is not None and not self._target.matches(theirs):
            raise SignatureMismatchError(
                f"{what} has signature {theirs}, target declared as {self._target.signature}"
            )

    def _replace_with(self, function: Callable[..., Any]) -> None:
        def replacement(*args: Any, **kwargs: Any) -> Any:
            return function(*args, **kwargs)

        self._injector._install(self._target.owner, self._target.name, replacement)

    def will_execute(self, fake: Fake) -> None:
        """Replace the target with a :class:`~fakecall.fake.Fake`."""
        if not isinstance(fake, Fake):
            raise TypeError("will_execute expects a Fake")
        self._check_signature(fake.signature, "fake")
        self._replace_with(fake)
        self._injector._track(fake)

    def will_execute_raw(self, replacement: FuncRef) -> None:
        """Replace the target with another function of the same signature."""
        if not isinstance(replacement, FuncRef):
            raise TypeError("will_execute_raw expects a FuncRef")
        if replacement.signature is None:
            raise TypeError("replacement has no signature; use will_execute_raw_unchecked")
        self._check_signature(replacement.signature, "replacement")
        self._replace_with(replacement.resolve())

    def will_execute_raw_unchecked(self, replacement: FuncRef | Callable[..., Any]) -> None:
        """Replace the target with any callable, without a signature check."""
        function = replacement.resolve() if isinstance(replacement, FuncRef) else replacement
        if not callable(function):
            raise TypeError(f"{function!r} is not callable")
        self._replace_with(function)

    def will_return_boolean(self, value: bool) -> None:
        """Make the target always return ``value``."""
        if not isinstance(value, bool):
            raise TypeError(f"value must be a bool, not {type(value).__name__}")
        signature = self._target.signature
        if self._checked and signature is not None and not _returns_bool(signature):
            raise SignatureMismatchError(f"target declared as {signature} does not return bool")

        def constant(*args: Any, **kwargs: Any) -> bool:
            return value

        self._replace_with(constant)


class WhenCalledAsync:
    """Chooses what a targeted coroutine function resolves to once replaced."""

    def __init__(self, injector: InjectorPP, target: AsyncFuncRef, checked: bool) -> None:
        self._injector = injector
        self._target = target
        self._checked = checked

    def _replace_with(self, result: AsyncReturn) -> None:
        @functools.wraps(result.__call__)
        async def replacement(*args: Any, **kwargs: Any) -> Any:
            return await result(*args, **kwargs)

        self._injector._install(self._target.owner, self._target.name, replacement)

    def will_return_async(self, result: AsyncReturn) -> None:
        """Make the target resolve to the value held by ``result``."""
        if not isinstance(result, AsyncReturn):
            raise TypeError("will_return_async expects an AsyncReturn")
        if result.signature is None:
            raise TypeError("result has no type; use will_return_async_unchecked")
        if not self._target.matches(result):
            raise SignatureMismatchError(
                f"result {result.signature} does not match target {self._target.signature}"
            )
        self._replace_with(result)

    def will_return_async_unchecked(self, result: AsyncReturn) -> None:
        """Make the target resolve to ``result``'s value, without a type check."""
        if not isinstance(result, AsyncReturn):
            raise TypeError("will_return_async_unchecked expects an AsyncReturn")
        self._replace_with(result)
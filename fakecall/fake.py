"""Configurable fake functions with argument conditions and call-count checks."""

from __future__ import annotations

from types import TracebackType
from typing import Any, Callable

from fakecall.funcref import FuncRef
from fakecall.verifier import CallCountVerifier


class UnexpectedArgumentsError(AssertionError):
    """Raised when a fake is called with arguments its condition rejects."""

    def __init__(self) -> None:
        super().__init__("Fake function called with unexpected arguments")


class TooManyCallsError(AssertionError):
    """Raised when a fake is called more often than it allows."""

    def __init__(self) -> None:
        super().__init__("Fake function called more times than expected")


def _normalized_signature(signature: str | None) -> str | None:
    if signature is None:
        return None
    return FuncRef(None, "fake", signature).signature


class Fake:
    """A stand-in function with a configurable behaviour.

    ``returns`` is the value each call gives back; if it is callable it is
    called with the call's arguments and its result is given back instead.
    ``when`` is a predicate on the arguments; a call it rejects raises
    :class:`UnexpectedArgumentsError`. ``assign`` is called with the arguments
    before returning, to change mutable arguments in place. ``times`` is the
    exact number of calls required, checked by :meth:`verify`; a call beyond
    it raises :class:`TooManyCallsError`. ``signature`` optionally declares
    the ``fn(...) -> R`` signature the fake stands for.
    """

    def __init__(
        self,
        returns: Any = None,
        when: Callable[..., bool] | None = None,
        assign: Callable[..., Any] | None = None,
        times: int | None = None,
        signature: str | None = None,
    ) -> None:
        if when is not None and not callable(when):
            raise TypeError("when must be callable or None")
        if assign is not None and not callable(assign):
            raise TypeError("assign must be callable or None")
        self._returns = returns
        self._when = when
        self._assign = assign
        self._verifier = CallCountVerifier(times)
        self.signature = _normalized_signature(signature)

    @property
    def verifier(self) -> CallCountVerifier:
        """The call counter behind this fake."""
        return self._verifier

    @property
    def calls(self) -> int:
        """The number of accepted calls so far."""
        return self._verifier.calls

    @property
    def times(self) -> int | None:
        """The required number of calls, or ``None`` if any number will do."""
        return self._verifier.expected

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self._when is not None and not self._when(*args, **kwargs):
            raise UnexpectedArgumentsError()
        previous = self._verifier.increment()
        expected = self._verifier.expected
        if expected is not None and previous >= expected:
            raise TooManyCallsError()
        if self._assign is not None:
            self._assign(*args, **kwargs)
        if callable(self._returns):
            return self._returns(*args, **kwargs)
        return self._returns

    def verify(self) -> None:
        """Raise :class:`~fakecall.verifier.CallCountError` on a call-count mismatch."""
        self._verifier.verify()

    def __enter__(self) -> Fake:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None:
            self.verify()
        return False

    def __repr__(self) -> str:
        return (
            f"Fake(signature={self.signature!r}, times={self.times!r}, "
            f"calls={self.calls})"
        )


def fake(
    returns: Any = None,
    when: Callable[..., bool] | None = None,
    assign: Callable[..., Any] | None = None,
    times: int | None = None,
    signature: str | None = None,
) -> Fake:
    """Build a :class:`Fake` with the given behaviour."""
    return Fake(returns=returns, when=when, assign=assign, times=times, signature=signature)
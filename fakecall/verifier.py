"""Call counting with a check on the expected number of calls."""

from __future__ import annotations

import threading
from types import TracebackType


class CallCountError(AssertionError):
    """Raised when a fake was called a different number of times than expected."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Fake function was expected to be called {expected} time(s), "
            f"but it is actually called {actual} time(s)"
        )
        self.expected = expected
        self.actual = actual


class CallCountVerifier:
    """Counts calls and checks the total against an expected count.

    With ``expected`` set to ``None`` the verifier only counts and never fails.
    """

    def __init__(self, expected: int | None = None) -> None:
        if expected is not None:
            if isinstance(expected, bool) or not isinstance(expected, int):
                raise TypeError(f"expected must be an int or None, not {type(expected).__name__}")
            if expected < 0:
                raise ValueError(f"expected must not be negative, got {expected}")
        self._expected = expected
        self._calls = 0
        self._lock = threading.Lock()

    @property
    def expected(self) -> int | None:
        """The number of calls the verifier requires, or ``None``."""
        return self._expected

    @property
    def calls(self) -> int:
        """The number of calls counted so far."""
        with self._lock:
            return self._calls

    @property
    def checked(self) -> bool:
        """Whether :meth:`verify` compares the count at all."""
        return self._expected is not None

    def increment(self) -> int:
        """Count one call and return the count as it was before it."""
        with self._lock:
            previous = self._calls
            self._calls += 1
            return previous

    def verify(self) -> None:
        """Raise :class:`CallCountError` if the count differs from the expected one."""
        if self._expected is None:
            return
        actual = self.calls
        if actual != self._expected:
            raise CallCountError(self._expected, actual)

    def __enter__(self) -> CallCountVerifier:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        # An error already on its way out takes precedence over a count mismatch.
        if exc_type is None:
            self.verify()
        return False

    def __repr__(self) -> str:
        return f"CallCountVerifier(expected={self._expected!r}, calls={self.calls})"
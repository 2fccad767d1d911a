# fakecall

`fakecall` lets a test change what a function or method does while the test
runs, without adding interfaces or parameters to the code under test just so
that it can be tested. You point at an attribute of a module, class or
instance, say what it should do instead, and the original is put back when
the injector is restored or leaves its `with` block.

The package has no dependencies outside the standard library.

## Installing

```
pip install fakecall
```

To run the package's own tests:

```
pip install "fakecall[test]"
pytest
```

## Modules

- `fakecall.verifier` – `CallCountVerifier` and `CallCountError`.
- `fakecall.funcref` – `FuncRef`, `func`, `func_unchecked`, `closure`,
  `closure_unchecked`, `signature_of` and `SignatureMismatchError`.
- `fakecall.fake` – `Fake`, `fake`, `UnexpectedArgumentsError` and
  `TooManyCallsError`.
- `fakecall.asyncfake` – `AsyncFuncRef`, `AsyncReturn`, `async_func`,
  `async_func_unchecked`, `async_return` and `async_return_unchecked`.
- `fakecall.injector` – `InjectorPP`, `WhenCalled` and `WhenCalledAsync`.

## Signatures

Signatures are strings of the form `fn(T1, T2) -> R`. A `_` stands for any
type, and a signature without `-> R` (or with `-> None` or `-> ()`) returns
nothing. Two signatures match when they have the same number of parameters
and each pair of types is equal or one of them is `_`; the same goes for the
return type.

`signature_of(function)` reads a signature from a function's annotations.
Parameters without an annotation become `_`, and so does a missing return
annotation:

```python
from fakecall.funcref import signature_of

def scale(value: int, factor: float) -> float:
    return value * factor

def untyped(a, b):
    return a

assert signature_of(scale) == "fn(int, float) -> float"
assert signature_of(untyped) == "fn(_, _) -> _"
```

For a bound method the first parameter is left out.

## Pointing at a function

`func(owner, name, signature)` refers to `owner.name`, where `owner` is a
module, a class or an instance. It raises `TypeError` if the attribute is not
callable and `SignatureMismatchError` if the function's own signature does not
match the declared one. `func_unchecked(owner, name)` makes a reference with
no signature and no check.

A `FuncRef` has `resolve()`, which returns what `owner.name` currently is,
and `matches(other)`, which compares its signature with another reference's
or with a signature string; a reference without a signature matches
anything.

## Constant booleans

```python
from fakecall.injector import InjectorPP
from fakecall.funcref import func, signature_of


class Storage:
    def exists(self, path: str) -> bool:
        return False


with InjectorPP() as injector:
    injector.when_called(
        func(Storage, "exists", signature_of(Storage.exists))
    ).will_return_boolean(True)

    assert Storage().exists("/not/exist")

assert not Storage().exists("/not/exist")
```

`will_return_boolean` takes only a `bool`, and on a checked target the
declared return type must be `bool` or `_`.

## Fakes with conditions, side effects and call counts

`fake(returns, when, assign, times, signature)` builds a `Fake`:

- `returns` – what each call gives back. If it is callable it is called with
  the call's arguments and its result is given back instead.
- `when` – an optional predicate over the call's arguments; a call for which
  it is false raises `UnexpectedArgumentsError`.
- `assign` – an optional callable run with the call's arguments before
  returning, for changing objects passed in by the caller.
- `times` – an optional exact call count. A call beyond it raises
  `TooManyCallsError`; a count that differs when the fake is verified raises
  `CallCountError`.
- `signature` – optional; a checked target compares it with its own.

```python
from fakecall.injector import InjectorPP
from fakecall.funcref import func, signature_of
from fakecall.fake import fake


class Foo:
    def __init__(self, value):
        self.value = value

    def add(self, value):
        return self.value + value


with InjectorPP() as injector:
    injector.when_called(
        func(Foo, "add", signature_of(Foo.add))
    ).will_execute(
        fake(
            returns=lambda self, value: self.value * 2 + value * 2,
            when=lambda self, value: self.value > 0,
            times=1,
        )
    )

    assert Foo(6).add(3) == 18

assert Foo(6).add(3) == 9
```

Changing arguments in place with `assign`:

```python
def fill(box: list) -> bool:
    box.append("real")
    return False


class Boxes:
    fill = staticmethod(fill)


box = []
with InjectorPP() as injector:
    injector.when_called(
        func(Boxes, "fill", signature_of(fill))
    ).will_execute(
        fake(returns=True, assign=lambda b: b.append("fake"),
             signature="fn(list) -> bool")
    )

    assert Boxes.fill(box) is True

assert box == ["fake"]
```

A `Fake` has `calls`, `times` and `verifier` properties and a `verify()`
method, and is itself a context manager that verifies on a clean exit, so it
can be used outside an injector too.

`CallCountVerifier(expected)` offers the counting on its own: `increment()`
counts a call and returns the count before it, `verify()` raises
`CallCountError` on a mismatch, and leaving it as a context manager verifies
unless an exception is already on its way out. With `expected=None` it only
counts.

## Arbitrary replacements

`will_execute_raw` installs another function. Wrap a standalone callable with
`closure(function, signature)` for a checked replacement, or with
`closure_unchecked(function)` to skip the check:

```python
from fakecall.funcref import closure

seen = []

with InjectorPP() as injector:
    injector.when_called(
        func(Storage, "exists", signature_of(Storage.exists))
    ).will_execute_raw(
        closure(lambda self, path: seen.append(path) or True, "fn(_, _) -> _")
    )

    assert Storage().exists("/anywhere")

assert seen == ["/anywhere"]
```

`when_called_unchecked` and `will_execute_raw_unchecked` perform no signature
comparison at all; `will_execute_raw_unchecked` also accepts a plain callable.
Keeping the replacement compatible is then up to you.

## Coroutine functions

Coroutine functions are targeted with `async_func(owner, name, result_type)`
and given a result with `async_return(value, result_type)`. `async_func`
checks that the target is a coroutine function and, if it has a return
annotation, that it agrees with `result_type`; `async_return` checks the
value against the type. `will_return_async` then requires the two to match.

```python
import pytest
from fakecall.injector import InjectorPP
from fakecall.asyncfake import async_func, async_return


class HttpClient:
    def __init__(self, url):
        self.url = url

    async def get(self) -> str:
        return f"GET {self.url}"


@pytest.mark.asyncio
async def test_get_is_faked():
    with InjectorPP() as injector:
        injector.when_called_async(
            async_func(HttpClient, "get", str)
        ).will_return_async(async_return("Fake GET response", str))

        assert await HttpClient("https://test.example.com").get() == "Fake GET response"

    assert await HttpClient("https://test.example.com").get() == "GET https://test.example.com"
```

`async_func_unchecked(owner, name)`, `async_return_unchecked(value)`,
`when_called_async_unchecked` and `will_return_async_unchecked` skip the
result type checks. An `AsyncReturn` can also be called directly: each call,
whatever its arguments, gives a fresh coroutine resolving to its value.

## Restoring

Every replacement made through an `InjectorPP` is undone by `restore()` or on
leaving its `with` block, newest first: an attribute the owner held itself is
put back, and one it only inherited is removed again. After that every fake
installed with `will_execute` is verified. When the block is already leaving
because of an exception, the count check is skipped so the original error is
the one you see. Static and class methods stay static and class methods while
replaced.

## What it does not do

`fakecall` replaces attributes on the object you name. Code that looks the
function up through that object sees the replacement; code that already holds
its own reference to the function (for example after
`from module import function`) keeps calling the original. The package has
no command-line interface.
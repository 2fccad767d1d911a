from types import SimpleNamespace

import pytest

from fakecall.asyncfake import (
    AsyncFuncRef,
    AsyncReturn,
    async_func,
    async_func_unchecked,
    async_return,
    async_return_unchecked,
)
from fakecall.funcref import SignatureMismatchError


async def simple_async_func_u32_add_one(x: int) -> int:
    return x + 1


async def simple_async_func_bool(x: bool) -> bool:
    return x


async def untyped_async(x):
    return x


def plain_func(x: int) -> int:
    return x


class HttpClientTest:
    def __init__(self, url: str) -> None:
        self.url = url

    async def get(self) -> str:
        return f"GET {self.url}"

    async def post(self, payload: str) -> str:
        return f"POST {payload} to {self.url}"


@pytest.fixture
def funcs():
    return SimpleNamespace(
        add_one=simple_async_func_u32_add_one,
        as_bool=simple_async_func_bool,
        untyped=untyped_async,
        plain=plain_func,
    )


def test_async_func_records_result_signature(funcs):
    ref = async_func(funcs, "add_one", int)
    assert ref.signature == "fn() -> int"
    assert ref.result_type is int
    assert ref.name == "add_one"


def test_async_func_rejects_wrong_result_type(funcs):
    with pytest.raises(SignatureMismatchError):
        async_func(funcs, "add_one", str)


def test_async_func_rejects_plain_function(funcs):
    with pytest.raises(TypeError):
        async_func(funcs, "plain", int)


def test_async_func_accepts_any_type_when_unannotated(funcs):
    ref = async_func(funcs, "untyped", bool)
    assert ref.signature == "fn() -> bool"


def test_async_func_on_class_method():
    ref = async_func(HttpClientTest, "get", str)
    assert ref.resolve() is HttpClientTest.get
    with pytest.raises(SignatureMismatchError):
        async_func(HttpClientTest, "post", int)


def test_async_func_unchecked_has_no_signature(funcs):
    ref = async_func_unchecked(funcs, "plain")
    assert ref.signature is None
    assert ref.matches(async_return(123, int))
    assert ref.matches(async_return("text", str))


def test_missing_attribute_raises(funcs):
    with pytest.raises(AttributeError):
        async_func(funcs, "missing", int)


def test_matches_compares_result_types(funcs):
    ref = async_func(funcs, "add_one", int)
    assert ref.matches(async_return(123, int))
    assert not ref.matches(async_return(False, bool))
    assert ref.matches(async_return_unchecked("anything"))


def test_async_return_checks_value_type():
    with pytest.raises(SignatureMismatchError):
        async_return("not a number", int)
    with pytest.raises(SignatureMismatchError):
        async_return(1, None)


def test_async_return_unit_result():
    result = async_return(None, None)
    assert result.signature == "fn()"
    assert result.value is None


def test_async_return_unchecked_has_no_signature():
    result = async_return_unchecked(678)
    assert result.signature is None
    assert result.value == 678


@pytest.mark.asyncio
async def test_async_return_resolves_to_value():
    result = async_return(123, int)
    assert await result(1) == 123
    assert await result() == 123
    assert await result(5, key="ignored") == 123


@pytest.mark.asyncio
async def test_async_return_gives_fresh_coroutine_each_call():
    result = AsyncReturn("Fake GET response", str)
    first = result()
    second = result()
    assert first is not second
    assert await first == await second == "Fake GET response"


@pytest.mark.asyncio
async def test_resolved_function_is_original(funcs):
    ref = AsyncFuncRef(funcs, "add_one", int)
    assert await ref.resolve()(1) == 2
    client = HttpClientTest("https://test.example.com")
    assert await AsyncFuncRef(client, "get", str).resolve()() == "GET https://test.example.com"


@pytest.mark.asyncio
async def test_unchecked_return_of_any_value():
    result = async_return_unchecked(False)
    assert await result(True) is False
import asyncio

import pytest

from rpcnaming.errors import InvocationError, UnknownMethodError, ValidationError
from rpcnaming.server.dispatcher import InvocationDispatcher


@pytest.fixture
def dispatcher():
    d = InvocationDispatcher("calc")

    @d.register("add")
    def add(a: float, b: float) -> float:
        """Add two numbers."""
        return a + b

    @d.register()
    def divide(a, b):
        return a / b

    @d.register("shape")
    def shape(x):
        return {"value": x, "items": [x, x]}

    @d.register("slow_double")
    async def slow_double(x):
        await asyncio.sleep(0)
        return x * 2

    return d


def test_register_keeps_function_and_metadata(dispatcher):
    assert set(dispatcher.method_names) == {"add", "divide", "shape", "slow_double"}
    info = dispatcher.list_methods()["add"]
    assert info["description"] == "Add two numbers."
    assert info["param_types"] == {"a": str(float), "b": str(float)}
    assert info["is_async"] is False
    assert dispatcher.list_methods()["slow_double"]["is_async"] is True


@pytest.mark.asyncio
async def test_invoke_spreads_args_positionally(dispatcher):
    assert await dispatcher.invoke("add", [2, 3]) == 5
    assert await dispatcher.invoke("add", ("a", "b")) == "ab"


@pytest.mark.asyncio
async def test_invoke_returns_structured_results_unchanged(dispatcher):
    assert await dispatcher.invoke("shape", [1]) == {"value": 1, "items": [1, 1]}


@pytest.mark.asyncio
async def test_invoke_awaits_async_methods(dispatcher):
    assert await dispatcher.invoke("slow_double", [21]) == 42


@pytest.mark.asyncio
async def test_unknown_method_then_dispatcher_keeps_working(dispatcher):
    with pytest.raises(UnknownMethodError) as info:
        await dispatcher.invoke("pow", [2, 3])
    assert info.value.status_code == 400
    assert await dispatcher.invoke("add", [1, 1]) == 2


@pytest.mark.asyncio
async def test_args_must_be_a_sequence(dispatcher):
    with pytest.raises(ValidationError):
        await dispatcher.invoke("add", {"a": 1, "b": 2})


@pytest.mark.asyncio
async def test_wrong_arity_is_a_validation_error(dispatcher):
    with pytest.raises(ValidationError, match="bad arguments for 'add'"):
        await dispatcher.invoke("add", [1])
    with pytest.raises(ValidationError):
        await dispatcher.invoke("add", [1, 2, 3])


@pytest.mark.asyncio
async def test_exception_inside_method_becomes_invocation_error(dispatcher):
    with pytest.raises(InvocationError) as info:
        await dispatcher.invoke("divide", [1, 0])
    assert "division by zero" in str(info.value)
    assert info.value.data == {"method": "divide", "exception": "ZeroDivisionError"}
    assert await dispatcher.invoke("divide", [6, 3]) == 2


@pytest.mark.asyncio
async def test_builtin_without_signature_skips_arity_check(dispatcher):
    dispatcher.register("max")(max)
    assert await dispatcher.invoke("max", [1, 2]) == 2
    with pytest.raises(InvocationError):
        await dispatcher.invoke("max", [])

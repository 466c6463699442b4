import asyncio
import gc
import inspect
import warnings

import pytest

from quackquack import SignatureDefinitionError, ValidationError, parse_signature
from quackquack.compiler import ParameterSchema, check_parameter_order, compile_signature
from quackquack.signature import Parameter, Primitive


def compiled(text, fn):
    return compile_signature(parse_signature(text))(fn)


async def resolved(value):
    return value


def test_required_after_optional_fails():
    params = [Parameter(Primitive.NUMBER, optional=True), Parameter(Primitive.STRING)]
    with pytest.raises(SignatureDefinitionError) as info:
        ParameterSchema(params)
    assert info.value.position == 1


def test_first_required_after_optional_is_reported():
    params = [
        Parameter(Primitive.NUMBER),
        Parameter(Primitive.NUMBER, optional=True),
        Parameter(Primitive.NUMBER),
        Parameter(Primitive.NUMBER, optional=True),
    ]
    with pytest.raises(SignatureDefinitionError) as info:
        check_parameter_order(params)
    assert info.value.position == 2


def test_compile_signature_rejects_misordered_parameters():
    with pytest.raises(SignatureDefinitionError):
        compile_signature(parse_signature("(x?: number, y: string) => void"))


def test_optional_suffix():
    schema = ParameterSchema([Parameter(Primitive.NUMBER), Parameter(Primitive.STRING, optional=True)])
    assert schema.validate((1,)) == (1,)
    assert schema.validate((1, "x")) == (1, "x")
    assert schema.validate((1, None)) == (1, None)
    with pytest.raises(ValidationError) as info:
        schema.validate(())
    assert info.value.position == 0


def test_end_to_end_positional_validation():
    fn = compiled("(i: number, j: string) => boolean", lambda i, j: isinstance(j, str))
    assert fn(1, "ok") is True
    with pytest.raises(ValidationError) as info:
        fn("a", 2)
    assert info.value.position == 0
    assert info.value.path == (0,)


def test_argument_error_raised_before_call():
    calls = []
    fn = compiled("(i: number) => void", lambda i: calls.append(i))
    with pytest.raises(ValidationError):
        fn("x")
    assert calls == []


def test_return_value_checked_after_call():
    calls = []

    def impl(i):
        calls.append(i)
        return "not a number"

    fn = compiled("(i: number) => number", impl)
    with pytest.raises(ValidationError) as info:
        fn(1)
    assert calls == [1]
    assert info.value.path == ("return",)
    assert info.value.position is None


def test_too_many_arguments():
    fn = compiled("(i: number) => number", lambda *a: 1)
    with pytest.raises(ValidationError) as info:
        fn(1, 2)
    assert info.value.position == 1


def test_keyword_arguments_rejected():
    fn = compiled("(i: number) => number", lambda i: i)
    with pytest.raises(ValidationError):
        fn(i=1)


def test_strict_primitives():
    num = compiled("(x: number) => dontcare", lambda x: x)
    assert num(1) == 1
    assert num(1.5) == 1.5
    for bad in ("1", True, None):
        with pytest.raises(ValidationError):
            num(bad)

    flag = compiled("(x: boolean) => dontcare", lambda x: x)
    assert flag(False) is False
    with pytest.raises(ValidationError):
        flag(1)

    text = compiled("(x: string) => dontcare", lambda x: x)
    with pytest.raises(ValidationError):
        text(b"bytes")

    nothing = compiled("(x: null) => void", lambda x: None)
    assert nothing(None) is None
    with pytest.raises(ValidationError):
        nothing(0)


def test_arrays_check_every_element():
    fn = compiled("(xs: number[]) => number", sum)
    assert fn([1, 2, 3]) == 6
    with pytest.raises(ValidationError) as info:
        fn([1, "2", 3])
    assert info.value.path == (0, 1)
    with pytest.raises(ValidationError):
        fn((1, 2))


def test_arguments_forwarded_unchanged():
    seen = []
    fn = compiled("(xs: number[]) => void", lambda xs: seen.append(xs))
    data = [1, 2]
    fn(data)
    assert seen[0] is data


def test_tuples_are_fixed_length():
    fn = compiled("(t: [number, string]) => dontcare", lambda t: t)
    assert fn((1, "a")) == (1, "a")
    with pytest.raises(ValidationError):
        fn(("a", 1))
    with pytest.raises(ValidationError):
        fn((1, "a", 2))


def test_empty_tuple_accepts_only_empty():
    fn = compiled("(t: []) => void", lambda t: None)
    fn(())
    with pytest.raises(ValidationError):
        fn((1,))


def test_nested_function_only_checks_callable():
    invoked = []

    def callback(x):
        invoked.append(x)

    fn = compiled("(cb: (x: number) => void) => void", lambda cb: None)
    fn(callback)
    assert invoked == []
    with pytest.raises(ValidationError):
        fn(42)


def test_dontcare_accepts_anything():
    fn = compiled("(x: dontcare) => dontcare", lambda x: x)
    marker = object()
    assert fn(marker) is marker


def test_async_signature_resolves():
    async def impl(x, y):
        return isinstance(y, str) and x > 0

    fn = compiled("async (x: number, y: string) => boolean", impl)
    assert asyncio.run(fn(1, "ok")) is True
    assert asyncio.run(fn(-1, "bad")) is False


def test_async_signature_rejects_instead_of_raising():
    async def impl(x, y):
        return True

    fn = compiled("async (x: number, y: string) => boolean", impl)
    pending = fn("a", 2)  # no exception yet
    with pytest.raises(ValidationError) as info:
        asyncio.run(pending)
    assert info.value.position == 0


def test_async_return_validated_after_resolution():
    async def impl(x):
        return "nope"

    fn = compiled("async (x: number) => boolean", impl)
    with pytest.raises(ValidationError) as info:
        asyncio.run(fn(1))
    assert info.value.path == ("return",)


def test_async_signature_accepts_plain_return():
    fn = compiled("async (x: number) => number", lambda x: x * 2)
    assert asyncio.run(fn(2)) == 4


def test_promise_parameter_validated_when_awaited():
    async def impl(p):
        return await p

    fn = compiled("async (p: Promise<number>) => number", impl)
    assert asyncio.run(fn(resolved(3))) == 3
    with pytest.raises(ValidationError) as info:
        asyncio.run(fn(resolved("x")))
    assert info.value.position == 0


def test_promise_parameter_must_be_awaitable():
    fn = compiled("(p: Promise<number>) => void", lambda p: None)
    with pytest.raises(ValidationError):
        fn(3)


def test_promise_return_of_sync_signature():
    fn = compiled("(x: number) => Promise<string>", lambda x: resolved(str(x)))

    async def main():
        return await fn(5)

    assert asyncio.run(main()) == "5"

    bad = compiled("(x: number) => Promise<string>", lambda x: resolved(x))

    async def main_bad():
        return await bad(5)

    with pytest.raises(ValidationError) as info:
        asyncio.run(main_bad())
    assert info.value.path[0] == "return"


def test_promises_nested_in_arrays():
    async def total(ps):
        result = 0
        for p in ps:
            result += await p
        return result

    fn = compiled("async (ps: Promise<number>[]) => number", total)
    assert asyncio.run(fn([resolved(1), resolved(2)])) == 3


def test_wrapper_keeps_metadata():
    def add(x, y):
        """Add two numbers."""
        return x + y

    fn = compiled("(x: number, y: number) => number", add)
    assert fn.__name__ == "add"
    assert fn.__doc__ == "Add two numbers."
    assert fn.__wrapped__ is add
    assert fn.__quack_signature__ == parse_signature("(a: number, b: number) => number")


def test_async_wrapper_is_coroutine_function():
    import inspect

    fn = compiled("async () => void", lambda: None)
    assert inspect.iscoroutinefunction(fn)


@pytest.mark.parametrize(
    "text",
    ["(x: number, y?: string) => dontcare", "(x?: number, y?: string) => dontcare", "(number?) => dontcare"],
)
def test_optional_suffix_compiles(text):
    fn = compiled(text, lambda *args: 1)
    assert fn(1) == 1


def test_failed_tuple_closes_deferred_promises():
    fn = compiled("(t: [Promise<number>, string]) => void", lambda t: None)
    pending = resolved(1)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        with pytest.raises(ValidationError):
            fn((pending, 2))
        gc.collect()
    assert inspect.getcoroutinestate(pending) == inspect.CORO_CLOSED
    assert not [w for w in caught if "never awaited" in str(w.message)]


def test_failed_argument_closes_earlier_promise_arguments():
    fn = compiled("(p: Promise<number>, s: string) => void", lambda p, s: None)
    pending = resolved(1)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        with pytest.raises(ValidationError) as info:
            fn(pending, 2)
        gc.collect()
    assert info.value.position == 1
    assert inspect.getcoroutinestate(pending) == inspect.CORO_CLOSED
    assert not [w for w in caught if "never awaited" in str(w.message)]

import pytest

from sye_aws.errors import ConditionTimeout
from sye_aws.wait import await_condition


def _counting(true_after: int):
    calls = []

    async def predicate() -> bool:
        calls.append(None)
        return len(calls) >= true_after

    return predicate, calls


@pytest.mark.asyncio
async def test_returns_without_sleeping_when_condition_holds():
    predicate, calls = _counting(1)

    await await_condition(predicate, 10, 1, "nothing")

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_polls_until_condition_holds():
    predicate, calls = _counting(4)

    await await_condition(predicate, 0, 5, "fourth poll")

    assert len(calls) == 4


@pytest.mark.asyncio
async def test_unbounded_wait():
    predicate, calls = _counting(25)

    await await_condition(predicate, 0, None, "eventually")

    assert len(calls) == 25


@pytest.mark.asyncio
async def test_raises_when_ceiling_elapses():
    predicate, calls = _counting(10**9)

    with pytest.raises(ConditionTimeout, match="waiting for never") as exc_info:
        await await_condition(predicate, 0.01, 0.05, "never")

    assert exc_info.value.description == "never"
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_zero_ceiling_checks_once():
    predicate, calls = _counting(2)

    with pytest.raises(ConditionTimeout):
        await await_condition(predicate, 0, 0, "second poll")

    assert len(calls) == 1

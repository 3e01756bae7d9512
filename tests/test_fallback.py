import pytest

from propbot.utils.fallback import NoCandidatesError, first_success


async def test_returns_first_success_without_trying_the_rest():
    tried = []

    async def attempt(candidate):
        tried.append(candidate)
        if candidate == "a":
            raise RuntimeError("a down")
        return candidate.upper()

    assert await first_success(["a", "b", "c"], attempt) == "B"
    assert tried == ["a", "b"]


async def test_terminal_error_stops_immediately():
    tried = []

    async def attempt(candidate):
        tried.append(candidate)
        raise PermissionError(candidate)

    with pytest.raises(PermissionError):
        await first_success(["a", "b"], attempt, is_terminal=lambda exc: isinstance(exc, PermissionError))
    assert tried == ["a"]


async def test_all_failures_raise_the_last_error():
    failures = []

    async def attempt(candidate):
        raise ValueError(candidate)

    with pytest.raises(ValueError, match="c"):
        await first_success(["a", "b", "c"], attempt, on_failure=lambda candidate, exc: failures.append(candidate))
    assert failures == ["a", "b", "c"]


async def test_no_candidates():
    async def attempt(candidate):
        return candidate

    with pytest.raises(NoCandidatesError):
        await first_success([], attempt)

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C")
T = TypeVar("T")


class NoCandidatesError(RuntimeError):
    pass


def never_terminal(_: BaseException) -> bool:
    return False


async def first_success(
    candidates: Iterable[C],
    attempt: Callable[[C], Awaitable[T]],
    is_terminal: Callable[[BaseException], bool] = never_terminal,
    on_failure: Optional[Callable[[C, Exception], None]] = None,
) -> T:
    """Try ``attempt`` on each candidate in order and return the first result.

    A failure for which ``is_terminal`` is true is re-raised at once. When
    every candidate fails the last error is raised; with no candidates at all
    ``NoCandidatesError`` is raised.
    """
    last_error: Optional[Exception] = None
    for candidate in candidates:
        try:
            return await attempt(candidate)
        except Exception as exc:  # noqa: BLE001
            if is_terminal(exc):
                logger.warning("fallback.terminal candidate=%s err=%s", candidate, exc)
                raise
            logger.warning("fallback.candidate_failed candidate=%s err=%s", candidate, exc)
            if on_failure:
                on_failure(candidate, exc)
            last_error = exc
    if last_error is not None:
        raise last_error
    raise NoCandidatesError("No candidates to try")

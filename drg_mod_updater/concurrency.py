"""Thread-based fan-out/join helpers.

Two joins with different failure semantics:

- ``join_fail_fast`` returns every result or raises the first error as soon
  as any call fails.
- ``join_settled`` waits for every call and returns a ``Settled`` per call,
  never raising.
"""

import concurrent.futures
from dataclasses import dataclass
from typing import Any, Callable, Sequence


@dataclass
class Settled:
    """Terminal state of one call in a settled join."""

    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def join_fail_fast(calls: Sequence[Callable[[], Any]]) -> list[Any]:
    """Run calls concurrently; return results in call order or raise the first failure.

    Calls still running when another one fails are abandoned, not awaited.
    """
    if not calls:
        return []

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=len(calls))
    try:
        futures = [executor.submit(call) for call in calls]
        done, _ = concurrent.futures.wait(
            futures, return_when=concurrent.futures.FIRST_EXCEPTION
        )
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def join_settled(calls: Sequence[Callable[[], Any]]) -> list[Settled]:
    """Run calls concurrently, one thread each, and wait for all of them."""
    if not calls:
        return []

    results = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = [executor.submit(call) for call in calls]
        for future in futures:
            try:
                results.append(Settled(value=future.result()))
            except Exception as e:
                results.append(Settled(error=e))
    return results

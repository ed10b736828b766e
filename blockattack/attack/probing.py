"""Fan independent oracle probes out to a thread pool, results kept in order."""

import concurrent.futures
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def probe(fn: Callable[[T], R], items: Iterable[T], workers: int = 1) -> Iterator[R]:
    """
    Yield fn(item) for every item, in item order.

    With one worker the probes run lazily, so a caller that stops at the
    first hit stops querying the oracle. With more, every item is submitted
    up front.
    """
    if workers <= 1:
        yield from map(fn, items)
        return

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        yield from executor.map(fn, items)

"""Delays between polls of asynchronous jobs."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import partial
from itertools import chain, repeat

DEFAULT_POOL = (1, 1, 1, 2, 3, 5, 8, 13)


def get_backoff(pool: Iterable[int] | None = None) -> Callable[[], int]:
    """Return a callable yielding the items of ``pool`` one by one.

    Once the pool runs out the last item is returned forever.
    """
    items = tuple(DEFAULT_POOL if pool is None else pool)
    if not items:
        raise ValueError("backoff pool must not be empty")
    return partial(next, chain(items, repeat(items[-1])))
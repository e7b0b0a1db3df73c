"""Iterator utilities for batched writes."""

from typing import Iterable, List, TypeVar

T = TypeVar('T')


def chunked(items: Iterable[T], size: int) -> Iterable[List[T]]:
    """
    Yield lists of at most ``size`` items; the last chunk may be smaller.

    Raises:
        ValueError: if size is not positive
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    batch: List[T] = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch

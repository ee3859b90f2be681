"""
Range Chunker
=============
Splits an inclusive integer range into ascending, non-overlapping chunks.

Chunks are yielded lazily, so partitioning a huge range costs nothing until
the chunks are consumed.
"""

from __future__ import annotations

from typing import Iterator

from .models import Chunk

DEFAULT_CHUNK_SIZE = 100


def chunk_count(low: int, high: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of chunks `partition` will produce."""
    if high < low:
        return 0
    return (high - low + chunk_size) // chunk_size


def partition(
    low: int,
    high: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[Chunk]:
    """
    Partition [low, high] into chunks of at most `chunk_size` numbers.

    Every number in the range lands in exactly one chunk. Only the last
    chunk may be short.

    Raises:
        ValueError: If `chunk_size` is smaller than 1 (raised on call, not
            on first iteration).
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    return _iter_chunks(low, high, chunk_size)


def _iter_chunks(low: int, high: int, chunk_size: int) -> Iterator[Chunk]:
    for index, start in enumerate(range(low, high + 1, chunk_size)):
        yield Chunk(index=index, start=start, end=min(start + chunk_size - 1, high))

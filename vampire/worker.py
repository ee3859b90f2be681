"""
Chunk Worker
============
Runs the detector over every number in one chunk.

Each call owns its result list until it returns; nothing is shared with other
workers. Designed to be submitted to a thread or process pool:

    outcome = scan_chunk(chunk)

On failure the worker stops at the failing number, marks the chunk as failed
and hands back the results it already found. It never raises.
"""

from __future__ import annotations

import logging
import traceback
from typing import Callable

from .detector import detect
from .models import Chunk, ChunkOutcome, ChunkState, ScanResult

logger = logging.getLogger(__name__)

Detector = Callable[[int], ScanResult]


def scan_chunk(chunk: Chunk, detector: Detector = detect) -> ChunkOutcome:
    """
    Scan one chunk in ascending order.

    Args:
        chunk: The sub-range to scan.
        detector: Per-number detector. Must be a module-level function when
            the chunk runs in a process pool.

    Returns:
        ChunkOutcome in state COMPLETED or FAILED, holding the present
        results in ascending numeric order.
    """
    outcome = ChunkOutcome(chunk=chunk, state=ChunkState.RUNNING)
    found: list[ScanResult] = []

    try:
        for num in chunk.numbers():
            result = detector(num)
            if result.is_vampire:
                found.append(result)
    except Exception as e:
        logger.error(
            f"Chunk {chunk.index} [{chunk.start}..{chunk.end}] failed: {e}\n"
            f"{traceback.format_exc()}"
        )
        outcome.state = ChunkState.FAILED
        outcome.error = f"{type(e).__name__}: {e}"
    else:
        outcome.state = ChunkState.COMPLETED

    outcome.results = found
    return outcome

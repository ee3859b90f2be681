"""
Scan Engine
===========
Coordinates a parallel scan of an integer range for vampire numbers.

Usage:
    engine = ScanEngine(ScanConfig(chunk_size=100))
    report = engine.scan(1000, 9999)
    for line in report.lines():
        print(line)

Architecture:
    range → chunker.partition (lazy) → Chunks → executor (one task per
    chunk, bounded pool, bounded window of queued tasks) → worker.scan_chunk
    → ChunkOutcomes → barrier → merge by chunk index → ScanReport

Only outcomes with results or errors are kept, so memory follows the
number of vampire numbers found, not the size of the range.

Failure policy (ScanConfig.on_failure):
    RAISE    every chunk runs to the barrier, then ScanError is raised if any
             chunk failed. The error carries the partial report.
    PARTIAL  failures are logged and listed in report.failed_chunks; the
             report is returned.
    ABORT    the first failure cancels queued chunks and stops submitting new
             ones; running chunks finish. ScanError is raised with the
             partial report (report.skipped_chunks counts the chunks that
             were never submitted).
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import (
    Executor,
    Future,
    FIRST_COMPLETED,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from .chunker import DEFAULT_CHUNK_SIZE, chunk_count, partition
from .detector import detect
from .models import (
    Chunk,
    ChunkOutcome,
    ChunkState,
    ExecutorKind,
    FailurePolicy,
    ReportFormat,
    ScanReport,
    ScanResult,
)
from .worker import scan_chunk

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ProgressCallback = Callable[[int, int], None]


# ─── Errors ───────────────────────────────────────────────────────────────────


class InvalidRangeError(ValueError):
    """Scan bounds or scan settings are unusable."""


class ScanError(RuntimeError):
    """One or more chunk workers failed."""

    def __init__(self, message: str, failures: list[ChunkOutcome], report: ScanReport):
        super().__init__(message)
        self.failures = failures
        self.report = report


# ─── Configuration ────────────────────────────────────────────────────────────


def default_worker_count(default: int = 4) -> int:
    """CPU count capped so small scans don't overspawn."""
    count = os.cpu_count() or default
    return max(1, min(count, 12))


@dataclass
class ScanConfig:
    """Configuration for the scan engine."""

    # Partitioning
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Concurrency
    max_workers: Optional[int] = None
    executor: ExecutorKind = ExecutorKind.PROCESS
    # Chunks submitted but not finished (default: twice the worker count)
    max_pending: Optional[int] = None
    on_failure: FailurePolicy = FailurePolicy.RAISE

    # Per-number detector (module-level function for process pools)
    detector: Callable[[int], ScanResult] = detect

    # Output
    report_format: ReportFormat = ReportFormat.PAIRS

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class ScanEngine:
    """
    Parallel range scanner.

    Stateless between calls: each `scan` partitions, fans out, joins and
    merges. Output order never depends on which chunk finishes first.
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("vampire")
        package_logger.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        # Console handler (stderr, stdout is reserved for results)
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(formatter)
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path.resolve()
                for h in package_logger.handlers
            )
            if not already_attached:
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

    # ─── Validation ───────────────────────────────────────────────────────

    def _validate(self, low, high):
        for name, value in (("low", low), ("high", high)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRangeError(
                    f"{name} must be an integer, got {value!r}"
                )
        if low < 0:
            raise InvalidRangeError(f"low must be non-negative, got {low}")
        if low > high:
            raise InvalidRangeError(
                f"empty range: low ({low}) is greater than high ({high})"
            )
        if self.config.chunk_size < 1:
            raise InvalidRangeError(
                f"chunk_size must be at least 1, got {self.config.chunk_size}"
            )
        if self.config.max_workers is not None and self.config.max_workers < 1:
            raise InvalidRangeError(
                f"max_workers must be at least 1, got {self.config.max_workers}"
            )
        if self.config.max_pending is not None and self.config.max_pending < 1:
            raise InvalidRangeError(
                f"max_pending must be at least 1, got {self.config.max_pending}"
            )

    # ─── Scan ─────────────────────────────────────────────────────────────

    def scan(
        self,
        low: int,
        high: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ScanReport:
        """
        Scan [low, high] for vampire numbers.

        Args:
            low: First number to check (inclusive).
            high: Last number to check (inclusive).
            progress_callback: Callback(completed_chunks, total_chunks),
                invoked from the calling thread as chunks finish.

        Returns:
            ScanReport with results ordered by number.

        Raises:
            InvalidRangeError: If the bounds or settings are invalid.
            ScanError: If a chunk failed and the policy is RAISE or ABORT.
        """
        self._validate(low, high)

        start_time = time.time()
        total = chunk_count(low, high, self.config.chunk_size)
        workers = min(total, self.config.max_workers or default_worker_count())
        window = self.config.max_pending or workers * 2
        logger.info(
            f"Scanning [{low}..{high}] in {total} chunk(s) of "
            f"{self.config.chunk_size}, {workers} {self.config.executor.value} worker(s), "
            f"at most {window} chunk(s) in flight"
        )

        chunks = partition(low, high, self.config.chunk_size)
        kept, skipped = self._run_chunks(chunks, total, workers, window, progress_callback)

        # ── Merge by chunk index, never by arrival ────────────────────
        ordered = [kept[index] for index in sorted(kept)]
        failures = [o for o in ordered if o.state != ChunkState.COMPLETED]

        report = ScanReport(
            low=low,
            high=high,
            chunk_size=self.config.chunk_size,
            chunk_count=total,
            results=[r for o in ordered for r in o.results],
            failed_chunks=failures,
            skipped_chunks=skipped,
            elapsed_seconds=round(time.time() - start_time, 4),
        )

        logger.info(
            f"Scan complete in {report.elapsed_seconds:.2f}s: "
            f"{report.vampire_count} vampire number(s), "
            f"{report.fang_count} fang pair(s)"
        )

        if failures:
            message = (
                f"{len(failures)} of {total} chunk(s) did not complete: "
                + "; ".join(
                    f"[{o.chunk.start}..{o.chunk.end}] {o.state.value}"
                    + (f" ({o.error})" if o.error else "")
                    for o in failures
                )
            )
            if skipped:
                message += f"; {skipped} chunk(s) never started"
            if self.config.on_failure == FailurePolicy.PARTIAL:
                logger.warning(f"Returning partial report: {message}")
            else:
                raise ScanError(message, failures, report)

        return report

    def _make_executor(self, workers: int) -> Executor:
        if self.config.executor == ExecutorKind.THREAD:
            return ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="vampire-chunk"
            )
        return ProcessPoolExecutor(max_workers=workers)

    def _run_chunks(
        self,
        chunks: Iterator[Chunk],
        total: int,
        workers: int,
        window: int,
        progress_callback: Optional[ProgressCallback],
    ) -> tuple[dict[int, ChunkOutcome], int]:
        """
        Fan chunks out to the pool, at most `window` in flight, and join on
        all of them.

        Returns:
            (kept, skipped): outcomes worth merging (non-empty or not
            completed) keyed by chunk index, and the number of chunks never
            submitted because the scan was aborted.
        """
        kept: dict[int, ChunkOutcome] = {}
        in_flight: dict[Future, Chunk] = {}
        finished = 0
        submitted = 0
        aborting = False

        def record(outcome: ChunkOutcome):
            nonlocal finished
            finished += 1
            if outcome.results or outcome.state != ChunkState.COMPLETED:
                kept[outcome.chunk.index] = outcome
            if progress_callback:
                progress_callback(finished, total)

        with self._make_executor(workers) as executor:

            def refill():
                nonlocal submitted
                while len(in_flight) < window:
                    chunk = next(chunks, None)
                    if chunk is None:
                        return
                    future = executor.submit(scan_chunk, chunk, self.config.detector)
                    in_flight[future] = chunk
                    submitted += 1

            refill()
            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    outcome = self._collect(future, in_flight.pop(future))
                    record(outcome)

                    if (
                        outcome.state == ChunkState.FAILED
                        and self.config.on_failure == FailurePolicy.ABORT
                        and not aborting
                    ):
                        aborting = True
                        cancelled = [f for f in list(in_flight) if f.cancel()]
                        for f in cancelled:
                            record(self._collect(f, in_flight.pop(f)))
                        logger.warning(
                            f"Aborting scan after chunk {outcome.chunk.index} failed; "
                            f"cancelled {len(cancelled)} queued chunk(s)"
                        )

                if not aborting:
                    refill()

        return kept, total - submitted

    def _collect(self, future: Future, chunk: Chunk) -> ChunkOutcome:
        """Turn a finished (or cancelled) future into a ChunkOutcome."""
        if future.cancelled():
            return ChunkOutcome(chunk=chunk, state=ChunkState.CANCELLED)
        try:
            return future.result()
        except Exception as e:
            # Pool-level failure (e.g. a worker process died)
            logger.error(f"Chunk {chunk.index} [{chunk.start}..{chunk.end}] crashed: {e}")
            return ChunkOutcome(
                chunk=chunk,
                state=ChunkState.FAILED,
                error=f"{type(e).__name__}: {e}",
            )


def scan(
    n1: int,
    n2: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    **options,
) -> list[str]:
    """
    Scan [n1, n2] and return formatted report lines.

    Extra keyword arguments are passed to ScanConfig.
    """
    config = ScanConfig(chunk_size=chunk_size, **options)
    report = ScanEngine(config).scan(n1, n2)
    return report.lines(config.report_format)

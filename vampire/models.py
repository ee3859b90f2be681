"""
Data Models
===========
Pydantic models for detector results, range chunks and aggregated scan reports.
All models are picklable (chunk workers may run in other processes) and
serializable to JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator


# ─── Enums ────────────────────────────────────────────────────────────────────


class ChunkState(str, Enum):
    """Lifecycle of a chunk worker. Each chunk moves forward exactly once."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ReportFormat(str, Enum):
    """Text layout for report lines."""
    PAIRS = "pairs"        # "125460 204 615" then "125460 246 510"
    COMPACT = "compact"    # "125460 615 204 510 246"


class FailurePolicy(str, Enum):
    """What the coordinator does when a chunk worker fails."""
    RAISE = "raise"
    PARTIAL = "partial"
    ABORT = "abort"


class ExecutorKind(str, Enum):
    """Concurrency backend for chunk workers."""
    PROCESS = "process"
    THREAD = "thread"


# ─── Detector Models ──────────────────────────────────────────────────────────


class FangPair(BaseModel):
    """
    Two fangs of a vampire number, smaller first.
    """
    first: int = Field(ge=1)
    second: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "FangPair":
        if self.first > self.second:
            raise ValueError(
                f"fang pair must be ordered: {self.first} > {self.second}"
            )
        return self

    @computed_field
    @property
    def product(self) -> int:
        return self.first * self.second


class ScanResult(BaseModel):
    """
    Detector verdict for a single number.
    Absent when `fangs` is empty.
    """
    number: int
    fangs: list[FangPair] = Field(
        default_factory=list,
        description="Fang pairs in discovery order (descending larger fang)",
    )

    @computed_field
    @property
    def is_vampire(self) -> bool:
        return bool(self.fangs)

    def lines(self, fmt: ReportFormat = ReportFormat.PAIRS) -> list[str]:
        """Render this result as report lines."""
        if not self.fangs:
            return []
        if fmt == ReportFormat.COMPACT:
            values = " ".join(
                f"{pair.second} {pair.first}" for pair in self.fangs
            )
            return [f"{self.number} {values}"]
        return [
            f"{self.number} {pair.first} {pair.second}"
            for pair in self.fangs
        ]


# ─── Chunk Models ─────────────────────────────────────────────────────────────


class Chunk(BaseModel):
    """A closed, contiguous sub-range of the scan range."""
    index: int = Field(ge=0)
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Chunk":
        if self.start > self.end:
            raise ValueError(
                f"chunk start {self.start} is after end {self.end}"
            )
        return self

    @computed_field
    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def numbers(self) -> range:
        return range(self.start, self.end + 1)


class ChunkOutcome(BaseModel):
    """
    What a chunk worker hands back to the coordinator.
    Results are partial when the chunk failed mid-way.
    """
    chunk: Chunk
    state: ChunkState = ChunkState.PENDING
    results: list[ScanResult] = Field(default_factory=list)
    error: Optional[str] = None

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.state == ChunkState.COMPLETED


# ─── Report Model ─────────────────────────────────────────────────────────────


class ScanReport(BaseModel):
    """
    Aggregated output of a scan.
    Results are ordered by chunk index, then ascending number.
    """
    low: int
    high: int
    chunk_size: int = Field(ge=1)
    chunk_count: int = 0
    results: list[ScanResult] = Field(default_factory=list)
    failed_chunks: list[ChunkOutcome] = Field(default_factory=list)
    skipped_chunks: int = Field(
        default=0,
        ge=0,
        description="Chunks never submitted because the scan was aborted",
    )
    elapsed_seconds: float = 0.0

    @computed_field
    @property
    def vampire_count(self) -> int:
        return len(self.results)

    @computed_field
    @property
    def fang_count(self) -> int:
        return sum(len(r.fangs) for r in self.results)

    @computed_field
    @property
    def complete(self) -> bool:
        return not self.failed_chunks and not self.skipped_chunks

    def lines(self, fmt: ReportFormat = ReportFormat.PAIRS) -> list[str]:
        """Flatten every result into printable lines."""
        return [line for result in self.results for line in result.lines(fmt)]

"""Query timing and an in-memory trace store."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from bundle_lens.manifest.model import Manifest


@dataclass(slots=True)
class QueryTrace:
    trace_id: str
    timestamp_utc: str
    query: str
    target: str | None
    input_count: int
    output_count: int
    latency_ms: float
    found: bool | None = None


class QueryTraceStore:
    """In-memory trace storage for API-level observability."""

    def __init__(self, max_records: int = 1000) -> None:
        self._records: dict[str, QueryTrace] = {}
        self._max_records = max_records

    def create_record(
        self,
        *,
        query: str,
        manifest: Manifest,
        latency_ms: float,
        target: str | None = None,
        found: bool | None = None,
    ) -> QueryTrace:
        record = QueryTrace(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            query=query,
            target=target,
            input_count=len(manifest.inputs),
            output_count=len(manifest.outputs),
            latency_ms=latency_ms,
            found=found,
        )
        self._records[record.trace_id] = record
        while len(self._records) > self._max_records:
            self._records.pop(next(iter(self._records)))
        return record

    def get(self, trace_id: str) -> QueryTrace:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[QueryTrace]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate query counts and latencies for the metrics endpoint."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_queries": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "max_outputs": 0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_queries": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "max_outputs": max(record.output_count for record in records),
        }


class Timer:
    """Simple context timer used around engine queries."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0

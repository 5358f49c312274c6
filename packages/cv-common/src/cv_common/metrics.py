"""
Prometheus metrics helpers for CorporaViewer.

Provides shared metric definitions for the highlight engine: emitted
chunks and candidates, backend sub-query failures, point-in-time cursor
lifecycle, and per-chunk latency.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

highlight_chunks_total = Counter(
    "highlight_chunks_total",
    "Total highlight chunks streamed to clients",
    ["strategy"],
)
highlight_candidates_total = Counter(
    "highlight_candidates_total",
    "Total highlight candidates emitted after deduplication",
    ["kind"],
)
backend_subquery_failures_total = Counter(
    "backend_subquery_failures_total",
    "Backend sub-queries that failed and degraded to empty results",
    ["index"],
)
cursor_events_total = Counter(
    "cursor_events_total",
    "Point-in-time cursor lifecycle events",
    ["event"],
)
highlight_chunk_duration_seconds = Histogram(
    "highlight_chunk_duration_seconds",
    "Time spent resolving one highlight chunk",
    ["strategy"],
)

"""Metricas Prometheus do pipeline.

Metricas definidas:
- voxtract_stage_duration_seconds: Histogram de duracao por stage
- voxtract_jobs_total: Counter de jobs por status terminal
- voxtract_engine_processes_active: Gauge de subprocessos de engine em execucao
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

stage_duration_seconds = Histogram(
    "voxtract_stage_duration_seconds",
    "Duration of each pipeline stage",
    ["stage"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)

jobs_total = Counter(
    "voxtract_jobs_total",
    "Total extraction jobs by terminal status",
    ["status"],
)

engine_processes_active = Gauge(
    "voxtract_engine_processes_active",
    "External engine processes currently running",
)

"""
Aggregated metrics registry for statements, tool calls and bot runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass
class StepMetricsSnapshot:
    count: int
    total_duration_seconds: float
    errors: int


@dataclass
class RunMetricsSnapshot:
    bot_name: str
    total_runs: int
    avg_duration_seconds: float
    failures: int


class MetricsRegistry:
    def __init__(self) -> None:
        self._step: Dict[str, StepMetricsSnapshot] = {}
        self._runs: Dict[str, RunMetricsSnapshot] = {}
        self._tool_calls: Dict[tuple[str, str], int] = {}
        self._tool_latency: Dict[str, tuple[float, int]] = {}

    def record_step(self, kind: str, duration_seconds: float, ok: bool = True) -> None:
        if kind not in self._step:
            self._step[kind] = StepMetricsSnapshot(count=0, total_duration_seconds=0.0, errors=0)
        snap = self._step[kind]
        snap.count += 1
        snap.total_duration_seconds += duration_seconds
        if not ok:
            snap.errors += 1

    def record_run(self, bot_name: str, duration_seconds: float, success: bool) -> None:
        if bot_name not in self._runs:
            self._runs[bot_name] = RunMetricsSnapshot(bot_name=bot_name, total_runs=0, avg_duration_seconds=0.0, failures=0)
        snap = self._runs[bot_name]
        snap.total_runs += 1
        snap.avg_duration_seconds = ((snap.avg_duration_seconds * (snap.total_runs - 1)) + duration_seconds) / snap.total_runs
        if not success:
            snap.failures += 1

    def record_tool_call(self, tool_name: str, status: str, duration_seconds: float) -> None:
        key = (tool_name or "unknown", status or "unknown")
        self._tool_calls[key] = self._tool_calls.get(key, 0) + 1
        total, count = self._tool_latency.get(tool_name, (0.0, 0))
        self._tool_latency[tool_name] = (total + max(duration_seconds, 0.0), count + 1)

    def get_step_metrics(self) -> Dict[str, StepMetricsSnapshot]:
        return dict(self._step)

    def get_run_metrics(self) -> Dict[str, RunMetricsSnapshot]:
        return dict(self._runs)

    def get_tool_call_counts(self) -> Dict[tuple[str, str], int]:
        return dict(self._tool_calls)

    def get_tool_latency(self) -> Dict[str, float]:
        return {key: (total / count if count else 0.0) for key, (total, count) in self._tool_latency.items()}

    def reset(self) -> None:
        self._step.clear()
        self._runs.clear()
        self._tool_calls.clear()
        self._tool_latency.clear()


default_metrics = MetricsRegistry()

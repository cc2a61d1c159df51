"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Structured logging configuration shared by every module logger
2. Tracing of remote gateway calls (start, completion, failure, latency)
3. Dispatch metrics: remote successes, remote failures and local fallbacks
"""
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime

from config.settings import LOG_LEVEL

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("travel_agent")


@dataclass
class OperationTrace:
    """A single remote operation attempt."""
    operation: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: str = None):
        """Mark trace as complete."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000
        self.success = success
        self.error = error


@dataclass
class DispatchMetrics:
    """Aggregated counters for the connectivity dispatcher."""
    remote_successes: int = 0
    remote_failures: int = 0
    local_fallbacks: int = 0
    total_latency_ms: float = 0
    operation_latencies: Dict[str, list] = field(default_factory=dict)
    fallbacks_by_operation: Dict[str, int] = field(default_factory=dict)

    @property
    def remote_attempts(self) -> int:
        return self.remote_successes + self.remote_failures

    @property
    def remote_success_rate(self) -> float:
        if self.remote_attempts == 0:
            return 0.0
        return self.remote_successes / self.remote_attempts

    def record(self, trace: OperationTrace):
        """Record a remote attempt."""
        if trace.success:
            self.remote_successes += 1
        else:
            self.remote_failures += 1

        if trace.duration_ms is not None:
            self.total_latency_ms += trace.duration_ms
            self.operation_latencies.setdefault(trace.operation, []).append(trace.duration_ms)

    def record_fallback(self, operation: str):
        """Record a call served by the local path."""
        self.local_fallbacks += 1
        self.fallbacks_by_operation[operation] = self.fallbacks_by_operation.get(operation, 0) + 1

    def reset(self):
        self.remote_successes = 0
        self.remote_failures = 0
        self.local_fallbacks = 0
        self.total_latency_ms = 0
        self.operation_latencies.clear()
        self.fallbacks_by_operation.clear()

    def summary(self) -> Dict[str, Any]:
        """Return metrics summary."""
        op_avg = {}
        for operation, latencies in self.operation_latencies.items():
            if latencies:
                op_avg[operation] = sum(latencies) / len(latencies)

        return {
            "remote_attempts": self.remote_attempts,
            "remote_success_rate": f"{self.remote_success_rate:.1%}",
            "local_fallbacks": self.local_fallbacks,
            "fallbacks_by_operation": dict(self.fallbacks_by_operation),
            "operation_avg_latency_ms": op_avg,
        }


# Global metrics instance
metrics = DispatchMetrics()


class Tracer:
    """Context manager for tracing a remote operation."""

    def __init__(self, operation: str, target: Any = None):
        self.trace = OperationTrace(operation=operation)
        self._target = str(target)[:200] if target else ""

    def __enter__(self):
        if self._target:
            logger.debug(f"▶ {self.trace.operation} started ({self._target})")
        else:
            logger.debug(f"▶ {self.trace.operation} started")
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.trace.complete(success=False, error=str(exc_val))
            logger.warning(f"✖ {self.trace.operation} failed: {exc_val}")
        else:
            self.trace.complete(success=True)
            logger.info(f"✔ {self.trace.operation} completed in {self.trace.duration_ms:.0f}ms")

        metrics.record(self.trace)
        return False  # Don't suppress exceptions


def get_metrics_summary() -> Dict[str, Any]:
    """Get current dispatch metrics summary."""
    return metrics.summary()

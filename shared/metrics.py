"""
Shared metrics configuration for the compliance gate engine.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for gate decisions and rate limiting."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up compliance metrics for the service."""

        self._metrics["gate_decisions_total"] = Counter(
            "gate_decisions_total",
            "Total gate decisions by outcome",
            ["outcome", "service"],
            registry=self.registry
        )

        self._metrics["policy_violations_total"] = Counter(
            "policy_violations_total",
            "Total record-level policy violations",
            ["code", "service"],
            registry=self.registry
        )

        self._metrics["hard_blocks_total"] = Counter(
            "hard_blocks_total",
            "Total source-level hard blocks",
            ["service"],
            registry=self.registry
        )

        self._metrics["rate_limit_refusals_total"] = Counter(
            "rate_limit_refusals_total",
            "Total calls refused by a rate limiter",
            ["dependency", "service"],
            registry=self.registry
        )

        self._metrics["gate_batch_duration_seconds"] = Histogram(
            "gate_batch_duration_seconds",
            "Batch evaluation duration in seconds",
            ["service"],
            registry=self.registry
        )

    def record_decision(self, outcome: str):
        self._metrics["gate_decisions_total"].labels(outcome=outcome, service=self.service_name).inc()

    def record_policy_violation(self, code: str):
        self._metrics["policy_violations_total"].labels(code=code, service=self.service_name).inc()

    def record_hard_block(self):
        self._metrics["hard_blocks_total"].labels(service=self.service_name).inc()

    def record_rate_limit_refusal(self, dependency: str):
        self._metrics["rate_limit_refusals_total"].labels(dependency=dependency, service=self.service_name).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(service=self.service_name, **labels).observe(duration)

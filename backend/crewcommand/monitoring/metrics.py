"""Prometheus metrics for the voice pipeline and authorization engine"""

import logging
from typing import Dict, List
from collections import defaultdict
from prometheus_client import Counter, Histogram, Gauge

logger = logging.getLogger(__name__)


# Voice parse metrics
voice_parse_requests_total = Counter(
    'voice_parse_requests_total',
    'Total number of voice parse requests',
    ['action', 'status']
)

voice_intent_confidence = Histogram(
    'voice_intent_confidence',
    'Distribution of intent confidence scores',
    ['action'],
    buckets=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)

# External capability metrics
external_requests_total = Counter(
    'external_requests_total',
    'Total number of requests to external speech/language capabilities',
    ['service', 'status']
)

external_request_duration_seconds = Histogram(
    'external_request_duration_seconds',
    'Time spent waiting on external capabilities',
    ['service'],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0]
)

# Circuit breaker metrics
circuit_breaker_state = Gauge(
    'circuit_breaker_state',
    'Circuit breaker state (0=closed, 1=open, 2=half_open)',
    ['service']
)

circuit_breaker_failures = Counter(
    'circuit_breaker_failures_total',
    'Total number of requests rejected by an open circuit',
    ['service']
)

# Execution metrics
intent_executions_total = Counter(
    'intent_executions_total',
    'Total number of executed voice intents',
    ['action', 'status']
)

intent_execution_duration_seconds = Histogram(
    'intent_execution_duration_seconds',
    'Time spent executing voice intents',
    ['action'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Authorization metrics
authorization_decisions_total = Counter(
    'authorization_decisions_total',
    'Authorization decisions by action and outcome',
    ['action', 'outcome']
)


class MetricsCollector:
    """Collector for pipeline metrics with in-memory latency samples"""

    def __init__(self):
        self.latencies: Dict[str, List[float]] = defaultdict(list)
        self.max_latency_samples = 1000  # Keep last N samples for percentile calculation

    def record_parse(self, action: str, status: str, confidence: float = None):
        """Record a voice parse outcome"""
        voice_parse_requests_total.labels(action=action, status=status).inc()
        if confidence is not None:
            voice_intent_confidence.labels(action=action).observe(confidence)

    def record_external_request(self, service: str, status: str, duration_seconds: float):
        """Record a call to an external capability"""
        external_requests_total.labels(service=service, status=status).inc()
        external_request_duration_seconds.labels(service=service).observe(duration_seconds)

        key = f"{service}_{status}"
        self.latencies[key].append(duration_seconds * 1000)  # Convert to ms
        if len(self.latencies[key]) > self.max_latency_samples:
            self.latencies[key].pop(0)

    def record_circuit_breaker_state(self, service: str, state: str):
        """Record circuit breaker state"""
        state_value = {"closed": 0, "open": 1, "half_open": 2}.get(state, 0)
        circuit_breaker_state.labels(service=service).set(state_value)

    def record_circuit_breaker_failure(self, service: str):
        """Record a request rejected by an open circuit"""
        circuit_breaker_failures.labels(service=service).inc()

    def record_execution(self, action: str, status: str, duration_seconds: float):
        """Record an intent execution"""
        intent_executions_total.labels(action=action, status=status).inc()
        intent_execution_duration_seconds.labels(action=action).observe(duration_seconds)

    def record_authorization(self, action: str, allowed: bool):
        """Record an authorization decision"""
        authorization_decisions_total.labels(
            action=action,
            outcome="allow" if allowed else "deny"
        ).inc()

    def get_latency_percentiles(self, service: str, status: str = "success") -> Dict[str, float]:
        """Calculate latency percentiles from stored samples"""
        key = f"{service}_{status}"
        latencies = self.latencies.get(key, [])

        if not latencies:
            return {"p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}

        sorted_latencies = sorted(latencies)
        n = len(sorted_latencies)

        def percentile(p: float) -> float:
            k = (n - 1) * p
            f = int(k)
            c = min(f + 1, n - 1)
            return sorted_latencies[f] + (k - f) * (sorted_latencies[c] - sorted_latencies[f])

        return {
            "p50": percentile(0.50),
            "p90": percentile(0.90),
            "p95": percentile(0.95),
            "p99": percentile(0.99),
        }


# Global metrics collector instance
metrics_collector = MetricsCollector()


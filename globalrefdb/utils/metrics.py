"""
Metrics collector menggunakan Prometheus.
File ini mengumpulkan data ref-db seperti
hasil compare-and-put, staleness checks dan lock wait time.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, Gauge, generate_latest
from typing import Optional
import time


class MetricsCollector:
    """
    Class untuk mengumpulkan metrics ref-db.
    Menggunakan Prometheus format untuk monitoring.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        # Counter: hasil compare-and-put (success, conflict, error)
        self.compare_and_put = Counter(
            'globalrefdb_compare_and_put_total',
            'Compare-and-put attempts by outcome',
            ['outcome'],
            registry=self.registry
        )

        # Counter: hasil staleness check (up_to_date, stale, error)
        self.staleness_checks = Counter(
            'globalrefdb_is_up_to_date_total',
            'Staleness checks by result',
            ['result'],
            registry=self.registry
        )

        self.advisory_read_errors = Counter(
            'globalrefdb_advisory_read_errors_total',
            'Errors swallowed by exists/get',
            ['operation'],
            registry=self.registry
        )

        self.lock_acquisitions = Counter(
            'globalrefdb_lock_acquire_total',
            'Lock acquisitions by outcome',
            ['outcome'],
            registry=self.registry
        )

        # Histogram: distribusi waktu menunggu lease
        self.lock_wait = Histogram(
            'globalrefdb_lock_wait_seconds',
            'Time spent waiting for a lease',
            registry=self.registry
        )

        # Gauge: leases yang sedang di-hold process ini
        self.leases_held = Gauge(
            'globalrefdb_leases_held',
            'Leases currently held by this process',
            registry=self.registry
        )

    def record_compare_and_put(self, outcome: str):
        self.compare_and_put.labels(outcome=outcome).inc()

    def record_staleness_check(self, result: str):
        self.staleness_checks.labels(result=result).inc()

    def record_advisory_read_error(self, operation: str):
        self.advisory_read_errors.labels(operation=operation).inc()

    def record_lock_acquisition(self, outcome: str, duration: float):
        """
        Record lock metrics.

        Args:
            outcome: acquired, denied, interrupted, atau error
            duration: Waktu menunggu dalam seconds
        """
        self.lock_acquisitions.labels(outcome=outcome).inc()
        self.lock_wait.observe(duration)

    def get_metrics(self) -> bytes:
        """
        Export metrics dalam Prometheus format.
        Returns: Metrics data dalam bytes
        """
        return generate_latest(self.registry)


# Context manager untuk measure waktu
class measure_time:
    """
    Context manager untuk mengukur execution time.

    Contoh penggunaan:
        with measure_time() as timer:
            # your code here
            pass
        print(f"Execution time: {timer.elapsed}s")
    """

    def __init__(self):
        self.start_time = None
        self.elapsed = None

    def __enter__(self):
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.monotonic() - self.start_time
        return False


# Singleton instance
metrics = MetricsCollector()

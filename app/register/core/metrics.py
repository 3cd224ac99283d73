from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.register.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._idempotency_replay_total = None
        self._lock_wait_timeout_total = None
        self._register_sales_total = None
        self._coupon_rejections_total = None
        self._integrity_alerts_total = None
        self._register_open = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._idempotency_replay_total = Counter(
            "idempotency_replay_total",
            "Idempotent replay responses.",
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._register_sales_total = Counter(
            "register_sales_total",
            "Committed register sales by payment method.",
            ["payment_method"],
            registry=self._registry,
        )
        self._coupon_rejections_total = Counter(
            "coupon_rejections_total",
            "Coupon evaluations rejected, by reason.",
            ["reason"],
            registry=self._registry,
        )
        self._integrity_alerts_total = Counter(
            "integrity_alerts_total",
            "Data-integrity alerts raised while committing sales.",
            ["check_id"],
            registry=self._registry,
        )
        self._register_open = Gauge(
            "register_session_open",
            "1 while a register session is open.",
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_idempotency_replay(self) -> None:
        if not self.enabled:
            return
        self._idempotency_replay_total.inc()

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def increment_sale(self, payment_method: str) -> None:
        if not self.enabled:
            return
        self._register_sales_total.labels(payment_method=payment_method).inc()

    def increment_coupon_rejection(self, reason: str) -> None:
        if not self.enabled:
            return
        self._coupon_rejections_total.labels(reason=reason).inc()

    def increment_integrity_alert(self, check_id: str) -> None:
        if not self.enabled:
            return
        self._integrity_alerts_total.labels(check_id=check_id).inc()

    def set_register_open(self, is_open: bool) -> None:
        if not self.enabled:
            return
        self._register_open.set(1 if is_open else 0)

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()

"""
Prometheus metrics for the keyring engine.

Tracks accounts, requests, signing, and storage health.
"""

from prometheus_client import Counter, Gauge, Histogram, Info
import structlog

from eoa_keyring import __version__

logger = structlog.get_logger()


# ============== INFO ==============

keyring_info = Info(
    'keyring_build_info',
    'EOA keyring build information',
)

keyring_info.info({
    'version': __version__,
    'account_type': 'eip155:eoa',
})


# ============== COUNTERS ==============

# Accounts
accounts_created_total = Counter(
    'keyring_accounts_created_total',
    'Total accounts created',
    ['source'],
)

accounts_deleted_total = Counter(
    'keyring_accounts_deleted_total',
    'Total accounts deleted',
)

# Requests
requests_submitted_total = Counter(
    'keyring_requests_submitted_total',
    'Total signing requests submitted',
    ['mode'],
)

requests_approved_total = Counter(
    'keyring_requests_approved_total',
    'Total signing requests approved',
    ['method'],
)

requests_rejected_total = Counter(
    'keyring_requests_rejected_total',
    'Total signing requests rejected',
)

# Signing
signing_failures_total = Counter(
    'keyring_signing_failures_total',
    'Total signing failures',
    ['method', 'error_type'],
)

# Collaborators
persistence_failures_total = Counter(
    'keyring_persistence_failures_total',
    'Total state save failures',
)

notification_failures_total = Counter(
    'keyring_notification_failures_total',
    'Total event notification failures',
    ['event_type'],
)


# ============== GAUGES ==============

accounts_count = Gauge(
    'keyring_accounts',
    'Number of custodied accounts',
)

pending_requests_count = Gauge(
    'keyring_pending_requests',
    'Number of pending signing requests',
)


# ============== HISTOGRAMS ==============

signing_latency_seconds = Histogram(
    'keyring_signing_latency_seconds',
    'Signing latency',
    ['method'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0],
)


# ============== HELPERS ==============

def track_signing(method: str, latency: float):
    """Track a successful signing operation."""
    signing_latency_seconds.labels(method=method).observe(latency)
    logger.debug("metric_signing", method=method, latency=latency)


def track_signing_failure(method: str, error: Exception):
    """Track a failed signing operation."""
    signing_failures_total.labels(
        method=method,
        error_type=type(error).__name__,
    ).inc()


def track_state_size(accounts: int, pending_requests: int):
    """Track current state size."""
    accounts_count.set(accounts)
    pending_requests_count.set(pending_requests)


__all__ = [
    "keyring_info",
    "accounts_created_total",
    "accounts_deleted_total",
    "requests_submitted_total",
    "requests_approved_total",
    "requests_rejected_total",
    "signing_failures_total",
    "persistence_failures_total",
    "notification_failures_total",
    "accounts_count",
    "pending_requests_count",
    "signing_latency_seconds",
    "track_signing",
    "track_signing_failure",
    "track_state_size",
]

# src/metrics/metrics.py
# Prometheus metrics for the probes and the connection pool
# Counter: only goes up (requests, errors)
# Histogram: distribution of durations (p50/p95/p99 in Prometheus)

from prometheus_client import Counter, Histogram

# Probe metrics
# Labels:
#   probe   - query, hold_tx, hold_conn, ping
#   outcome - ok, error
PROBE_REQUESTS_TOTAL = Counter(
    "probe_requests_total",
    "Total number of probe executions",
    ["probe", "outcome"],
)

# Wall-clock time of a whole probe, acquisition included
# Buckets stretch to several minutes because hold probes are meant to be long
PROBE_DURATION_SECONDS = Histogram(
    "probe_duration_seconds",
    "Duration of probe executions in seconds",
    ["probe"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300),
)

# Database connection metrics

# Time spent waiting for a free pool slot
# This is the number that climbs while hold-conn/hold-tx exhaust the pool
DB_POOL_ACQUIRE_SECONDS = Histogram(
    "db_pool_acquire_seconds",
    "Time spent waiting to acquire a connection from the pool",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 2.5, 5, 10, 30, 60),
)

DB_CONNECTION_ERRORS_TOTAL = Counter(
    "db_connection_errors_total",
    "Total number of database connection errors",
)

DB_QUERIES_TOTAL = Counter(
    "db_queries_total",
    "Total number of database queries executed",
)

# Correlation ID metrics
CORRELATION_IDS_GENERATED_TOTAL = Counter(
    "correlation_ids_generated_total",
    "Requests that arrived without X-Correlation-ID and got a generated one",
)

CORRELATION_IDS_PROVIDED_TOTAL = Counter(
    "correlation_ids_provided_total",
    "Requests that arrived with a client-provided X-Correlation-ID",
)

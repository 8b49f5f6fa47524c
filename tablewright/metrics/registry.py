from prometheus_client import Counter, Histogram

DB_WRITE_TOTAL = Counter(
    "tablewright_db_write_total",
    "Commands executed against a table",
    ["table", "op_type", "status"],
)

DB_WRITE_LATENCY_SECONDS = Histogram(
    "tablewright_db_write_latency_seconds",
    "Latency of commands executed against a table",
    ["table", "op_type"],
)

VALIDATION_FAILURES_TOTAL = Counter(
    "tablewright_validation_failures_total",
    "Records rejected by validation before any command was built",
    ["table"],
)

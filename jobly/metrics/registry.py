from prometheus_client import Counter, Histogram

DB_QUERY_TOTAL = Counter(
    "jobly_db_query_total",
    "Number of SQL statements executed through DbSession",
    ["table", "op_type", "status"],
)

DB_QUERY_LATENCY_SECONDS = Histogram(
    "jobly_db_query_latency_seconds",
    "Latency of SQL statements executed through DbSession",
    ["table", "op_type"],
)

"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Ledger write metrics
ledger_actions = Counter(
    "tripflow_ledger_actions_total",
    "Total ledger actions by outcome",
    ["ledger", "action", "result"],
)

ledger_write_duration = Histogram(
    "tripflow_ledger_write_duration_seconds",
    "Ledger write duration",
    ["ledger"],
)

# Concurrency metrics
ledger_conflicts = Counter(
    "tripflow_ledger_conflicts_total",
    "Unique-constraint races reinterpreted as AlreadyInState",
    ["ledger"],
)

ledger_failure_log_errors = Counter(
    "tripflow_ledger_failure_log_errors_total",
    "Failed-result log rows that could not be written",
    ["ledger"],
)

# Bulk operation metrics
ledger_reset_rows_removed = Counter(
    "tripflow_ledger_reset_rows_removed_total",
    "Rows removed by reset-all and undo",
    ["ledger", "operation"],
)

"""Prometheus metrics for document validation, ingestion and reconciliation"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Validation metrics
documents_validated_counter = Counter(
    "debt_snowball_documents_validated_total",
    "Documents run through validation",
    ["file_type", "outcome"],  # valid | invalid
)

csv_rows_skipped_counter = Counter(
    "debt_snowball_csv_rows_skipped_total",
    "CSV data rows dropped for an unparsable date or amount",
)

# Ingestion metrics
statements_ingested_counter = Counter(
    "debt_snowball_statements_ingested_total",
    "Statements extracted and persisted",
    ["file_type", "manual_entry"],
)

# Reconciliation metrics
reconciliation_counter = Counter(
    "debt_snowball_reconciliations_total",
    "Statement reconciliations by outcome",
    ["outcome"],  # updated | unchanged | rejected | manual_entry
)

# Strategy metrics
strategy_duration_histogram = Histogram(
    "debt_snowball_strategy_seconds",
    "Payoff strategy calculation time",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)


def record_validation(file_type: Optional[str], is_valid: bool) -> None:
    """Record validation outcome per declared file type"""
    outcome = "valid" if is_valid else "invalid"
    documents_validated_counter.labels(file_type=(file_type or "missing").lower(), outcome=outcome).inc()


def record_statement_ingested(file_type: str, manual_entry: bool) -> None:
    statements_ingested_counter.labels(
        file_type=file_type.lower(),
        manual_entry="true" if manual_entry else "false",
    ).inc()


def record_reconciliation(outcome: str) -> None:
    reconciliation_counter.labels(outcome=outcome).inc()

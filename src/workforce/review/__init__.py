"""Cross-source consistency and aggregation review."""

from workforce.review.aggregation import AggregationValidator
from workforce.review.consistency import ConsistencyValidator
from workforce.review.formatting import export_report, format_report
from workforce.review.report import ConsistencyReporter

__all__ = [
    "AggregationValidator",
    "ConsistencyReporter",
    "ConsistencyValidator",
    "export_report",
    "format_report",
]

"""
Aggregation package: concurrent page fan-out and result folding.
"""

from .aggregator import AggregationReport, Aggregator, PageOutcome

__all__ = ["Aggregator", "AggregationReport", "PageOutcome"]

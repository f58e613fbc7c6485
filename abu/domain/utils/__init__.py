"""
Shared utilities for report flows.

Modules
-------
validation
    Parsing of monetary amounts returned as text
timestamps
    Monthly lookback and forecast date windows
units
    Currency conversion with a rate fixed at startup
aggregation
    Series-delta and join reducers producing report records
ranking
    Metric-descending (truncated) and name-ascending orderings
"""

__all__ = []

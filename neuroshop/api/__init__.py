"""HTTP boundary for the aggregation engine."""

"""Storage adapters for writing the aggregated report."""

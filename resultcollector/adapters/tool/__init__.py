"""Tool adapters translating test runner results for the aggregator.

Implementations:
- Passthrough (events already in the collector's shape)
- pytest (plugin driven by pytest's reporting hooks)
"""

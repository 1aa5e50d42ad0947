"""Test suite for the result collector.

Organized into three categories:

1. core/: Unit tests for the record store and aggregator
   - No filesystem access
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - JSON file storage against a temporary directory
   - Tool adapters, including the pytest plugin via pytester

3. fakes/: Port implementations for testing
   - In-memory implementations of ToolAdapterPort and ReportStoragePort
"""

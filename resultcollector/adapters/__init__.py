"""External adapters for the result collector.

Implementations of the core port interfaces:

- storage/: Report writers (JSON file)
- tool/: Test tool integrations (passthrough events, pytest plugin)
"""

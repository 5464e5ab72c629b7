"""
Test package for discovery-agent

This package contains:
- Unit tests: Individual component testing with fake enumerators and clients
- Integration tests: Real netlink sockets on the host running the tests

Integration tests need a Linux host and skip themselves elsewhere.
"""

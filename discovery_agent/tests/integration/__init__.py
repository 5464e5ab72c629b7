"""
Integration tests for discovery-agent

These tests talk to the running kernel over rtnetlink and require a Linux host.
They skip themselves when netlink sockets are unavailable.
"""

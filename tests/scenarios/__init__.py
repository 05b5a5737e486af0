"""End-to-end scenario tests for the failover proxy.

Each scenario drives the full ASGI application with simulated origins and
checks one aspect of routing, failover or webhook deduplication.
"""

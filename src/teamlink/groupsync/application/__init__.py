"""Application layer for group synchronization.

Orchestrates the domain algorithms against the ports: single group syncs,
fan-out to mapped targets and bounded-concurrency batches.
"""

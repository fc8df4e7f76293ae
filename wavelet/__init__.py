"""Ledger account state, genesis loading, contract memory snapshots, debouncing and payload encoding."""

__version__ = "0.1.0"
"""Concrete adapters for the contracts in :mod:`emergency_kb.interfaces`."""

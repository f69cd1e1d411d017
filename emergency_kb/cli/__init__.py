"""Command-line tools for the emergency knowledge base.

- ``python -m emergency_kb.cli`` -- initialize, rebuild, add documents,
  search and show statistics.
"""

"""Integration adapters that satisfy the core ports."""
